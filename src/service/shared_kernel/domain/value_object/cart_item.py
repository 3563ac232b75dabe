"""Cart item value object."""

from typing import Tuple

import attrs


def _to_tuple(value: object) -> Tuple[str, ...]:
    return tuple(str(v) for v in (value or ()))  # type: ignore[union-attr]


@attrs.define(frozen=True)
class CartItem:
    """
    One line of a cart: a quantity of a ticket type, optionally pinned to seats/tables.

    For seated or table inventory `unit_ids` names the exact units and its length
    equals `quantity`; general admission leaves it empty.
    """

    ticket_type_id: int
    quantity: int
    unit_ids: Tuple[str, ...] = attrs.field(factory=tuple, converter=_to_tuple)

    @property
    def is_seated(self) -> bool:
        return bool(self.unit_ids)

    def to_dict(self) -> dict:
        return {
            'ticket_type_id': self.ticket_type_id,
            'quantity': self.quantity,
            'unit_ids': list(self.unit_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'CartItem':
        return cls(
            ticket_type_id=int(data['ticket_type_id']),
            quantity=int(data['quantity']),
            unit_ids=data.get('unit_ids') or (),
        )
