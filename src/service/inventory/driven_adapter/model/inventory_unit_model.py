from typing import Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class InventoryUnitModel(Base):
    """Catalog row for a seat or table; its free/held/sold state lives in Kvrocks"""

    __tablename__ = 'inventory_unit'

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # e.g. A-12
    event_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    ticket_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey('ticket_type.id'), nullable=False, index=True
    )
    venue_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    kind: Mapped[str] = mapped_column(String(10), nullable=False)  # seat | table
    section: Mapped[str] = mapped_column(String(20), nullable=False)
    label: Mapped[str] = mapped_column(String(20), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
