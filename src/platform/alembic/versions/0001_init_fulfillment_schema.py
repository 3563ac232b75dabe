"""init_fulfillment_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Schema:
- ticket_type: catalog rows (live counters are in Kvrocks)
- inventory_unit: seats / tables (live state is in Kvrocks)
- order: orders with refund counters; refunded + pending never exceed the total
- ticket: issued tickets; a unit backs at most one live ticket
- refund: refund requests and their outcome
- payment_confirmation: one row per provider payment reference
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, *, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(
        name, sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
    )


def upgrade() -> None:
    """Create all tables with final schema."""

    # ========== Catalog ==========
    op.create_table(
        'ticket_type',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('price_minor', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('initial_quantity', sa.Integer(), nullable=False),
        sa.Column('max_per_order', sa.Integer(), nullable=False, server_default='10'),
        sa.Column('max_per_user_per_event', sa.Integer(), nullable=True),
        _timestamp('sales_start', nullable=True),
        _timestamp('sales_end', nullable=True),
        _timestamp('created_at'),
        sa.CheckConstraint(
            'initial_quantity >= 0', name='ck_ticket_type_initial_quantity_non_negative'
        ),
        sa.CheckConstraint('price_minor >= 0', name='ck_ticket_type_price_non_negative'),
        sa.CheckConstraint('max_per_order >= 1', name='ck_ticket_type_max_per_order_positive'),
        sa.PrimaryKeyConstraint('id', name='pk_ticket_type'),
    )
    op.create_index('ix_ticket_type_event_id', 'ticket_type', ['event_id'])

    op.create_table(
        'inventory_unit',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('ticket_type_id', sa.Integer(), nullable=False),
        sa.Column('venue_id', sa.Integer(), nullable=True),
        sa.Column('kind', sa.String(length=10), nullable=False),
        sa.Column('section', sa.String(length=20), nullable=False),
        sa.Column('label', sa.String(length=20), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(
            ['ticket_type_id'],
            ['ticket_type.id'],
            name='fk_inventory_unit_ticket_type_id_ticket_type',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_inventory_unit'),
    )
    op.create_index('ix_inventory_unit_event_id', 'inventory_unit', ['event_id'])
    op.create_index('ix_inventory_unit_ticket_type_id', 'inventory_unit', ['ticket_type_id'])

    # ========== Orders ==========
    op.create_table(
        'order',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=24), nullable=False),
        sa.Column('items', JSONB(), nullable=False),
        sa.Column('total_amount_minor', sa.Integer(), nullable=False),
        sa.Column('refunded_amount_minor', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('refund_pending_minor', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('idempotency_key', sa.String(length=128), nullable=True),
        sa.Column('settled_by', sa.String(length=64), nullable=True),
        sa.Column('failure_reason', sa.String(length=255), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        _timestamp('paid_at', nullable=True),
        sa.CheckConstraint('total_amount_minor >= 0', name='ck_order_order_total_non_negative'),
        sa.CheckConstraint(
            'refunded_amount_minor >= 0 AND refund_pending_minor >= 0',
            name='ck_order_order_refund_counters_non_negative',
        ),
        sa.CheckConstraint(
            'refunded_amount_minor + refund_pending_minor <= total_amount_minor',
            name='ck_order_order_refunds_within_total',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_order'),
        sa.UniqueConstraint('order_number', name='uq_order_order_number'),
    )
    op.create_index('ix_order_user_id', 'order', ['user_id'])
    op.create_index('ix_order_event_id', 'order', ['event_id'])
    op.create_index('ix_order_status', 'order', ['status'])

    op.create_table(
        'ticket',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('ticket_code', sa.String(length=32), nullable=False),
        sa.Column('order_id', UUID(as_uuid=True), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('ticket_type_id', sa.Integer(), nullable=False),
        sa.Column('unit_id', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        _timestamp('checked_in_at', nullable=True),
        sa.Column('checked_in_by', sa.Integer(), nullable=True),
        _timestamp('cancelled_at', nullable=True),
        sa.Column('cancel_reason', sa.String(length=255), nullable=True),
        _timestamp('created_at'),
        sa.ForeignKeyConstraint(['order_id'], ['order.id'], name='fk_ticket_order_id_order'),
        sa.ForeignKeyConstraint(
            ['ticket_type_id'], ['ticket_type.id'], name='fk_ticket_ticket_type_id_ticket_type'
        ),
        sa.PrimaryKeyConstraint('id', name='pk_ticket'),
        sa.UniqueConstraint('ticket_code', name='uq_ticket_ticket_code'),
    )
    op.create_index('ix_ticket_order_id', 'ticket', ['order_id'])
    op.create_index('ix_ticket_event_id', 'ticket', ['event_id'])
    op.create_index('ix_ticket_ticket_type_id', 'ticket', ['ticket_type_id'])
    op.create_index(
        'uq_ticket_live_unit',
        'ticket',
        ['unit_id'],
        unique=True,
        postgresql_where=sa.text("unit_id IS NOT NULL AND status IN ('issued', 'checked_in')"),
    )

    # ========== Payments & refunds ==========
    op.create_table(
        'refund',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', UUID(as_uuid=True), nullable=False),
        sa.Column('amount_minor', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('requested_by', sa.Integer(), nullable=False),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('provider_refund_id', sa.String(length=128), nullable=True),
        sa.Column('failure_reason', sa.String(length=255), nullable=True),
        _timestamp('created_at'),
        _timestamp('updated_at'),
        _timestamp('completed_at', nullable=True),
        sa.CheckConstraint('amount_minor > 0', name='ck_refund_refund_amount_positive'),
        sa.ForeignKeyConstraint(['order_id'], ['order.id'], name='fk_refund_order_id_order'),
        sa.PrimaryKeyConstraint('id', name='pk_refund'),
    )
    op.create_index('ix_refund_order_id', 'refund', ['order_id'])

    op.create_table(
        'payment_confirmation',
        sa.Column('external_ref', sa.String(length=128), nullable=False),
        sa.Column('order_id', UUID(as_uuid=True), nullable=False),
        sa.Column('result_status', sa.String(length=24), nullable=True),
        sa.Column('error_code', sa.String(length=64), nullable=True),
        _timestamp('created_at'),
        _timestamp('completed_at', nullable=True),
        sa.ForeignKeyConstraint(
            ['order_id'], ['order.id'], name='fk_payment_confirmation_order_id_order'
        ),
        sa.PrimaryKeyConstraint('external_ref', name='pk_payment_confirmation'),
    )
    op.create_index('ix_payment_confirmation_order_id', 'payment_confirmation', ['order_id'])


def downgrade() -> None:
    """Drop all tables in reverse order of creation."""
    op.drop_table('payment_confirmation')
    op.drop_table('refund')
    op.drop_table('ticket')
    op.drop_table('order')
    op.drop_table('inventory_unit')
    op.drop_table('ticket_type')
