"""initial schema: orders, documents, payment log and deleted archive

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('order_number', sa.String(50), nullable=False, server_default=sa.text("''")),
        sa.Column('customer_type', sa.String(20), nullable=False, server_default='individual'),
        sa.Column('contact_name', sa.String(200), nullable=False, server_default=sa.text("''")),
        sa.Column('email', sa.String(255), nullable=False, server_default=sa.text("''")),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('company_name', sa.String(255), nullable=True),
        sa.Column('institution_name', sa.String(255), nullable=True),
        sa.Column('tax_id_or_vat_id', sa.String(50), nullable=True),
        sa.Column('street', sa.String(255), nullable=True),
        sa.Column('postal_code', sa.String(20), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), nullable=False, server_default='received'),
        sa.Column('payment_status', sa.String(32), nullable=False, server_default='unpaid'),
        sa.Column('payment_notes', sa.Text(), nullable=True),
        sa.Column('is_draft', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('currency', sa.String(3), nullable=False, server_default='EUR'),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('tax', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('subtotal >= 0 AND tax >= 0 AND total >= 0', name='ck_orders_totals_non_negative'),
    )
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('idx_orders_deleted_created', 'orders', ['deleted_at', 'created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('unit', sa.String(20), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('line_total', sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'order_documents',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('filename', sa.String(255), nullable=False),
        sa.Column('blob_url', sa.String(1024), nullable=False),
        sa.Column('blob_pathname', sa.String(1024), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_order_documents_order_id', 'order_documents', ['order_id'])

    op.create_table(
        'order_payment_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('previous_status', sa.String(32), nullable=True),
        sa.Column('new_status', sa.String(32), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_order_payment_logs_order_id', 'order_payment_logs', ['order_id'])

    op.create_table(
        'deleted_archive_entries',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('item_type', sa.String(10), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=True),
        sa.Column('document_id', sa.Integer(), nullable=True),
        sa.Column('label', sa.String(500), nullable=False),
        sa.Column('payload', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("item_type IN ('order', 'pdf')", name='ck_archive_item_type'),
        sa.CheckConstraint(
            "(item_type = 'order' AND order_id IS NOT NULL) OR "
            "(item_type = 'pdf' AND order_id IS NOT NULL AND document_id IS NOT NULL)",
            name='ck_archive_references',
        ),
    )
    op.create_index('ix_deleted_archive_entries_order_id', 'deleted_archive_entries', ['order_id'])
    op.create_index('ix_deleted_archive_entries_expires_at', 'deleted_archive_entries', ['expires_at'])
    op.create_index('idx_archive_deleted_at', 'deleted_archive_entries', ['deleted_at'])
    op.create_index(
        'uq_archive_order_entry', 'deleted_archive_entries', ['order_id'], unique=True,
        postgresql_where=sa.text("item_type = 'order'"), sqlite_where=sa.text("item_type = 'order'"),
    )
    op.create_index(
        'uq_archive_pdf_entry', 'deleted_archive_entries', ['document_id'], unique=True,
        postgresql_where=sa.text("item_type = 'pdf'"), sqlite_where=sa.text("item_type = 'pdf'"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('deleted_archive_entries')
    op.drop_table('order_payment_logs')
    op.drop_table('order_documents')
    op.drop_table('order_items')
    op.drop_table('orders')
