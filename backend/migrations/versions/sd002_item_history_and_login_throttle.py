"""Invoice item history and login throttling identifier

Revision ID: sd002_item_history
Revises: sd001_initial
Create Date: 2026-10-17

Creates:
1. invoice_item_history (append-only line-item audit trail)

Alters:
2. security_events.identifier (normalized login email for throttling)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sd002_item_history'
down_revision = 'sd001_initial'
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. INVOICE ITEM HISTORY
    # ==========================================================================
    op.create_table('invoice_item_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=16), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('old_quantity', sa.Integer(), nullable=True),
        sa.Column('new_quantity', sa.Integer(), nullable=True),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('amount_change_cents', sa.Integer(), nullable=False),
        sa.Column('changed_by_user_id', sa.Integer(), nullable=True),
        sa.Column('changed_by_name', sa.String(length=255), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('invoice_item_history', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_invoice_item_history_invoice_id'), ['invoice_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_invoice_item_history_shop_id'), ['shop_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_invoice_item_history_action'), ['action'], unique=False)
        batch_op.create_index(batch_op.f('ix_invoice_item_history_created_at'), ['created_at'], unique=False)

    # ==========================================================================
    # 2. SECURITY EVENTS: throttling identifier
    # ==========================================================================
    with op.batch_alter_table('security_events', schema=None) as batch_op:
        batch_op.add_column(sa.Column('identifier', sa.String(length=255), nullable=True))
        batch_op.create_index(batch_op.f('ix_security_events_identifier'), ['identifier'], unique=False)


def downgrade():
    with op.batch_alter_table('security_events', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_security_events_identifier'))
        batch_op.drop_column('identifier')

    with op.batch_alter_table('invoice_item_history', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_invoice_item_history_created_at'))
        batch_op.drop_index(batch_op.f('ix_invoice_item_history_action'))
        batch_op.drop_index(batch_op.f('ix_invoice_item_history_shop_id'))
        batch_op.drop_index(batch_op.f('ix_invoice_item_history_invoice_id'))

    op.drop_table('invoice_item_history')
