"""Create affiliate ledger tables

Revision ID: 001_affiliate_ledger
Revises:
Create Date: 2026-10-19

Tables used by commission hold / release:
- users: spendable and pending balances
- affiliate_links
- payments: commission status and hold expiry
- balance_transactions: one ledger entry per balance event
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001_affiliate_ledger'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create users, affiliate_links, payments and balance_transactions."""

    # ====================
    # USERS TABLE
    # ====================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False, server_default=''),
        sa.Column('last_name', sa.String(100), nullable=False, server_default=''),
        sa.Column('balance', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('pending_balance', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_sales', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('balance >= 0', name='ck_users_balance_non_negative'),
        sa.CheckConstraint('pending_balance >= 0', name='ck_users_pending_balance_non_negative'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # ====================
    # AFFILIATE LINKS TABLE
    # ====================
    op.create_table(
        'affiliate_links',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('token', sa.String(100), nullable=False),
        sa.Column('item_type', sa.String(50), nullable=False, server_default='BUSINESS'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_affiliate_links_user_id', 'affiliate_links', ['user_id'])
    op.create_index('ix_affiliate_links_token', 'affiliate_links', ['token'], unique=True)

    # ====================
    # PAYMENTS TABLE
    # ====================
    op.create_table(
        'payments',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('transaction_id', sa.String(100), nullable=False, comment='Gateway transaction identifier'),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('status', sa.String(50), nullable=False, server_default='captured'),
        sa.Column('buyer_email', sa.String(255), nullable=True),
        sa.Column('affiliate_link_id', sa.Integer,
                  sa.ForeignKey('affiliate_links.id', ondelete='SET NULL'), nullable=True),
        sa.Column('commission_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('commission_status', sa.String(50), nullable=True),
        sa.Column('commission_held_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('commission_released_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('affiliate_paid', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_payments_transaction_id', 'payments', ['transaction_id'], unique=True)
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_affiliate_link_id', 'payments', ['affiliate_link_id'])
    op.create_index('ix_payments_commission_release', 'payments',
                    ['commission_status', 'commission_held_until'])

    # ====================
    # BALANCE TRANSACTIONS TABLE
    # ====================
    op.create_table(
        'balance_transactions',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('balance_before', sa.Numeric(12, 2), nullable=False),
        sa.Column('balance_after', sa.Numeric(12, 2), nullable=False),
        sa.Column('reference_type', sa.String(50), nullable=True),
        sa.Column('reference_id', sa.Integer, nullable=True),
        sa.Column('released_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_balance_transactions_user_id', 'balance_transactions', ['user_id'])
    op.create_index('ix_balance_transactions_reference', 'balance_transactions',
                    ['user_id', 'type', 'reference_type', 'reference_id'])


def downgrade():
    """Drop affiliate ledger tables."""
    op.drop_table('balance_transactions')
    op.drop_table('payments')
    op.drop_table('affiliate_links')
    op.drop_table('users')
