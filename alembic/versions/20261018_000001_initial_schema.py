"""Create accounts, transactions and commissions tables.

Revision ID: 20261018_000001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261018_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the hierarchy ledger schema."""

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('balance_minor', sa.BigInteger(), nullable=False, server_default='0', comment='Balance in minor units'),
        sa.Column('role', sa.String(10), nullable=False, server_default='user'),
        sa.Column('parent_id', sa.Integer(), nullable=True, comment='NULL for root (owner) accounts'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('balance_minor >= 0', name='ck_accounts_balance_non_negative'),
        sa.CheckConstraint("role IN ('admin', 'user')", name='ck_accounts_role_valid'),
        sa.CheckConstraint('parent_id IS NULL OR parent_id <> id', name='ck_accounts_not_own_parent'),
        sa.ForeignKeyConstraint(['parent_id'], ['accounts.id'], ondelete='RESTRICT', name='fk_accounts_parent_id_accounts'),
        sa.PrimaryKeyConstraint('id', name='pk_accounts'),
    )
    op.create_index('ix_accounts_username', 'accounts', ['username'], unique=True)
    op.create_index('ix_accounts_parent_id', 'accounts', ['parent_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sender_id', sa.Integer(), nullable=False),
        sa.Column('receiver_id', sa.Integer(), nullable=False),
        sa.Column('amount_minor', sa.BigInteger(), nullable=False),
        sa.Column('type', sa.String(10), nullable=False, comment='CREDIT or DEBIT'),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('commission_minor', sa.BigInteger(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount_minor > 0', name='ck_transactions_amount_positive'),
        sa.CheckConstraint('commission_minor IS NULL OR commission_minor >= 0', name='ck_transactions_commission_non_negative'),
        sa.CheckConstraint("type IN ('CREDIT', 'DEBIT')", name='ck_transactions_type_valid'),
        sa.ForeignKeyConstraint(['sender_id'], ['accounts.id'], ondelete='RESTRICT', name='fk_transactions_sender_id_accounts'),
        sa.ForeignKeyConstraint(['receiver_id'], ['accounts.id'], ondelete='RESTRICT', name='fk_transactions_receiver_id_accounts'),
        sa.PrimaryKeyConstraint('id', name='pk_transactions'),
    )
    op.create_index('idx_transactions_sender_created', 'transactions', ['sender_id', 'created_at'])
    op.create_index('idx_transactions_receiver_created', 'transactions', ['receiver_id', 'created_at'])

    op.create_table(
        'commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('beneficiary_id', sa.Integer(), nullable=False),
        sa.Column('transaction_id', sa.Integer(), nullable=False),
        sa.Column('amount_minor', sa.BigInteger(), nullable=False),
        sa.Column('percentage', sa.DECIMAL(5, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('amount_minor > 0', name='ck_commissions_amount_positive'),
        sa.ForeignKeyConstraint(['beneficiary_id'], ['accounts.id'], ondelete='RESTRICT', name='fk_commissions_beneficiary_id_accounts'),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id'], ondelete='RESTRICT', name='fk_commissions_transaction_id_transactions'),
        sa.PrimaryKeyConstraint('id', name='pk_commissions'),
    )
    op.create_index('ix_commissions_beneficiary_id', 'commissions', ['beneficiary_id'])
    op.create_index('ix_commissions_transaction_id', 'commissions', ['transaction_id'])


def downgrade() -> None:
    """Drop the hierarchy ledger schema."""

    op.drop_index('ix_commissions_transaction_id', table_name='commissions')
    op.drop_index('ix_commissions_beneficiary_id', table_name='commissions')
    op.drop_table('commissions')

    op.drop_index('idx_transactions_receiver_created', table_name='transactions')
    op.drop_index('idx_transactions_sender_created', table_name='transactions')
    op.drop_table('transactions')

    op.drop_index('ix_accounts_parent_id', table_name='accounts')
    op.drop_index('ix_accounts_username', table_name='accounts')
    op.drop_table('accounts')
