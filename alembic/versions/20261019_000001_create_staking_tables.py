"""Create staking ledger tables.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, sa.DECIMAL(18, 8), nullable=False, server_default='0', **kwargs)


def upgrade() -> None:
    """Create entries, vouchers, wallets, referral edges and promotion tables."""

    op.create_table(
        'staking_entries',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('package_id', sa.Integer(), nullable=True),
        sa.Column('package_name', sa.String(100), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('daily_roi', sa.DECIMAL(10, 4), nullable=False, comment='Percent per day'),
        sa.Column('cap', sa.DECIMAL(10, 4), nullable=False, comment='Max earning multiplier'),
        sa.Column('max_earning', sa.DECIMAL(18, 8), nullable=False),
        _money('total_earned'),
        sa.Column('counts_toward_cap', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('last_credited_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('unstake_requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cooldown_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('amount > 0', name='check_stake_amount_positive'),
        sa.CheckConstraint('total_earned >= 0', name='check_stake_total_earned_non_negative'),
        sa.CheckConstraint('total_earned <= max_earning', name='check_stake_total_earned_not_exceeds_cap'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_staking_entries_user_id', 'staking_entries', ['user_id'])
    op.create_index('ix_staking_entries_status', 'staking_entries', ['status'])
    op.create_index('ix_staking_entries_created_at', 'staking_entries', ['created_at'])
    op.create_index('idx_staking_entries_user_status', 'staking_entries', ['user_id', 'status'])

    op.create_table(
        'vouchers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(64), nullable=True),
        sa.Column('code', sa.String(32), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('value', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('currency', sa.String(10), nullable=False, server_default='USDT'),
        sa.Column('title', sa.String(200), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('package_id', sa.Integer(), nullable=True),
        sa.Column('package_name', sa.String(100), nullable=True),
        sa.Column('roi_validity_days', sa.Integer(), nullable=True),
        sa.Column('affects_max_cap', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True, comment='Redemption deadline'),
        sa.Column('applied_to_stake_id', sa.Integer(), nullable=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('roi_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
    )
    op.create_index('ix_vouchers_user_id', 'vouchers', ['user_id'])
    op.create_index('ix_vouchers_status', 'vouchers', ['status'])
    op.create_index('ix_vouchers_applied_to_stake_id', 'vouchers', ['applied_to_stake_id'])

    op.create_table(
        'user_balances',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        _money('balance'),
        _money('on_staking'),
        _money('daily_earning'),
        sa.Column('daily_earning_date', sa.Date(), nullable=True),
        _money('latest_earning'),
        _money('team_earning'),
        sa.Column('team_credited_date', sa.Date(), nullable=True),
        _money('missed_earnings'),
        _money('capped_earned'),
        _money('max_earn'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('balance >= 0', name='check_user_balance_non_negative'),
        sa.CheckConstraint('on_staking >= 0', name='check_user_on_staking_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )
    op.create_index('ix_user_balances_daily_earning_date', 'user_balances', ['daily_earning_date'])

    op.create_table(
        'invited_members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sponsor_id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )
    op.create_index('ix_invited_members_sponsor_id', 'invited_members', ['sponsor_id'])

    op.create_table(
        'transaction_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('stake_id', sa.Integer(), nullable=True),
        sa.Column('voucher_id', sa.Integer(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_transaction_records_user_id', 'transaction_records', ['user_id'])
    op.create_index('idx_transaction_records_user_type', 'transaction_records', ['user_id', 'type'])

    op.create_table(
        'team_earning_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sponsor_id', sa.String(64), nullable=False),
        sa.Column('source_user_id', sa.String(64), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 8), nullable=False),
        sa.Column('period_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_team_earning_records_sponsor_id', 'team_earning_records', ['sponsor_id'])
    op.create_index('ix_team_earning_records_period_date', 'team_earning_records', ['period_date'])

    op.create_table(
        'promotion_registrations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('promotion_type', sa.String(32), nullable=False, server_default='prelaunch'),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id'),
    )

    op.create_table(
        'promotion_milestone_claims',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sponsor_id', sa.String(64), nullable=False),
        sa.Column('milestone_key', sa.String(64), nullable=False),
        sa.Column('claimed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sponsor_id', 'milestone_key', name='uq_milestone_claim_sponsor_key'),
    )
    op.create_index('ix_promotion_milestone_claims_sponsor_id', 'promotion_milestone_claims', ['sponsor_id'])


def downgrade() -> None:
    """Drop staking ledger tables."""
    op.drop_table('promotion_milestone_claims')
    op.drop_table('promotion_registrations')
    op.drop_table('team_earning_records')
    op.drop_table('transaction_records')
    op.drop_table('invited_members')
    op.drop_table('user_balances')
    op.drop_table('vouchers')
    op.drop_table('staking_entries')
