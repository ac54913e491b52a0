"""initial_schema

Revision ID: 2026_10_19_101500
Revises:
Create Date: 2026-10-19 10:15:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '2026_10_19_101500'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _u256(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.Numeric(78, 0), nullable=nullable)


def _text(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.Text(), nullable=nullable)


def _event_table(name: str, *columns: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column('transaction_hash', sa.Text(), nullable=False),
        sa.Column('event_index', sa.Integer(), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=True),
        sa.Column('primary_key', sa.Text(), nullable=True),
        sa.Column('block_timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('provisional', sa.Boolean(), server_default=sa.false(), nullable=False),
        *columns,
        sa.PrimaryKeyConstraint('transaction_hash', 'event_index', name=f'pk_{name}'),
        schema='domain',
    )


def upgrade() -> None:
    op.execute('CREATE SCHEMA IF NOT EXISTS domain')
    op.execute('CREATE SCHEMA IF NOT EXISTS indexer')

    _event_table(
        'orders',
        _text('order_key'),
        _text('order_type'),
        _text('decrease_position_swap_type'),
        _text('account'),
        _text('receiver'),
        _text('callback_contract'),
        _text('ui_fee_receiver'),
        _text('market'),
        _text('initial_collateral_token'),
        sa.Column('swap_path', postgresql.ARRAY(sa.Text()), nullable=False),
        _u256('size_delta_usd'),
        _u256('initial_collateral_delta_amount'),
        _u256('trigger_price'),
        _u256('acceptable_price'),
        _u256('execution_fee'),
        _u256('callback_gas_limit'),
        _u256('min_output_amount'),
        sa.Column('updated_at_block', sa.BigInteger(), nullable=True),
        sa.Column('is_long', sa.Boolean(), nullable=True),
        sa.Column('is_frozen', sa.Boolean(), nullable=True),
    )
    op.create_index('ix_orders_order_key', 'orders', ['order_key'], schema='domain')
    op.create_index('ix_orders_account', 'orders', ['account'], schema='domain')

    _event_table(
        'deposits',
        _text('account'),
        _text('receiver'),
        _text('callback_contract'),
        _text('market'),
        _text('initial_long_token'),
        _text('initial_short_token'),
        _text('long_token_swap_path'),
        _text('short_token_swap_path'),
        _u256('initial_long_token_amount'),
        _u256('initial_short_token_amount'),
        _u256('min_market_tokens'),
        sa.Column('updated_at_block', sa.BigInteger(), nullable=True),
        _u256('execution_fee'),
        _u256('callback_gas_limit'),
    )
    op.create_index('ix_deposits_account', 'deposits', ['account'], schema='domain')

    _event_table(
        'withdrawals',
        _text('account'),
        _text('receiver'),
        _text('callback_contract'),
        _text('market'),
        _text('long_token_swap_path'),
        _text('short_token_swap_path'),
        _u256('market_token_amount'),
        _u256('min_long_token_amount'),
        _u256('min_short_token_amount'),
        sa.Column('updated_at_block', sa.BigInteger(), nullable=True),
        _u256('execution_fee'),
        _u256('callback_gas_limit'),
    )
    op.create_index('ix_withdrawals_account', 'withdrawals', ['account'], schema='domain')

    _event_table(
        'markets',
        _text('creator'),
        _text('market_token'),
        _text('index_token'),
        _text('long_token'),
        _text('short_token'),
        _text('market_type'),
    )
    op.create_index('ix_markets_market_token', 'markets', ['market_token'], schema='domain')

    _event_table(
        'swap_infos',
        _text('order_key'),
        _text('market'),
        _text('receiver'),
        _text('token_in'),
        _text('token_out'),
        _u256('token_in_price'),
        _u256('token_out_price'),
        _u256('amount_in'),
        _u256('amount_in_after_fees'),
        _u256('amount_out'),
        _u256('price_impact_usd_mag'),
        sa.Column('price_impact_usd_sign', sa.Boolean(), nullable=True),
        _u256('price_impact_amount_mag'),
        sa.Column('price_impact_amount_sign', sa.Boolean(), nullable=True),
    )
    op.create_index('ix_swap_infos_order_key', 'swap_infos', ['order_key'], schema='domain')
    op.create_index('ix_swap_infos_market', 'swap_infos', ['market'], schema='domain')

    _event_table(
        'pool_amount_updates',
        _text('market'),
        _text('token'),
        _u256('delta_mag'),
        sa.Column('delta_sign', sa.Boolean(), nullable=True),
        _u256('next_value'),
    )
    op.create_index(
        'ix_pool_amount_updates_market_token',
        'pool_amount_updates',
        ['market', 'token'],
        schema='domain',
    )

    _event_table(
        'position_increases',
        _text('key', nullable=False),
        _text('account', nullable=False),
        _text('market', nullable=False),
        _text('collateral_token', nullable=False),
        _u256('size_in_usd', nullable=False),
        _u256('size_in_tokens', nullable=False),
        _u256('collateral_amount', nullable=False),
        _u256('borrowing_factor', nullable=False),
        _u256('funding_fee_amount_per_size', nullable=False),
        _u256('long_token_claimable_funding_amount_per_size', nullable=False),
        _u256('short_token_claimable_funding_amount_per_size', nullable=False),
        sa.Column('increased_at_block', sa.BigInteger(), nullable=False),
        sa.Column('decreased_at_block', sa.BigInteger(), nullable=False),
        sa.Column('is_long', sa.Boolean(), nullable=False),
    )
    op.create_index('ix_position_increases_key', 'position_increases', ['key'], schema='domain')
    op.create_index(
        'ix_position_increases_account_market',
        'position_increases',
        ['account', 'market'],
        schema='domain',
    )

    _event_table(
        'swap_fees_collected',
        _text('market'),
        _text('token'),
        _u256('token_price'),
        _text('action'),
        _u256('fee_receiver_amount'),
        _u256('fee_amount_for_pool'),
        _u256('amount_after_fees'),
        _text('ui_fee_receiver'),
        _u256('ui_fee_receiver_factor'),
        _u256('ui_fee_amount'),
    )
    op.create_index(
        'ix_swap_fees_collected_market_token',
        'swap_fees_collected',
        ['market', 'token'],
        schema='domain',
    )

    _event_table(
        'order_executions',
        _text('secondary_order_type'),
    )
    op.create_index(
        'ix_order_executions_primary_key',
        'order_executions',
        ['primary_key'],
        schema='domain',
    )

    op.create_table(
        'last_indexed_block',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('block_number', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_last_indexed_block'),
        schema='indexer',
    )


def downgrade() -> None:
    op.drop_table('last_indexed_block', schema='indexer')
    for table in (
        'order_executions',
        'swap_fees_collected',
        'position_increases',
        'pool_amount_updates',
        'swap_infos',
        'markets',
        'withdrawals',
        'deposits',
        'orders',
    ):
        op.drop_table(table, schema='domain')
