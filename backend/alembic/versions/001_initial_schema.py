"""Initial schema

Creates the complete database schema for the Asset Ledger.

Tables:
    - assets: Asset registry with last known price
    - transactions: Ledger legs (buy, sell, trade_in, trade_out)
    - holdings: Current positions derived from the ledger
    - daily_snapshots: Per-asset daily valuations (one row per asset and day)
    - price_history: Daily closes from the market data provider

Revision ID: 001
Revises: None
Create Date: 2026-10-15

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

asset_category = sa.Enum('STOCKS', 'ETFS', 'CRYPTO', 'FIAT', name='assetcategory')
transaction_kind = sa.Enum('BUY', 'SELL', 'TRADE_IN', 'TRADE_OUT', name='transactionkind')
price_source = sa.Enum('HISTORY', 'ESTIMATE', name='pricesource')


def upgrade() -> None:
    # ==========================================================================
    # ASSETS
    # ==========================================================================
    op.create_table(
        'assets',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('symbol', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('category', asset_category, nullable=False, index=True),
        sa.Column('api_source', sa.String(), nullable=True),
        sa.Column('api_id', sa.String(), nullable=True),
        sa.Column('current_price', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('price_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    # ==========================================================================
    # TRANSACTIONS
    # ==========================================================================
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('kind', transaction_kind, nullable=False, index=True),
        sa.Column('asset_symbol', sa.String(), sa.ForeignKey('assets.symbol'), nullable=False, index=True),
        sa.Column('exchange', sa.String(), nullable=False),
        sa.Column('quantity', sa.Numeric(18, 8), nullable=False),
        sa.Column('price_per_unit', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('fees', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('notes', sa.String(), nullable=False, server_default=''),
        sa.Column('occurred_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('trade_group_id', sa.String(36), nullable=True, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_transaction_asset_occurred', 'transactions', ['asset_symbol', 'occurred_at'])

    # ==========================================================================
    # HOLDINGS
    # ==========================================================================
    op.create_table(
        'holdings',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('asset_symbol', sa.String(), sa.ForeignKey('assets.symbol'), nullable=False, unique=True, index=True),
        sa.Column('quantity', sa.Numeric(18, 8), nullable=False),
        sa.Column('avg_cost', sa.Numeric(18, 8), nullable=False),
        sa.Column('invested', sa.Numeric(18, 8), nullable=False),
        sa.Column('market_value', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('unrealized_pnl', sa.Numeric(18, 8), nullable=False, server_default='0'),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False),
    )

    # ==========================================================================
    # DAILY SNAPSHOTS
    # ==========================================================================
    op.create_table(
        'daily_snapshots',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('asset_symbol', sa.String(), sa.ForeignKey('assets.symbol'), nullable=False, index=True),
        sa.Column('snapshot_date', sa.Date(), nullable=False, index=True),
        sa.Column('quantity', sa.Numeric(18, 8), nullable=False),
        sa.Column('price_per_unit', sa.Numeric(18, 8), nullable=False),
        sa.Column('price_source', price_source, nullable=False),
        sa.Column('total_value', sa.Numeric(18, 8), nullable=False),
        sa.Column('unrealized_pnl', sa.Numeric(18, 8), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('asset_symbol', 'snapshot_date', name='uq_snapshot_asset_date'),
    )

    # ==========================================================================
    # PRICE HISTORY
    # ==========================================================================
    op.create_table(
        'price_history',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('asset_symbol', sa.String(), sa.ForeignKey('assets.symbol'), nullable=False, index=True),
        sa.Column('price_date', sa.Date(), nullable=False, index=True),
        sa.Column('price', sa.Numeric(18, 8), nullable=False),
        sa.Column('source', sa.String(50), nullable=False, server_default='yahoo'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('asset_symbol', 'price_date', name='uq_price_asset_date'),
    )


def downgrade() -> None:
    op.drop_table('price_history')
    op.drop_table('daily_snapshots')
    op.drop_table('holdings')
    op.drop_index('ix_transaction_asset_occurred', table_name='transactions')
    op.drop_table('transactions')
    op.drop_table('assets')

    bind = op.get_bind()
    price_source.drop(bind, checkfirst=True)
    transaction_kind.drop(bind, checkfirst=True)
    asset_category.drop(bind, checkfirst=True)
