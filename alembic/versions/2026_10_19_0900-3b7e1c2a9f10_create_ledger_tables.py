"""create ledger, price, snapshot and strategy tables

Revision ID: 3b7e1c2a9f10
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3b7e1c2a9f10'
down_revision = None
branch_labels = None
depends_on = None

ASSET_CATEGORIES = ('security', 'fund', 'fixed', 'wealth', 'gold', 'crypto', 'other')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # Asset catalog
    op.create_table(
        'assets',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('category', sa.Enum(*ASSET_CATEGORIES, name='assetcategory'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('ticker', sa.String(length=50), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_assets'),
    )
    op.create_index('ix_assets_id', 'assets', ['id'])

    # Quantity/cost ledger
    op.create_table(
        'transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.Column('snapshot_id', sa.Uuid(), nullable=True),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('quantity_change', sa.Float(), nullable=False),
        sa.Column('cost_change', sa.Float(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_transactions'),
        sa.ForeignKeyConstraint(
            ['asset_id'], ['assets.id'], name='fk_transactions_asset_id_assets'
        ),
    )
    op.create_index('ix_transactions_id', 'transactions', ['id'])
    op.create_index('ix_transactions_asset_id', 'transactions', ['asset_id'])
    op.create_index('ix_transactions_snapshot_id', 'transactions', ['snapshot_id'])
    op.create_index('ix_transactions_date', 'transactions', ['date'])
    op.create_index('idx_transactions_asset_date', 'transactions', ['asset_id', 'date'])

    # Price observations
    op.create_table(
        'market_prices',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('source', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_market_prices'),
        sa.ForeignKeyConstraint(
            ['asset_id'],
            ['assets.id'],
            name='fk_market_prices_asset_id_assets',
            ondelete='CASCADE',
        ),
        sa.UniqueConstraint('asset_id', 'date', name='uq_market_price_asset_date'),
    )
    op.create_index('ix_market_prices_id', 'market_prices', ['id'])
    op.create_index('ix_market_prices_asset_id', 'market_prices', ['asset_id'])

    # Snapshot cache headers
    op.create_table(
        'snapshots',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('total_value', sa.Float(), nullable=False),
        sa.Column('total_invested', sa.Float(), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_snapshots'),
    )
    op.create_index('ix_snapshots_id', 'snapshots', ['id'])
    op.create_index('ix_snapshots_date', 'snapshots', ['date'], unique=True)

    # Strategy hierarchy
    op.create_table(
        'strategy_versions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.String(length=10), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_strategy_versions'),
    )
    op.create_index('ix_strategy_versions_id', 'strategy_versions', ['id'])
    op.create_index('ix_strategy_versions_start_date', 'strategy_versions', ['start_date'])

    op.create_table(
        'strategy_layers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('version_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('weight', sa.Float(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_strategy_layers'),
        sa.ForeignKeyConstraint(
            ['version_id'],
            ['strategy_versions.id'],
            name='fk_strategy_layers_version_id_strategy_versions',
            ondelete='CASCADE',
        ),
    )
    op.create_index('ix_strategy_layers_id', 'strategy_layers', ['id'])
    op.create_index('ix_strategy_layers_version_id', 'strategy_layers', ['version_id'])

    op.create_table(
        'strategy_targets',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('layer_id', sa.Uuid(), nullable=False),
        sa.Column('asset_id', sa.Uuid(), nullable=False),
        sa.Column('target_name', sa.String(length=255), nullable=True),
        sa.Column('weight', sa.Float(), nullable=False),
        sa.Column('color', sa.String(length=20), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_strategy_targets'),
        sa.ForeignKeyConstraint(
            ['layer_id'],
            ['strategy_layers.id'],
            name='fk_strategy_targets_layer_id_strategy_layers',
            ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['asset_id'], ['assets.id'], name='fk_strategy_targets_asset_id_assets'
        ),
    )
    op.create_index('ix_strategy_targets_id', 'strategy_targets', ['id'])
    op.create_index('ix_strategy_targets_layer_id', 'strategy_targets', ['layer_id'])
    op.create_index('ix_strategy_targets_asset_id', 'strategy_targets', ['asset_id'])


def downgrade() -> None:
    op.drop_table('strategy_targets')
    op.drop_table('strategy_layers')
    op.drop_table('strategy_versions')
    op.drop_table('snapshots')
    op.drop_table('market_prices')
    op.drop_table('transactions')
    op.drop_table('assets')
    sa.Enum(name='assetcategory').drop(op.get_bind(), checkfirst=True)
