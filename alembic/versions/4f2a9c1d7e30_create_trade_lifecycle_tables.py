"""Create users, wheels, trades and positions tables

Revision ID: 4f2a9c1d7e30
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f2a9c1d7e30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the trade lifecycle tables.

    trades and positions reference each other, so trades is created
    without its position foreign key and the key is added afterwards.
    """
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('subscription_tier', sa.String(), nullable=False),
        sa.Column('subscription_status', sa.String(), nullable=True),
        sa.Column('subscription_ends_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'wheels',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('ticker', sa.String(length=6), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('cycle_count', sa.Integer(), nullable=False),
        sa.Column('total_premiums', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_realized_pl', sa.Numeric(12, 2), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('last_activity_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_wheels_user_id', 'wheels', ['user_id'])
    op.create_index('ix_wheels_ticker', 'wheels', ['ticker'])

    op.create_table(
        'trades',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('ticker', sa.String(length=6), nullable=False),
        sa.Column('option_type', sa.String(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('strike_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('premium', sa.Numeric(12, 2), nullable=False),
        sa.Column('contracts', sa.Integer(), nullable=False),
        sa.Column('shares', sa.Integer(), nullable=False),
        sa.Column('expiration_date', sa.Date(), nullable=False),
        sa.Column('open_date', sa.DateTime(), nullable=False),
        sa.Column('close_date', sa.DateTime(), nullable=True),
        sa.Column('close_premium', sa.Numeric(12, 2), nullable=True),
        sa.Column('realized_gain_loss', sa.Numeric(12, 2), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('position_id', sa.String(length=36), nullable=True),
        sa.Column('wheel_id', sa.String(length=36), nullable=True),
        sa.Column('roll_from_trade_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['wheel_id'], ['wheels.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['roll_from_trade_id'], ['trades.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_trades_user_id', 'trades', ['user_id'])
    op.create_index('ix_trades_ticker', 'trades', ['ticker'])
    op.create_index('ix_trades_status', 'trades', ['status'])
    op.create_index('ix_trades_expiration_date', 'trades', ['expiration_date'])
    op.create_index('ix_trades_position_id', 'trades', ['position_id'])
    op.create_index('ix_trades_wheel_id', 'trades', ['wheel_id'])

    op.create_table(
        'positions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('ticker', sa.String(length=6), nullable=False),
        sa.Column('shares', sa.Integer(), nullable=False),
        sa.Column('cost_basis', sa.Numeric(14, 4), nullable=False),
        sa.Column('total_cost', sa.Numeric(12, 2), nullable=False),
        sa.Column('current_value', sa.Numeric(12, 2), nullable=True),
        sa.Column('realized_gain_loss', sa.Numeric(12, 2), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('acquired_date', sa.DateTime(), nullable=False),
        sa.Column('closed_date', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('assignment_trade_id', sa.String(length=36), nullable=False),
        sa.Column('wheel_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assignment_trade_id'], ['trades.id']),
        sa.ForeignKeyConstraint(['wheel_id'], ['wheels.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('assignment_trade_id'),
    )
    op.create_index('ix_positions_user_id', 'positions', ['user_id'])
    op.create_index('ix_positions_ticker', 'positions', ['ticker'])
    op.create_index('ix_positions_status', 'positions', ['status'])
    op.create_index('ix_positions_wheel_id', 'positions', ['wheel_id'])

    with op.batch_alter_table('trades') as batch_op:
        batch_op.create_foreign_key(
            'fk_trades_position_id', 'positions', ['position_id'], ['id']
        )


def downgrade() -> None:
    """Drop the trade lifecycle tables."""
    with op.batch_alter_table('trades') as batch_op:
        batch_op.drop_constraint('fk_trades_position_id', type_='foreignkey')

    op.drop_index('ix_positions_wheel_id', table_name='positions')
    op.drop_index('ix_positions_status', table_name='positions')
    op.drop_index('ix_positions_ticker', table_name='positions')
    op.drop_index('ix_positions_user_id', table_name='positions')
    op.drop_table('positions')

    op.drop_index('ix_trades_wheel_id', table_name='trades')
    op.drop_index('ix_trades_position_id', table_name='trades')
    op.drop_index('ix_trades_expiration_date', table_name='trades')
    op.drop_index('ix_trades_status', table_name='trades')
    op.drop_index('ix_trades_ticker', table_name='trades')
    op.drop_index('ix_trades_user_id', table_name='trades')
    op.drop_table('trades')

    op.drop_index('ix_wheels_ticker', table_name='wheels')
    op.drop_index('ix_wheels_user_id', table_name='wheels')
    op.drop_table('wheels')

    op.drop_table('users')
