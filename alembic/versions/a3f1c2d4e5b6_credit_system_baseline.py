"""credit_system_baseline

Revision ID: a3f1c2d4e5b6
Revises:
Create Date: 2026-01-12 09:14:22.418305

Creates users, wallets, daily_free_credits, tool_configs, credit_config
and ai_requests, then seeds the default tool configs and pricing.
Tables that already exist are left untouched.
"""
import json
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

from app.core.credits import DAILY_FREE_CREDITS_KEY, DEFAULT_TOOL_CONFIGS, DEFAULT_TOOL_PRICING, TOOL_PRICING_KEY


# revision identifiers, used by Alembic.
revision: str = 'a3f1c2d4e5b6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEFAULT_DAILY_FREE_CREDITS = 10


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('full_name', sa.String(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('role', sa.String(), nullable=False, server_default='user'),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    if not table_exists('wallets'):
        op.create_table('wallets',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('paid_credits', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.CheckConstraint('paid_credits >= 0', name='ck_wallets_paid_credits_non_negative'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_wallets_id'), 'wallets', ['id'], unique=False)
        op.create_index(op.f('ix_wallets_user_id'), 'wallets', ['user_id'], unique=True)

    if not table_exists('daily_free_credits'):
        op.create_table('daily_free_credits',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('used_credits', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.CheckConstraint('used_credits >= 0', name='ck_daily_free_credits_used_non_negative'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'date', name='uq_daily_free_credits_user_date')
        )
        op.create_index(op.f('ix_daily_free_credits_id'), 'daily_free_credits', ['id'], unique=False)
        op.create_index(op.f('ix_daily_free_credits_user_id'), 'daily_free_credits', ['user_id'], unique=False)
        op.create_index(op.f('ix_daily_free_credits_date'), 'daily_free_credits', ['date'], unique=False)

    if not table_exists('tool_configs'):
        op.create_table('tool_configs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('tool_id', sa.String(length=50), nullable=False),
            sa.Column('tool_name', sa.String(), nullable=False),
            sa.Column('description', sa.String(), nullable=True),
            sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('min_chars', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('max_chars', sa.Integer(), nullable=False, server_default='10000'),
            sa.Column('cooldown_seconds', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('cost_multiplier', sa.Numeric(precision=6, scale=2), nullable=False, server_default='1.0'),
            sa.Column('model_provider', sa.String(), nullable=True),
            sa.Column('model_name', sa.String(), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_tool_configs_id'), 'tool_configs', ['id'], unique=False)
        op.create_index(op.f('ix_tool_configs_tool_id'), 'tool_configs', ['tool_id'], unique=True)

        tool_configs = sa.table('tool_configs',
            sa.column('tool_id', sa.String),
            sa.column('tool_name', sa.String),
            sa.column('description', sa.String),
            sa.column('enabled', sa.Boolean),
            sa.column('min_chars', sa.Integer),
            sa.column('max_chars', sa.Integer),
            sa.column('cooldown_seconds', sa.Integer),
            sa.column('cost_multiplier', sa.Numeric),
            sa.column('model_provider', sa.String),
            sa.column('model_name', sa.String),
        )
        op.bulk_insert(tool_configs, [dict(item) for item in DEFAULT_TOOL_CONFIGS])

    if not table_exists('credit_config'):
        op.create_table('credit_config',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('config_key', sa.String(length=100), nullable=False),
            sa.Column('config_value', sa.Text(), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_credit_config_id'), 'credit_config', ['id'], unique=False)
        op.create_index(op.f('ix_credit_config_config_key'), 'credit_config', ['config_key'], unique=True)

        credit_config = sa.table('credit_config',
            sa.column('config_key', sa.String),
            sa.column('config_value', sa.Text),
        )
        op.bulk_insert(credit_config, [
            {'config_key': TOOL_PRICING_KEY, 'config_value': json.dumps(DEFAULT_TOOL_PRICING)},
            {'config_key': DAILY_FREE_CREDITS_KEY, 'config_value': str(DEFAULT_DAILY_FREE_CREDITS)},
        ])

    if not table_exists('ai_requests'):
        op.create_table('ai_requests',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('request_id', sa.String(length=36), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('tool_type', sa.String(length=50), nullable=False),
            sa.Column('credits_used', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
            sa.Column('processing_time_ms', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('error_message', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
            sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_ai_requests_id'), 'ai_requests', ['id'], unique=False)
        op.create_index(op.f('ix_ai_requests_request_id'), 'ai_requests', ['request_id'], unique=True)
        op.create_index(op.f('ix_ai_requests_user_id'), 'ai_requests', ['user_id'], unique=False)
        op.create_index(op.f('ix_ai_requests_tool_type'), 'ai_requests', ['tool_type'], unique=False)
        op.create_index(op.f('ix_ai_requests_created_at'), 'ai_requests', ['created_at'], unique=False)
        op.create_index(
            'idx_ai_requests_user_tool_status_created', 'ai_requests',
            ['user_id', 'tool_type', 'status', 'created_at'], unique=False
        )


def downgrade() -> None:
    op.drop_table('ai_requests')
    op.drop_table('credit_config')
    op.drop_table('tool_configs')
    op.drop_table('daily_free_credits')
    op.drop_table('wallets')
    op.drop_table('users')
