"""initial schema

Revision ID: a1c4e0f2b7d3
Revises:
Create Date: 2026-10-19 10:12:44.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c4e0f2b7d3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'tbl_users',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('email', sa.String(320), nullable=False, unique=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('name', sa.String(100), nullable=True),
        sa.Column('role', sa.String(5), nullable=False, server_default='user'),
        sa.Column('banned', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    op.create_table(
        'tbl_mstr_plans',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.String(32), nullable=False, unique=True),
        sa.Column('name', sa.String(64), nullable=False),
        sa.Column('price_monthly', sa.Integer(), nullable=False),
        sa.Column('daily_video_limit', sa.Integer(), nullable=False),
        sa.Column('duration_limit', sa.Integer(), nullable=False),
        sa.Column('resolution', sa.String(5), nullable=False),
        sa.Column('has_watermark', sa.Boolean(), nullable=False),
        sa.Column('custom_ai_models', sa.Boolean(), nullable=False),
    )

    op.create_table(
        'tbl_subscriptions',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('tbl_users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('tbl_mstr_plans.id'), nullable=False),
        sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
    )
    op.create_index('ix_subscriptions_user', 'tbl_subscriptions', ['user_id'])
    # At most one active subscription per user
    op.create_index(
        'uq_subscriptions_active_user',
        'tbl_subscriptions',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text('active'),
        sqlite_where=sa.text('active'),
    )

    op.create_table(
        'tbl_videos',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('tbl_users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('original_text', sa.Text(), nullable=False),
        sa.Column('format', sa.String(14), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('resolution', sa.String(5), nullable=False),
        sa.Column('ai_model', sa.String(64), nullable=True),
        sa.Column('status', sa.String(10), nullable=False),
        sa.Column('video_url', sa.Text(), nullable=True),
        sa.Column('thumbnail_url', sa.Text(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('processing_result', sa.Text(), nullable=True),
        sa.Column('sections', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    )
    op.create_index('ix_videos_user_created', 'tbl_videos', ['user_id', 'created_at'])

    op.create_table(
        'tbl_daily_usage',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('tbl_users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('usage_date', sa.Date(), nullable=False),
        sa.Column('videos_created', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.UniqueConstraint('user_id', 'usage_date', name='uq_daily_usage_user_date'),
    )

    op.create_table(
        'tbl_api_configs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('updated_by', sa.Uuid(), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True, server_default=sa.text('now()')),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('tbl_api_configs')
    op.drop_table('tbl_daily_usage')
    op.drop_index('ix_videos_user_created', table_name='tbl_videos')
    op.drop_table('tbl_videos')
    op.drop_index('uq_subscriptions_active_user', table_name='tbl_subscriptions')
    op.drop_index('ix_subscriptions_user', table_name='tbl_subscriptions')
    op.drop_table('tbl_subscriptions')
    op.drop_table('tbl_mstr_plans')
    op.drop_table('tbl_users')
