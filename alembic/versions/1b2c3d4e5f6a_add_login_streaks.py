"""add_login_streaks

Revision ID: 1b2c3d4e5f6a
Revises: 0a1b2c3d4e5f
Create Date: 2026-10-19 15:00:00.000000

일일 로그인 연속 기록 테이블 생성.
Add the streaks table for daily login streaks.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '1b2c3d4e5f6a'
down_revision: Union[str, None] = '0a1b2c3d4e5f'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # streaks — 플레이어별 연속 기록 (one row per player and streak type)
    op.create_table(
        'streaks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('player_id', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('streak_type', sa.String(20), server_default='daily_login', nullable=False),
        sa.Column('current_streak', sa.Integer(), server_default='0', nullable=False),
        sa.Column('best_streak', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_activity_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('streak_started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('milestones', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('player_id', 'streak_type', name='uq_streak_player_type'),
    )
    op.create_index('ix_streaks_player_id', 'streaks', ['player_id'])


def downgrade() -> None:
    op.drop_index('ix_streaks_player_id', table_name='streaks')
    op.drop_table('streaks')
