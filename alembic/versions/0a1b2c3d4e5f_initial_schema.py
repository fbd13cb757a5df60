"""initial_schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19 09:00:00.000000

플레이어, 포인트, 코스/레슨, 퀴즈 문항, 진행, 업적, 인증 테이블 생성.
Create player, points, course/lesson, quiz question, progress, achievement
and certification tables.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '0a1b2c3d4e5f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # players — 플레이어 계정 (Player accounts, role user/editor/admin)
    op.create_table(
        'players',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('display_name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), server_default='user', nullable=False),
        sa.Column('locale', sa.String(10), server_default='hu', nullable=False),
        sa.Column('is_premium', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('premium_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('is_banned', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('ban_reason', sa.Text(), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_players_email', 'players', ['email'], unique=True)

    # player_progressions — 레벨/XP (Level and XP, one row per player)
    op.create_table(
        'player_progressions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('player_id', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('level', sa.Integer(), server_default='1', nullable=False),
        sa.Column('current_xp', sa.Integer(), server_default='0', nullable=False),
        sa.Column('xp_to_next_level', sa.Integer(), server_default='110', nullable=False),
        sa.Column('total_xp', sa.Integer(), server_default='0', nullable=False),
        sa.Column('title', sa.String(50), nullable=True),
        sa.Column('lessons_completed', sa.Integer(), server_default='0', nullable=False),
        sa.Column('courses_completed', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(),
    )

    # points_wallets / points_transactions — 포인트 지갑과 원장 (Wallet and ledger)
    op.create_table(
        'points_wallets',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('player_id', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('current_balance', sa.Integer(), server_default='0', nullable=False),
        sa.Column('lifetime_earned', sa.Integer(), server_default='0', nullable=False),
        sa.Column('lifetime_spent', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(),
        sa.CheckConstraint('current_balance >= 0', name='ck_wallet_balance_non_negative'),
    )
    op.create_table(
        'points_transactions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('player_id', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('wallet_id', UUID(as_uuid=True), sa.ForeignKey('points_wallets.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('balance_before', sa.Integer(), nullable=False),
        sa.Column('balance_after', sa.Integer(), nullable=False),
        sa.Column('source_type', sa.String(30), nullable=False),
        sa.Column('reference_id', sa.String(64), nullable=True),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('processed_by', UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('amount <> 0', name='ck_points_tx_amount_non_zero'),
        sa.CheckConstraint('balance_before + amount = balance_after', name='ck_points_tx_balance'),
    )
    op.create_index('ix_points_tx_player_created', 'points_transactions', ['player_id', 'created_at'])

    # courses / lessons — 코스와 일자별 레슨 (Courses and day-numbered lessons)
    op.create_table(
        'courses',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('course_id', sa.String(100), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), server_default='', nullable=False),
        sa.Column('language', sa.String(10), server_default='hu', nullable=False),
        sa.Column('thumbnail', sa.String(500), nullable=True),
        sa.Column('duration_days', sa.Integer(), server_default='30', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('requires_premium', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('lesson_points', sa.Integer(), server_default='10', nullable=False),
        sa.Column('lesson_xp', sa.Integer(), server_default='25', nullable=False),
        sa.Column('completion_points', sa.Integer(), server_default='100', nullable=False),
        sa.Column('completion_xp', sa.Integer(), server_default='250', nullable=False),
        sa.Column('lesson_quiz_policy', sa.JSON(), nullable=False),
        sa.Column('certification', sa.JSON(), nullable=False),
        sa.Column('assigned_editors', sa.JSON(), nullable=False),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_courses_course_id', 'courses', ['course_id'], unique=True)

    op.create_table(
        'lessons',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('lesson_id', sa.String(120), nullable=False),
        sa.Column('course_id', UUID(as_uuid=True), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_number', sa.Integer(), nullable=False),
        sa.Column('language', sa.String(10), server_default='hu', nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text(), server_default='', nullable=False),
        sa.Column('email_subject', sa.String(200), nullable=True),
        sa.Column('email_body', sa.Text(), nullable=True),
        sa.Column('quiz_config', sa.JSON(), nullable=False),
        sa.Column('points_reward', sa.Integer(), nullable=True),
        sa.Column('xp_reward', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('display_order', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('course_id', 'day_number', 'display_order', name='uq_lesson_course_day_order'),
    )
    op.create_index('ix_lessons_lesson_id', 'lessons', ['lesson_id'], unique=True)
    op.create_index('ix_lessons_course_id', 'lessons', ['course_id'])

    # quiz_questions — 레슨 퀴즈 및 최종 시험 문항 (Lesson quiz and final exam questions)
    op.create_table(
        'quiz_questions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('question', sa.String(500), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('correct_index', sa.Integer(), nullable=False),
        sa.Column('difficulty', sa.String(10), server_default='MEDIUM', nullable=False),
        sa.Column('category', sa.String(100), server_default='General', nullable=False),
        sa.Column('question_type', sa.String(50), nullable=True),
        sa.Column('hashtags', sa.JSON(), nullable=False),
        sa.Column('lesson_id', sa.String(120), nullable=True),
        sa.Column('course_id', UUID(as_uuid=True), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=True),
        sa.Column('is_course_specific', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('show_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('correct_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_by', UUID(as_uuid=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_quiz_questions_lesson_id', 'quiz_questions', ['lesson_id'])
    op.create_index('ix_quiz_questions_pool', 'quiz_questions', ['course_id', 'is_course_specific', 'is_active'])

    # course_progress / assessment_results — 코스 진행과 레슨 퀴즈 결과
    # Course progress and lesson quiz results
    op.create_table(
        'course_progress',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('player_id', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', UUID(as_uuid=True), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('current_day', sa.Integer(), server_default='1', nullable=False),
        sa.Column('completed_days', sa.JSON(), nullable=False),
        sa.Column('assessment_results', sa.JSON(), nullable=False),
        sa.Column('total_points_earned', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_xp_earned', sa.Integer(), server_default='0', nullable=False),
        sa.Column('status', sa.String(20), server_default='not_started', nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_accessed_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('player_id', 'course_id', name='uq_course_progress_player_course'),
    )
    op.create_index('ix_course_progress_player_id', 'course_progress', ['player_id'])
    op.create_index('ix_course_progress_course_id', 'course_progress', ['course_id'])

    op.create_table(
        'assessment_results',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('player_id', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', UUID(as_uuid=True), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lesson_id', sa.String(120), nullable=False),
        sa.Column('day_number', sa.Integer(), nullable=False),
        sa.Column('correct_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('total_questions', sa.Integer(), server_default='0', nullable=False),
        sa.Column('score_percent', sa.Float(), server_default='0', nullable=False),
        sa.Column('passed', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_assessment_results_player_id', 'assessment_results', ['player_id'])

    # achievements / achievement_unlocks — 업적 정의와 달성 기록
    # Achievement definitions and unlocks
    op.create_table(
        'achievements',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('key', sa.String(100), nullable=False, unique=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), server_default='', nullable=False),
        sa.Column('category', sa.String(30), server_default='course', nullable=False),
        sa.Column('criteria_type', sa.String(30), nullable=False),
        sa.Column('criteria_target', sa.Integer(), server_default='1', nullable=False),
        sa.Column('course_id', UUID(as_uuid=True), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=True),
        sa.Column('points_reward', sa.Integer(), server_default='0', nullable=False),
        sa.Column('xp_reward', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('unlock_count', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'achievement_unlocks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('player_id', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('achievement_id', UUID(as_uuid=True), sa.ForeignKey('achievements.id', ondelete='CASCADE'), nullable=False),
        sa.Column('current_value', sa.Integer(), server_default='0', nullable=False),
        sa.Column('unlocked_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('player_id', 'achievement_id', name='uq_achievement_unlock_player_achievement'),
    )
    op.create_index('ix_achievement_unlocks_player_id', 'achievement_unlocks', ['player_id'])

    # certificate_entitlements — 최종 시험 응시 권한 (Final exam entitlements)
    op.create_table(
        'certificate_entitlements',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('player_id', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', UUID(as_uuid=True), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('source', sa.String(20), nullable=False),
        sa.Column('points_spent', sa.Integer(), server_default='0', nullable=False),
        sa.Column('transaction_id', UUID(as_uuid=True), sa.ForeignKey('points_transactions.id', ondelete='SET NULL'), nullable=True),
        sa.Column('granted_by', UUID(as_uuid=True), nullable=True),
        sa.Column('granted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('player_id', 'course_id', name='uq_entitlement_player_course'),
    )

    # final_exam_attempts — 최종 시험 응시 (Final exam attempts)
    op.create_table(
        'final_exam_attempts',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('player_id', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', UUID(as_uuid=True), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('pool_course_id', UUID(as_uuid=True), nullable=False),
        sa.Column('status', sa.String(20), server_default='IN_PROGRESS', nullable=False),
        sa.Column('question_order', sa.JSON(), nullable=False),
        sa.Column('answer_orders', sa.JSON(), nullable=False),
        sa.Column('answers', sa.JSON(), nullable=False),
        sa.Column('current_index', sa.Integer(), server_default='0', nullable=False),
        sa.Column('correct_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('score_percent_raw', sa.Float(), nullable=True),
        sa.Column('score_percent_integer', sa.Integer(), nullable=True),
        sa.Column('passed', sa.Boolean(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('discarded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('discard_reason', sa.String(50), nullable=True),
    )
    op.create_index(
        'ix_final_exam_attempts_player_course_status', 'final_exam_attempts', ['player_id', 'course_id', 'status']
    )

    # certificates — 발급된 인증서 (Issued certificates, one per player/course)
    op.create_table(
        'certificates',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('certificate_id', sa.String(36), nullable=False, unique=True),
        sa.Column('player_id', UUID(as_uuid=True), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', UUID(as_uuid=True), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipient_name', sa.String(100), nullable=False),
        sa.Column('course_title', sa.String(200), nullable=False),
        sa.Column('locale', sa.String(10), server_default='hu', nullable=False),
        sa.Column('design_template_id', sa.String(100), nullable=False),
        sa.Column('credential_id', sa.String(100), nullable=False),
        sa.Column('verification_slug', sa.String(40), nullable=False),
        sa.Column('final_exam_score_percent_integer', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_attempt_id', UUID(as_uuid=True), nullable=True),
        sa.Column('issued_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(200), nullable=True),
        sa.Column('is_public', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('player_id', 'course_id', name='uq_certificate_player_course'),
    )
    op.create_index('ix_certificates_verification_slug', 'certificates', ['verification_slug'], unique=True)

    # certification_settings — 전역 인증서 설정 (Global certificate settings)
    op.create_table(
        'certification_settings',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('key', sa.String(50), nullable=False, unique=True),
        sa.Column('default_template_id', sa.String(100), nullable=True),
        sa.Column('template_variant_ids', sa.JSON(), nullable=False),
        sa.Column('template_variant_weights', sa.JSON(), nullable=False),
        sa.Column('credential_title_id', sa.String(100), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('certification_settings')
    op.drop_index('ix_certificates_verification_slug', table_name='certificates')
    op.drop_table('certificates')
    op.drop_index('ix_final_exam_attempts_player_course_status', table_name='final_exam_attempts')
    op.drop_table('final_exam_attempts')
    op.drop_table('certificate_entitlements')
    op.drop_index('ix_achievement_unlocks_player_id', table_name='achievement_unlocks')
    op.drop_table('achievement_unlocks')
    op.drop_table('achievements')
    op.drop_index('ix_assessment_results_player_id', table_name='assessment_results')
    op.drop_table('assessment_results')
    op.drop_index('ix_course_progress_course_id', table_name='course_progress')
    op.drop_index('ix_course_progress_player_id', table_name='course_progress')
    op.drop_table('course_progress')
    op.drop_index('ix_quiz_questions_pool', table_name='quiz_questions')
    op.drop_index('ix_quiz_questions_lesson_id', table_name='quiz_questions')
    op.drop_table('quiz_questions')
    op.drop_index('ix_lessons_course_id', table_name='lessons')
    op.drop_index('ix_lessons_lesson_id', table_name='lessons')
    op.drop_table('lessons')
    op.drop_index('ix_courses_course_id', table_name='courses')
    op.drop_table('courses')
    op.drop_index('ix_points_tx_player_created', table_name='points_transactions')
    op.drop_table('points_transactions')
    op.drop_table('points_wallets')
    op.drop_table('player_progressions')
    op.drop_index('ix_players_email', table_name='players')
    op.drop_table('players')
