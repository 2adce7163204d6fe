"""Initial migration - question bank, attempts and responses

Revision ID: 0_initial
Revises: 
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Create enums ──────────────────────────────────────────────────
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE difficulty_enum AS ENUM ('EASY', 'MEDIUM', 'HARD');
        EXCEPTION WHEN duplicate_object THEN null;
        END $$;
    """)
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE attempt_status_enum AS ENUM ('IN_PROGRESS', 'COMPLETED', 'ABANDONED', 'EXPIRED');
        EXCEPTION WHEN duplicate_object THEN null;
        END $$;
    """)

    # ── questions table ───────────────────────────────────────────────
    op.create_table(
        'questions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('category', sa.String(100), nullable=False),
        sa.Column('difficulty', postgresql.ENUM('EASY', 'MEDIUM', 'HARD', name='difficulty_enum', create_type=False), nullable=False),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('correct_answer', sa.Text(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(1000), nullable=True),
        sa.Column('points', sa.Float(), nullable=False, server_default='10'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_questions_category', 'questions', ['category'])
    op.create_index('ix_questions_difficulty', 'questions', ['difficulty'])
    op.create_index('ix_questions_is_active', 'questions', ['is_active'])

    # ── quiz_attempts table ───────────────────────────────────────────
    op.create_table(
        'quiz_attempts',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('config', sa.JSON(), nullable=False),
        sa.Column('question_ids', sa.JSON(), nullable=False),
        sa.Column('status', postgresql.ENUM('IN_PROGRESS', 'COMPLETED', 'ABANDONED', 'EXPIRED', name='attempt_status_enum', create_type=False), nullable=False, server_default='IN_PROGRESS'),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('correct_answers', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_points', sa.Float(), nullable=False, server_default='0'),
        sa.Column('max_points', sa.Float(), nullable=False, server_default='0'),
        sa.Column('time_spent_seconds', sa.Float(), nullable=False, server_default='0'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('deadline_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_quiz_attempts_user_id', 'quiz_attempts', ['user_id'])
    op.create_index('ix_quiz_attempts_status', 'quiz_attempts', ['status'])
    op.create_index('ix_quiz_attempts_deadline_at', 'quiz_attempts', ['deadline_at'])

    # ── quiz_responses table ──────────────────────────────────────────
    op.create_table(
        'quiz_responses',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('attempt_id', sa.UUID(), nullable=False),
        sa.Column('question_id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('user_answer', sa.Text(), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('points_awarded', sa.Float(), nullable=False, server_default='0'),
        sa.Column('max_points', sa.Float(), nullable=False, server_default='0'),
        sa.Column('question_position', sa.Integer(), nullable=False),
        sa.Column('skipped', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('time_spent_seconds', sa.Float(), nullable=False, server_default='0'),
        sa.Column('answered_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['attempt_id'], ['quiz_attempts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['question_id'], ['questions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('attempt_id', 'question_id', name='uq_response_attempt_question'),
    )
    op.create_index('ix_quiz_responses_attempt_id', 'quiz_responses', ['attempt_id'])


def downgrade() -> None:
    op.drop_index('ix_quiz_responses_attempt_id', table_name='quiz_responses')
    op.drop_table('quiz_responses')
    op.drop_index('ix_quiz_attempts_deadline_at', table_name='quiz_attempts')
    op.drop_index('ix_quiz_attempts_status', table_name='quiz_attempts')
    op.drop_index('ix_quiz_attempts_user_id', table_name='quiz_attempts')
    op.drop_table('quiz_attempts')
    op.drop_index('ix_questions_is_active', table_name='questions')
    op.drop_index('ix_questions_difficulty', table_name='questions')
    op.drop_index('ix_questions_category', table_name='questions')
    op.drop_table('questions')
    op.execute("DROP TYPE IF EXISTS attempt_status_enum")
    op.execute("DROP TYPE IF EXISTS difficulty_enum")
