"""Create habit tracking tables

Revision ID: create_habit_tracking_tables
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'create_habit_tracking_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create habits table
    op.create_table('habits',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('emoji', sa.String(length=16), nullable=True),
        sa.Column('color', sa.String(length=32), nullable=True),
        sa.Column('frequency', sa.String(length=20), nullable=False),
        sa.Column('weekly_days', sa.JSON(), nullable=True),
        sa.Column('target_type', sa.String(length=20), nullable=False),
        sa.Column('target_value', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_habits_id'), 'habits', ['id'], unique=False)
    op.create_index(op.f('ix_habits_user_id'), 'habits', ['user_id'], unique=False)
    op.create_index(op.f('ix_habits_frequency'), 'habits', ['frequency'], unique=False)
    op.create_index(op.f('ix_habits_is_active'), 'habits', ['is_active'], unique=False)
    op.create_index(
        'uq_habits_user_active_name', 'habits', ['user_id', 'name'], unique=True,
        sqlite_where=sa.text('is_active'), postgresql_where=sa.text('is_active'),
    )

    # Create user_settings table
    op.create_table('user_settings',
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('timezone_id', sa.String(length=32), nullable=True),
        sa.Column('timezone_offset_minutes', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('user_id')
    )

    # Create daily_progress table, one row per user and calendar day
    op.create_table('daily_progress',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('habits_data', sa.JSON(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'date', name='uq_daily_progress_user_date')
    )
    op.create_index(op.f('ix_daily_progress_id'), 'daily_progress', ['id'], unique=False)
    op.create_index(op.f('ix_daily_progress_user_id'), 'daily_progress', ['user_id'], unique=False)
    op.create_index(op.f('ix_daily_progress_date'), 'daily_progress', ['date'], unique=False)

    # Create stats_summaries table
    op.create_table('stats_summaries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('total_habits', sa.Integer(), nullable=False),
        sa.Column('completed_habits', sa.Integer(), nullable=False),
        sa.Column('completion_rate', sa.Float(), nullable=False),
        sa.Column('seven_day_completion_rate', sa.Float(), nullable=False),
        sa.Column('best_streak', sa.Integer(), nullable=False),
        sa.Column('best_day', sa.JSON(), nullable=True),
        sa.Column('worst_day', sa.JSON(), nullable=True),
        sa.Column('last_updated', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'date', name='uq_stats_summary_user_date')
    )
    op.create_index(op.f('ix_stats_summaries_id'), 'stats_summaries', ['id'], unique=False)
    op.create_index(op.f('ix_stats_summaries_user_id'), 'stats_summaries', ['user_id'], unique=False)

    # Create health_records table
    op.create_table('health_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('weight', sa.Float(), nullable=True),
        sa.Column('height', sa.Float(), nullable=True),
        sa.Column('bmi', sa.Float(), nullable=True),
        sa.Column('steps', sa.Integer(), nullable=True),
        sa.Column('distance', sa.Float(), nullable=True),
        sa.Column('calories_burned', sa.Float(), nullable=True),
        sa.Column('active_energy', sa.Float(), nullable=True),
        sa.Column('resting_energy', sa.Float(), nullable=True),
        sa.Column('exercise_minutes', sa.Integer(), nullable=True),
        sa.Column('stand_hours', sa.Float(), nullable=True),
        sa.Column('blood_pressure', sa.String(length=16), nullable=True),
        sa.Column('heart_rate', sa.Integer(), nullable=True),
        sa.Column('blood_oxygen', sa.Float(), nullable=True),
        sa.Column('body_temperature', sa.Float(), nullable=True),
        sa.Column('sleep_hours', sa.Float(), nullable=True),
        sa.Column('sleep_quality', sa.String(length=16), nullable=True),
        sa.Column('water_intake', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('source', sa.String(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_health_records_id'), 'health_records', ['id'], unique=False)
    op.create_index(op.f('ix_health_records_user_id'), 'health_records', ['user_id'], unique=False)
    op.create_index(op.f('ix_health_records_date'), 'health_records', ['date'], unique=False)
    op.create_index(op.f('ix_health_records_source'), 'health_records', ['source'], unique=False)


def downgrade():
    # Drop health_records table
    op.drop_index(op.f('ix_health_records_source'), table_name='health_records')
    op.drop_index(op.f('ix_health_records_date'), table_name='health_records')
    op.drop_index(op.f('ix_health_records_user_id'), table_name='health_records')
    op.drop_index(op.f('ix_health_records_id'), table_name='health_records')
    op.drop_table('health_records')

    # Drop stats_summaries table
    op.drop_index(op.f('ix_stats_summaries_user_id'), table_name='stats_summaries')
    op.drop_index(op.f('ix_stats_summaries_id'), table_name='stats_summaries')
    op.drop_table('stats_summaries')

    # Drop daily_progress table
    op.drop_index(op.f('ix_daily_progress_date'), table_name='daily_progress')
    op.drop_index(op.f('ix_daily_progress_user_id'), table_name='daily_progress')
    op.drop_index(op.f('ix_daily_progress_id'), table_name='daily_progress')
    op.drop_table('daily_progress')

    # Drop user_settings table
    op.drop_table('user_settings')

    # Drop habits table
    op.drop_index('uq_habits_user_active_name', table_name='habits')
    op.drop_index(op.f('ix_habits_is_active'), table_name='habits')
    op.drop_index(op.f('ix_habits_frequency'), table_name='habits')
    op.drop_index(op.f('ix_habits_user_id'), table_name='habits')
    op.drop_index(op.f('ix_habits_id'), table_name='habits')
    op.drop_table('habits')
