"""Initial schema: library, scheduling state and practice sessions

Revision ID: 001_initial_schema
Revises: 
Create Date: 2025-03-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


readiness_level = sa.Enum('NEW', 'LEARNING', 'REVIEW', 'MASTERED', name='readinesslevel')
spot_priority = sa.Enum('LOW', 'MEDIUM', 'HIGH', name='spotpriority')
spot_color = sa.Enum('RED', 'YELLOW', 'GREEN', 'BLUE', name='spotcolor')
spot_result = sa.Enum('EXCELLENT', 'GOOD', 'FAIR', 'POOR', name='spotresult')
session_type = sa.Enum('SMART', 'CRITICAL', 'BALANCED', 'MAINTENANCE', 'WARMUP', 'CUSTOM', name='sessiontype')
session_status = sa.Enum('ACTIVE', 'COMPLETED', 'CANCELLED', name='sessionstatus')
spot_session_status = sa.Enum('PENDING', 'ACTIVE', 'COMPLETED', name='spotsessionstatus')


def upgrade() -> None:
    # Create project table
    op.create_table(
        'project',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('concert_date', sa.DateTime(), nullable=True),
        sa.Column('daily_goal_minutes', sa.Integer(), nullable=False),
        sa.Column('created_time', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_project_name'), 'project', ['name'], unique=False)
    
    # Create piece table
    op.create_table(
        'piece',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('composer', sa.String(), nullable=True),
        sa.Column('project_id', sa.String(), nullable=True),
        sa.Column('created_time', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['project.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_piece_project_id'), 'piece', ['project_id'], unique=False)
    
    # Create spot table
    op.create_table(
        'spot',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('piece_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('page_number', sa.Integer(), nullable=False),
        sa.Column('priority', spot_priority, nullable=False),
        sa.Column('readiness_level', readiness_level, nullable=False),
        sa.Column('color', spot_color, nullable=False),
        sa.Column('next_due', sa.DateTime(), nullable=True),
        sa.Column('last_practiced', sa.DateTime(), nullable=True),
        sa.Column('last_result', spot_result, nullable=True),
        sa.Column('practice_count', sa.Integer(), nullable=False),
        sa.Column('success_count', sa.Integer(), nullable=False),
        sa.Column('failure_count', sa.Integer(), nullable=False),
        sa.Column('interval_hours', sa.Integer(), nullable=False),
        sa.Column('recommended_minutes', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_time', sa.DateTime(), nullable=False),
        sa.Column('updated_time', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['piece_id'], ['piece.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_spot_piece_id'), 'spot', ['piece_id'], unique=False)
    op.create_index(op.f('ix_spot_next_due'), 'spot', ['next_due'], unique=False)
    
    # Create spot_history table
    op.create_table(
        'spot_history',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('spot_id', sa.String(), nullable=False),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('result', spot_result, nullable=False),
        sa.Column('practice_minutes', sa.Integer(), nullable=False),
        sa.Column('notes', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['spot_id'], ['spot.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_spot_history_spot_id'), 'spot_history', ['spot_id'], unique=False)
    op.create_index(op.f('ix_spot_history_timestamp'), 'spot_history', ['timestamp'], unique=False)
    
    # Create practice_session table
    op.create_table(
        'practice_session',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('session_type', session_type, nullable=False),
        sa.Column('status', session_status, nullable=False),
        sa.Column('planned_minutes', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('paused_seconds', sa.Float(), nullable=False),
        sa.Column('project_id', sa.String(), nullable=True),
        sa.Column('created_time', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['project_id'], ['project.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_practice_session_project_id'), 'practice_session', ['project_id'], unique=False)
    
    # Create spot_session table
    op.create_table(
        'spot_session',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('spot_id', sa.String(), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('allocated_minutes', sa.Integer(), nullable=False),
        sa.Column('status', spot_session_status, nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('paused_seconds', sa.Float(), nullable=False),
        sa.Column('result', spot_result, nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['session_id'], ['practice_session.id'], ),
        sa.ForeignKeyConstraint(['spot_id'], ['spot.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_spot_session_session_id'), 'spot_session', ['session_id'], unique=False)
    op.create_index(op.f('ix_spot_session_spot_id'), 'spot_session', ['spot_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_spot_session_spot_id'), table_name='spot_session')
    op.drop_index(op.f('ix_spot_session_session_id'), table_name='spot_session')
    op.drop_table('spot_session')
    op.drop_index(op.f('ix_practice_session_project_id'), table_name='practice_session')
    op.drop_table('practice_session')
    op.drop_index(op.f('ix_spot_history_timestamp'), table_name='spot_history')
    op.drop_index(op.f('ix_spot_history_spot_id'), table_name='spot_history')
    op.drop_table('spot_history')
    op.drop_index(op.f('ix_spot_next_due'), table_name='spot')
    op.drop_index(op.f('ix_spot_piece_id'), table_name='spot')
    op.drop_table('spot')
    op.drop_index(op.f('ix_piece_project_id'), table_name='piece')
    op.drop_table('piece')
    op.drop_index(op.f('ix_project_name'), table_name='project')
    op.drop_table('project')
    
    bind = op.get_bind()
    for enum_type in (
        spot_session_status, session_status, session_type,
        spot_result, spot_color, spot_priority, readiness_level,
    ):
        enum_type.drop(bind, checkfirst=True)
