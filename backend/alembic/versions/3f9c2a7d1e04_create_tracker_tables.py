"""Create transition, milestone, task and audit_log tables

Revision ID: 3f9c2a7d1e04
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
import sqlmodel
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1e04'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the four tracker tables."""
    op.create_table(
        'transition',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('contract_name', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('contract_number', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default='NOT_STARTED'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_transition_contract_number'), 'transition', ['contract_number'])

    op.create_table(
        'milestone',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('priority', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default='MEDIUM'),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default='PENDING'),
        sa.Column('transition_id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['transition_id'], ['transition.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_milestone_due_date'), 'milestone', ['due_date'])
    op.create_index(op.f('ix_milestone_transition_id'), 'milestone', ['transition_id'])

    op.create_table(
        'task',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('priority', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default='MEDIUM'),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default='NOT_STARTED'),
        sa.Column('transition_id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('milestone_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('parent_task_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['transition_id'], ['transition.id']),
        sa.ForeignKeyConstraint(['milestone_id'], ['milestone.id']),
        sa.ForeignKeyConstraint(['parent_task_id'], ['task.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_task_due_date'), 'task', ['due_date'])
    op.create_index(op.f('ix_task_transition_id'), 'task', ['transition_id'])
    op.create_index(op.f('ix_task_parent_task_id'), 'task', ['parent_task_id'])

    op.create_table(
        'audit_log',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('entity_type', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('entity_id', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('action', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('user_id', sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_audit_log_entity_type'), 'audit_log', ['entity_type'])
    op.create_index(op.f('ix_audit_log_entity_id'), 'audit_log', ['entity_id'])


def downgrade() -> None:
    """Drop the tracker tables."""
    op.drop_index(op.f('ix_audit_log_entity_id'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_entity_type'), table_name='audit_log')
    op.drop_table('audit_log')
    op.drop_index(op.f('ix_task_parent_task_id'), table_name='task')
    op.drop_index(op.f('ix_task_transition_id'), table_name='task')
    op.drop_index(op.f('ix_task_due_date'), table_name='task')
    op.drop_table('task')
    op.drop_index(op.f('ix_milestone_transition_id'), table_name='milestone')
    op.drop_index(op.f('ix_milestone_due_date'), table_name='milestone')
    op.drop_table('milestone')
    op.drop_index(op.f('ix_transition_contract_number'), table_name='transition')
    op.drop_table('transition')
