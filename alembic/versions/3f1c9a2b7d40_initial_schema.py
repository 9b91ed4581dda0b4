"""initial schema

Revision ID: 3f1c9a2b7d40
Revises:
Create Date: 2026-10-19 09:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2b7d40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'tasks',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('priority', sa.String(length=10), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tasks_owner_created_at', 'tasks', ['owner_id', 'created_at'])
    op.create_index('ix_tasks_owner_completed', 'tasks', ['owner_id', 'completed'])
    op.create_index('ix_tasks_owner_due_date', 'tasks', ['owner_id', 'due_date'])
    op.create_index('ix_tasks_owner_category', 'tasks', ['owner_id', 'category'])


def downgrade() -> None:
    op.drop_index('ix_tasks_owner_category', table_name='tasks')
    op.drop_index('ix_tasks_owner_due_date', table_name='tasks')
    op.drop_index('ix_tasks_owner_completed', table_name='tasks')
    op.drop_index('ix_tasks_owner_created_at', table_name='tasks')
    op.drop_table('tasks')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
