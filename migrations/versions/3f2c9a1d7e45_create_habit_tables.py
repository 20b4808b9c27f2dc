"""Create user, habit and habit_completion tables

Revision ID: 3f2c9a1d7e45
Revises:
Create Date: 2026-10-19 09:10:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f2c9a1d7e45'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('public_id', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('password_hash', sa.String(length=200), nullable=False),
        sa.Column('date_joined', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('public_id')
    )
    op.create_table('habit',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color', sa.String(length=7), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'name', name='_user_habit_name_uc')
    )
    with op.batch_alter_table('habit', schema=None) as batch_op:
        batch_op.create_index('ix_habit_user_id', ['user_id'], unique=False)

    op.create_table('habit_completion',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('habit_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['habit_id'], ['habit.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('habit_id', 'date', name='_habit_date_uc')
    )
    with op.batch_alter_table('habit_completion', schema=None) as batch_op:
        batch_op.create_index('ix_habit_completion_habit_id', ['habit_id'], unique=False)


def downgrade():
    with op.batch_alter_table('habit_completion', schema=None) as batch_op:
        batch_op.drop_index('ix_habit_completion_habit_id')

    op.drop_table('habit_completion')

    with op.batch_alter_table('habit', schema=None) as batch_op:
        batch_op.drop_index('ix_habit_user_id')

    op.drop_table('habit')
    op.drop_table('user')
