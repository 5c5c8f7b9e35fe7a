"""create category and question tables

Revision ID: 3a7c9e1d2b40
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c9e1d2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'category',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False, unique=True),
    )
    op.create_table(
        'question',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('category_id', sa.Integer(), sa.ForeignKey('category.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('option_a', sa.Text(), nullable=False),
        sa.Column('option_b', sa.Text(), nullable=False),
        sa.Column('option_c', sa.Text(), nullable=False),
        sa.Column('option_d', sa.Text(), nullable=False),
        sa.Column('correct_option', sa.String(length=1), nullable=False),
        sa.Column('difficulty', sa.String(length=16), nullable=False, server_default='medium'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint("correct_option IN ('A','B','C','D')", name='ck_question_correct_option'),
        sa.CheckConstraint("difficulty IN ('easy','medium','hard')", name='ck_question_difficulty'),
    )
    with op.batch_alter_table('question') as batch_op:
        batch_op.create_index('ix_question_category_id', ['category_id'])
        batch_op.create_index('ix_question_difficulty', ['difficulty'])


def downgrade():
    with op.batch_alter_table('question') as batch_op:
        batch_op.drop_index('ix_question_difficulty')
        batch_op.drop_index('ix_question_category_id')
    op.drop_table('question')
    op.drop_table('category')
