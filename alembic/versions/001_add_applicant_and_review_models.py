"""Add applicant and review models

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create applicants table
    op.create_table(
        'applicants',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('auth_id', sa.String(length=255), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('gender', sa.String(length=255), nullable=False),
        sa.Column('nationality', sa.String(length=255), nullable=False),
        sa.Column('country', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=255), nullable=False),
        sa.Column('university', sa.String(length=255), nullable=False),
        sa.Column('degree', sa.String(length=255), nullable=False),
        sa.Column('year_of_study', sa.String(length=255), nullable=False),
        sa.Column('work_area', sa.String(length=255), nullable=False),
        sa.Column('skills', sa.Text(), nullable=True),
        sa.Column('hackathon_count', sa.Integer(), nullable=True),
        sa.Column('why_choose_hacker', sa.Text(), nullable=True),
        sa.Column('past_projects', sa.Text(), nullable=True),
        sa.Column('hardware_requests', sa.Text(), nullable=True),
        sa.Column('dietary_requirements', sa.String(length=255), nullable=False),
        sa.Column('t_shirt_size', sa.String(length=4), nullable=False),
        sa.Column('hear_about', sa.String(length=255), nullable=False),
        sa.Column('cv', sa.String(length=512), nullable=True),
        sa.Column('application_status', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_applicants_id'), 'applicants', ['id'], unique=False)
    op.create_index(op.f('ix_applicants_auth_id'), 'applicants', ['auth_id'], unique=True)
    op.create_index(op.f('ix_applicants_application_status'), 'applicants', ['application_status'], unique=False)
    op.create_index(op.f('ix_applicants_created_at'), 'applicants', ['created_at'], unique=False)

    # Create reviews table
    op.create_table(
        'reviews',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('applicant_id', sa.Uuid(), nullable=False),
        sa.Column('created_by_auth_id', sa.String(length=255), nullable=False),
        sa.Column('average_score', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['applicant_id'], ['applicants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('applicant_id', 'created_by_auth_id', name='uq_review_applicant_reviewer')
    )
    op.create_index(op.f('ix_reviews_id'), 'reviews', ['id'], unique=False)
    op.create_index(op.f('ix_reviews_applicant_id'), 'reviews', ['applicant_id'], unique=False)
    op.create_index(op.f('ix_reviews_created_by_auth_id'), 'reviews', ['created_by_auth_id'], unique=False)


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_index(op.f('ix_reviews_created_by_auth_id'), table_name='reviews')
    op.drop_index(op.f('ix_reviews_applicant_id'), table_name='reviews')
    op.drop_index(op.f('ix_reviews_id'), table_name='reviews')
    op.drop_table('reviews')
    op.drop_index(op.f('ix_applicants_created_at'), table_name='applicants')
    op.drop_index(op.f('ix_applicants_application_status'), table_name='applicants')
    op.drop_index(op.f('ix_applicants_auth_id'), table_name='applicants')
    op.drop_index(op.f('ix_applicants_id'), table_name='applicants')
    op.drop_table('applicants')
