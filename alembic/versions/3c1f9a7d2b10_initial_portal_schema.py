"""initial portal schema

Revision ID: 3c1f9a7d2b10
Revises:
Create Date: 2026-10-18 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1f9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [sa.Column('created_at', sa.DateTime()), sa.Column('updated_at', sa.DateTime())]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'identities',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('user_metadata', sa.JSON()),
        sa.Column('email_confirmed_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_identities_email', 'identities', ['email'], unique=True)

    op.create_table(
        'auth_sessions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('identity_id', sa.String(36), sa.ForeignKey('identities.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_auth_sessions_identity_id', 'auth_sessions', ['identity_id'])

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), sa.ForeignKey('identities.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255)),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column('phone', sa.String(64)),
        sa.Column('location', sa.String(255)),
        sa.Column('bio', sa.Text()),
        sa.Column('avatar_url', sa.String(1024)),
        sa.Column('resume_url', sa.String(1024)),
        *_timestamps(),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'])
    op.create_index('ix_profiles_role', 'profiles', ['role'])

    op.create_table(
        'job_seekers',
        sa.Column('id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('skills', sa.JSON()),
        sa.Column('experience_years', sa.Integer()),
        sa.Column('current_salary', sa.Integer()),
        sa.Column('expected_salary_min', sa.Integer()),
        sa.Column('expected_salary_max', sa.Integer()),
        sa.Column('salary_currency', sa.String(8)),
        sa.Column('education', sa.JSON()),
        sa.Column('experience', sa.JSON()),
        sa.Column('certifications', sa.JSON()),
        sa.Column('languages', sa.JSON()),
        sa.Column('preferred_job_types', sa.JSON()),
        sa.Column('work_authorization', sa.String(128)),
        sa.Column('is_active', sa.Boolean()),
        *_timestamps(),
    )

    op.create_table(
        'companies',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('website', sa.String(1024)),
        sa.Column('logo_url', sa.String(1024)),
        sa.Column('industry', sa.String(255)),
        sa.Column('company_size', sa.String(64)),
        sa.Column('location', sa.String(255)),
        sa.Column('headquarters', sa.String(255)),
        sa.Column('founded_year', sa.Integer()),
        sa.Column('is_verified', sa.Boolean()),
        sa.Column('benefits', sa.JSON()),
        sa.Column('company_culture', sa.Text()),
        sa.Column('social_media', sa.JSON()),
        sa.Column('employee_count_range', sa.String(64)),
        *_timestamps(),
    )
    op.create_index('ix_companies_name', 'companies', ['name'], unique=True)

    op.create_table(
        'company_users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('profile_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('company_id', sa.String(36), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.String(255)),
        sa.Column('is_admin', sa.Boolean()),
        sa.UniqueConstraint('profile_id', 'company_id'),
    )
    op.create_index('ix_company_users_profile_id', 'company_users', ['profile_id'])
    op.create_index('ix_company_users_company_id', 'company_users', ['company_id'])

    op.create_table(
        'vendors',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('service_type', sa.String(255)),
        sa.Column('website', sa.String(1024)),
        sa.Column('logo_url', sa.String(1024)),
        sa.Column('location', sa.String(255)),
        sa.Column('services', sa.JSON()),
        sa.Column('is_verified', sa.Boolean()),
        sa.Column('is_active', sa.Boolean()),
        *_timestamps(),
    )
    op.create_index('ix_vendors_name', 'vendors', ['name'], unique=True)
    op.create_index('ix_vendors_service_type', 'vendors', ['service_type'])

    op.create_table(
        'vendor_users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('profile_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('vendor_id', sa.String(36), sa.ForeignKey('vendors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.String(255)),
        sa.UniqueConstraint('profile_id', 'vendor_id'),
    )
    op.create_index('ix_vendor_users_profile_id', 'vendor_users', ['profile_id'])
    op.create_index('ix_vendor_users_vendor_id', 'vendor_users', ['vendor_id'])

    op.create_table(
        'jobs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('company_id', sa.String(36), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('location', sa.String(255)),
        sa.Column('job_type', sa.String(32)),
        sa.Column('salary_min', sa.Integer()),
        sa.Column('salary_max', sa.Integer()),
        sa.Column('currency', sa.String(8)),
        sa.Column('experience_level', sa.String(32)),
        sa.Column('skills_required', sa.JSON()),
        sa.Column('benefits', sa.JSON()),
        sa.Column('remote_work_available', sa.Boolean()),
        sa.Column('application_deadline', sa.DateTime()),
        sa.Column('is_active', sa.Boolean()),
        sa.Column('applications_count', sa.Integer()),
        *_timestamps(),
    )
    op.create_index('ix_jobs_title', 'jobs', ['title'])
    op.create_index('ix_jobs_company_id', 'jobs', ['company_id'])
    op.create_index('ix_jobs_is_active', 'jobs', ['is_active'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in ('jobs', 'vendor_users', 'vendors', 'company_users', 'companies',
                  'job_seekers', 'profiles', 'auth_sessions', 'identities'):
        op.drop_table(table)
