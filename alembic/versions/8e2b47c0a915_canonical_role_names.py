"""canonical role names on profiles

Revision ID: 8e2b47c0a915
Revises: 3c1f9a7d2b10
Create Date: 2026-10-19 10:04:12.530871

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8e2b47c0a915'
down_revision: Union[str, Sequence[str], None] = '3c1f9a7d2b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

profiles = sa.table('profiles', sa.column('role', sa.String))

LEGACY = {'employer': 'company', 'job-seeker': 'job_seeker'}


def upgrade() -> None:
    """Rewrite legacy role spellings to the canonical names."""
    for old, new in LEGACY.items():
        op.execute(profiles.update().where(profiles.c.role == old).values(role=new))


def downgrade() -> None:
    """Canonical names are valid for every reader, nothing to undo."""
    pass
