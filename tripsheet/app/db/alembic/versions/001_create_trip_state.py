"""Create trip_state

Revision ID: 001
Revises:
Create Date: 2026-01-06

One row per trip: structured document, outline text, and the
prompt_text -> enrichment cache.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_json = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create trip_state table."""
    op.create_table(
        "trip_state",
        sa.Column("trip_key", sa.Text(), primary_key=True),
        sa.Column("outline_text", sa.Text(), nullable=False, server_default=""),
        sa.Column("document", _json, nullable=False),
        sa.Column("enrichment_cache", _json, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    """Drop trip_state table."""
    op.drop_table("trip_state")
