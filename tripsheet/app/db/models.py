"""SQLAlchemy ORM models."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

# JSONB on Postgres, plain JSON elsewhere (sqlite in tests)
JsonColumn = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TripStateRow(Base):
    """Trip state table - one row per trip: document, outline text, enrichment cache."""

    __tablename__ = "trip_state"

    trip_key: Mapped[str] = mapped_column(Text, primary_key=True)
    outline_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    document: Mapped[dict[str, Any]] = mapped_column(JsonColumn, nullable=False)
    enrichment_cache: Mapped[dict[str, Any]] = mapped_column(JsonColumn, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
