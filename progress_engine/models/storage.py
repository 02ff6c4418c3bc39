"""Persistence models."""

from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime

from progress_engine.core.database import Base


class StateBlob(Base):
    """Serialized learner state keyed by storage key."""
    __tablename__ = "state_blobs"

    key = Column(String, primary_key=True)
    blob = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )
