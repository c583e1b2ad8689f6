"""
StoredDocument model - one row per gateway key.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, LargeBinary, String

from campaign_pipeline.core.database import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StoredDocument(Base):
    """A persisted pipeline document (state, context, envelope, artifact)."""

    __tablename__ = "pipeline_documents"

    key = Column(String(512), primary_key=True)
    campaign_id = Column(String(255), nullable=False, index=True)

    body = Column(LargeBinary, nullable=False)
    size_bytes = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now, onupdate=_utc_now)

    def __repr__(self) -> str:
        return f"<StoredDocument(key={self.key!r}, size_bytes={self.size_bytes})>"
