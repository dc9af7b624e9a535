"""Table backing the remote cache tier."""

from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text

from fincache.repositories.sqlalchemy.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheDocumentORM(Base):
    """A serialized cache entry keyed by (owner_id, symbol); `payload` is its JSON."""

    __tablename__ = "financial_cache_documents"

    owner_id = Column(String(128), primary_key=True)
    symbol = Column(String(20), primary_key=True)
    payload = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
