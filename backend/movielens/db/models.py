"""
SQLAlchemy ORM models.

The local state is a plain key-value table: one row per fixed key, holding a
JSON document. The version column backs compare-and-set writes.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase


# ── Base ──────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Timestamp helper ──────────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Models ────────────────────────────────────────────────────────────────────

class KeyValueEntry(Base):
    """A single persisted record (current user, review table, theme)."""

    __tablename__ = "kv_entries"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    version = Column(
        Integer,
        nullable=False,
        default=1,
        comment="Incremented on every write; starts at 1",
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<KeyValueEntry key={self.key!r} version={self.version}>"
