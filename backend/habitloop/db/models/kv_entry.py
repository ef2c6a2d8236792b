"""Key-value cache entry ORM model."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, String, Text, func

from habitloop.db.base import Base


class KeyValueEntry(Base):
    __tablename__ = "kv_entries"

    key = Column(String(length=255), primary_key=True)
    # JSON-serialized string, opaque to the database.
    value = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
