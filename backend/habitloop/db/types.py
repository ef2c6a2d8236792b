"""Column types shared by the ORM models."""
from __future__ import annotations

from sqlalchemy import JSON, Text
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on Postgres, generic JSON elsewhere (SQLite in tests).
JSONPayload = JSON().with_variant(JSONB(astext_type=Text()), "postgresql")
