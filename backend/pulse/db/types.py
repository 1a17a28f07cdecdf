"""Database column type helpers."""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON

# JSONB on PostgreSQL, plain JSON on SQLite so the test suite runs in memory.
JSONBCompat = JSONB().with_variant(JSON(), "sqlite")
