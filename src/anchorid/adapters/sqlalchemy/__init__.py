"""SQLAlchemy adapter package for AnchorID."""

from __future__ import annotations

from .store import SqlAlchemyKeyValueStore
from .tables import create_all_tables, kv_table, metadata

__all__ = ["SqlAlchemyKeyValueStore", "create_all_tables", "kv_table", "metadata"]
