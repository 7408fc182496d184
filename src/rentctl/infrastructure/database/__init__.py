"""SQLite agreement store: engine, schema, and revision counter via SQLAlchemy Core."""

from rentctl.infrastructure.database.counters import current_revision, next_revision
from rentctl.infrastructure.database.engine import create_db_engine, init_database
from rentctl.infrastructure.database.schema import (
    agreement_events,
    agreements,
    metadata,
    store_meta,
)

__all__ = [
    "agreement_events",
    "agreements",
    "create_db_engine",
    "current_revision",
    "init_database",
    "metadata",
    "next_revision",
    "store_meta",
]
