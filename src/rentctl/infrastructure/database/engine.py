"""Database engine setup for SQLite with WAL mode.

WAL mode lets any number of readers (administrator views in other
processes) proceed while a single writer commits. The connect timeout
is the transport's only timeout; nothing above it adds another.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, insert, select
from sqlalchemy.engine import Engine

from rentctl.infrastructure.database.schema import metadata, store_meta

REVISION_KEY = "revision"


def create_db_engine(db_path: Path, *, timeout: float = 30.0) -> Engine:
    """Create a SQLite engine with WAL mode enabled."""
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"timeout": timeout, "check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def init_database(db_path: Path, *, timeout: float = 30.0) -> Engine:
    """Open (creating if needed) the agreement store at *db_path*.

    Creates parent directories, all tables, and seeds the revision
    counter. Idempotent — safe to call on an existing store.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path, timeout=timeout)
    metadata.create_all(engine)
    _seed_revision(engine)
    return engine


def _seed_revision(engine: Engine) -> None:
    with engine.begin() as conn:
        row = conn.execute(select(store_meta.c.key).where(store_meta.c.key == REVISION_KEY)).first()
        if row is None:
            conn.execute(insert(store_meta).values(key=REVISION_KEY, value=0))
