"""Global write revision for the agreement store.

Every committed write bumps the revision inside its own transaction, so
the revision read alongside a snapshot identifies exactly which commits
that snapshot reflects. The change feed uses it to notice commits made
by other processes.

The caller owns the transaction — pass a ``Connection`` obtained from
``engine.begin()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from rentctl.infrastructure.database.engine import REVISION_KEY
from rentctl.infrastructure.database.schema import store_meta

if TYPE_CHECKING:
    from sqlalchemy import Connection


def current_revision(conn: Connection) -> int:
    """Return the last committed revision visible on *conn*."""
    return int(
        conn.execute(select(store_meta.c.value).where(store_meta.c.key == REVISION_KEY)).scalar_one()
    )


def next_revision(conn: Connection) -> int:
    """Claim the next revision within the caller's transaction."""
    value = current_revision(conn) + 1
    conn.execute(update(store_meta).where(store_meta.c.key == REVISION_KEY).values(value=value))
    return value
