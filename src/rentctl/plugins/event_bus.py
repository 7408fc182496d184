"""WAL-backed lifecycle event dispatch via pluggy.

Events are written to the ``agreement_events`` table before dispatch, so
a hook that fails (or a process that exits mid-dispatch) leaves a row
that ``drain()`` retries when the session closes. Dispatch is
synchronous: it runs in the session's own execution context, after the
store write has committed.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update

from rentctl.infrastructure.database.schema import agreement_events
from rentctl.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from rentctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventBus:
    """Record-then-dispatch lifecycle events.

    Parameters:
        engine: SQLAlchemy engine with the ``agreement_events`` table.
        plugin_manager: Loaded PluginManager for hook dispatch.
        max_retries: Attempts before an event is marked ``dead_letter``.
    """

    def __init__(
        self,
        engine: Engine,
        plugin_manager: PluginManager,
        *,
        max_retries: int = 3,
    ) -> None:
        self._engine = engine
        self._pm = plugin_manager
        self._max_retries = max_retries

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> int:
        """Write the event to the log, then call the hook. Returns the row id."""
        event_id = self._write_wal(hook_name, payload)
        self._execute_hook(event_id, hook_name, payload)
        return event_id

    def drain(self) -> list[dict[str, Any]]:
        """Retry pending/failed events. Returns ``{id, hook_name, status}`` per event."""
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(agreement_events.c.id, agreement_events.c.hook_name, agreement_events.c.payload)
                .where(agreement_events.c.status.in_(["pending", "failed"]))
                .order_by(agreement_events.c.id)
            ).fetchall()

        results: list[dict[str, Any]] = []
        for row in rows:
            self._execute_hook(row.id, row.hook_name, json.loads(row.payload))
            with self._engine.connect() as conn:
                status = conn.execute(
                    select(agreement_events.c.status).where(agreement_events.c.id == row.id)
                ).scalar_one()
            results.append({"id": row.id, "hook_name": row.hook_name, "status": status})
        return results

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _write_wal(self, hook_name: str, payload: dict[str, Any]) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                insert(agreement_events).values(
                    hook_name=hook_name,
                    payload=json.dumps(payload),
                    status="pending",
                    retries=0,
                    created=now_iso(),
                )
            )
            assert result.lastrowid is not None
            return result.lastrowid

    def _execute_hook(self, event_id: int, hook_name: str, payload: dict[str, Any]) -> None:
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            self._mark_completed(event_id)
            return

        try:
            hook_fn(**payload)
        except Exception as exc:
            logger.warning("Hook %s failed: %s", hook_name, exc)
            self._mark_failed(event_id, str(exc))
        else:
            self._mark_completed(event_id)

    def _mark_completed(self, event_id: int) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                update(agreement_events)
                .where(agreement_events.c.id == event_id)
                .values(status="completed", completed=now_iso())
            )

    def _mark_failed(self, event_id: int, error: str) -> None:
        """Increment retries, mark failed or dead_letter."""
        with self._engine.begin() as conn:
            retries = conn.execute(
                select(agreement_events.c.retries).where(agreement_events.c.id == event_id)
            ).scalar_one()

            new_retries = retries + 1
            new_status = "dead_letter" if new_retries >= self._max_retries else "failed"

            conn.execute(
                update(agreement_events)
                .where(agreement_events.c.id == event_id)
                .values(
                    status=new_status,
                    error=error,
                    retries=new_retries,
                    completed=now_iso() if new_status == "dead_letter" else None,
                )
            )
