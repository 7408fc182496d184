"""ChangeFeed — push-based whole-snapshot subscriptions over the store.

Every subscription receives the *entire* current matching set, once on
registration and again after each committed write that touches a
matching document (matching before or after the write). Consumers
replace their local view with each delivery; there are no deltas.

Writes go through :meth:`ChangeFeed.writing`, which serializes commit
and fan-out so deliveries follow commit order. Commits made by other
processes on the same database are picked up by :meth:`ChangeFeed.watch`
via the store's revision counter. Each subscription remembers the last
revision it is current with, so a foreign commit is never skipped just
because a later local write did not touch its predicate.

INVARIANT: Subscriber failures are logged, never propagated to writers.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rentctl.infrastructure.database.counters import current_revision, next_revision
from rentctl.infrastructure.records import load_agreements

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from rentctl.domain.agreement import Agreement

logger = logging.getLogger(__name__)

Predicate = Callable[["Agreement"], bool]
SnapshotCallback = Callable[["Snapshot"], None]


def _match_all(_: Agreement) -> bool:
    return True


@dataclass(frozen=True)
class Snapshot:
    """Full matching result set at one committed revision."""

    agreements: tuple[Agreement, ...]
    revision: int

    def __iter__(self) -> Iterator[Agreement]:
        return iter(self.agreements)

    def __len__(self) -> int:
        return len(self.agreements)

    def ids(self) -> list[str]:
        return [a.id for a in self.agreements]


@dataclass
class WriteBatch:
    """Changes recorded inside one write transaction."""

    conn: Connection
    changes: list[tuple[Agreement | None, Agreement | None]] = field(default_factory=list)

    def record(self, before: Agreement | None, after: Agreement | None) -> None:
        self.changes.append((before, after))


class Subscription:
    """A standing, cancellable snapshot subscription.

    Closing is immediate and unconditional: once :meth:`close` returns,
    the callback is never invoked again.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        predicate: Predicate,
        callback: SnapshotCallback,
    ) -> None:
        self._feed = feed
        self._predicate = predicate
        self._callback = callback
        self._active = True
        self.deliveries = 0
        # Last revision this subscriber is known to be current with.
        self.revision = -1
        self._close_callbacks: list[Callable[[Subscription], None]] = []

    @property
    def active(self) -> bool:
        return self._active

    def matches(self, agreement: Agreement | None) -> bool:
        return agreement is not None and self._predicate(agreement)

    def close(self) -> None:
        """Stop delivery and release the listener. Idempotent."""
        if not self._active:
            return
        self._active = False
        self._feed._remove(self)
        for fn in self._close_callbacks:
            fn(self)
        self._close_callbacks.clear()

    def add_close_callback(self, fn: Callable[[Subscription], None]) -> None:
        """Call *fn* with this subscription once it is closed."""
        if not self._active:
            fn(self)
            return
        self._close_callbacks.append(fn)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def _deliver(self, agreements: list[Agreement], revision: int) -> None:
        if not self._active:
            return
        snapshot = Snapshot(
            agreements=tuple(a for a in agreements if self._predicate(a)),
            revision=revision,
        )
        try:
            self._callback(snapshot)
        except Exception:
            logger.warning("Snapshot subscriber failed at revision %d", revision, exc_info=True)
        self.deliveries += 1
        self.revision = max(self.revision, revision)


class ChangeFeed:
    """Fan-out of committed store state to in-process subscribers."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._lock = threading.RLock()
        self._subscriptions: list[Subscription] = []
        self._revision = -1

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    @property
    def revision(self) -> int:
        """Revision of the most recent fan-out (-1 before any)."""
        return self._revision

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(
        self,
        callback: SnapshotCallback,
        predicate: Predicate | None = None,
    ) -> Subscription:
        """Register *callback* and deliver the current matching set to it."""
        sub = Subscription(self, predicate or _match_all, callback)
        with self._lock:
            agreements, revision = self._read()
            self._subscriptions.append(sub)
            sub._deliver(agreements, revision)
        return sub

    @contextmanager
    def writing(self) -> Iterator[WriteBatch]:
        """Run one write transaction, then push snapshots to affected subscribers.

        The revision counter is bumped inside the transaction. Nothing is
        published if the block records no changes or raises.
        """
        with self._lock:
            written = None
            with self._engine.begin() as conn:
                batch = WriteBatch(conn=conn)
                yield batch
                if batch.changes:
                    written = next_revision(conn)
            if written is not None:
                self._publish(batch.changes, written)

    def refresh(self) -> bool:
        """Republish to subscribers that are behind another process's commit.

        Returns True if a newer revision was found.
        """
        with self._lock:
            revision = self._peek_revision()
            behind = [s for s in self._subscriptions if s.revision < revision]
            found = revision > self._revision
            if behind:
                self._publish(None)
            else:
                self._revision = max(self._revision, revision)
            return found or bool(behind)

    def watch(self, stop: threading.Event, *, interval: float = 0.5) -> None:
        """Pick up commits from other processes until *stop* is set."""
        while not stop.is_set():
            self.refresh()
            stop.wait(interval)

    def close(self) -> None:
        """Release every remaining subscription."""
        with self._lock:
            for sub in list(self._subscriptions):
                sub.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _read(self) -> tuple[list[Agreement], int]:
        """Load all agreements and the revision in one read transaction."""
        with self._engine.begin() as conn:
            revision = current_revision(conn)
            agreements = load_agreements(conn)
        self._revision = max(self._revision, revision)
        return agreements, revision

    def _publish(
        self,
        changes: list[tuple[Agreement | None, Agreement | None]] | None,
        written: int | None = None,
    ) -> None:
        """Deliver the current state to every subscriber that may be stale.

        A subscriber is stale if the local write in *changes* touches its
        predicate, or if any revision it has not seen came from somewhere
        else (another process committed in between).
        """
        if not self._subscriptions:
            self._revision = max(self._revision, self._peek_revision())
            return
        agreements, revision = self._read()
        for sub in list(self._subscriptions):
            if sub.revision >= revision:
                continue
            unseen = revision - sub.revision
            if written is not None and sub.revision < written <= revision:
                unseen -= 1
            touched = changes is not None and any(
                sub.matches(b) or sub.matches(a) for b, a in changes
            )
            if changes is None or touched or unseen > 0:
                sub._deliver(agreements, revision)
            else:
                sub.revision = revision

    def _peek_revision(self) -> int:
        with self._engine.connect() as conn:
            return current_revision(conn)

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)
