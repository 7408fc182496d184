"""AgreementStore — the shared document collection, and its thin client.

:class:`AgreementStore` owns the database engine and the change feed;
one instance per process. :class:`AgreementStoreClient` is the
capability a session holds: ``create``, ``update``, ``subscribe``. The
client tracks its own subscriptions so a session can release all of
them at teardown or on a role change.

``update`` is unconditional: no version check, no precondition on the
current field values. Concurrent writers race and the last commit wins.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError

from rentctl.domain.agreement import ASSIGNMENT_FIELDS
from rentctl.infrastructure.database.engine import init_database
from rentctl.infrastructure.database.schema import agreements
from rentctl.infrastructure.feed import ChangeFeed
from rentctl.infrastructure.records import load_agreement

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from rentctl.domain.agreement import Agreement, AgreementInput
    from rentctl.infrastructure.feed import Predicate, SnapshotCallback, Subscription

logger = logging.getLogger(__name__)

ID_PREFIX = "agr_"


class StoreError(Exception):
    """An operation against the shared store failed.

    Attributes:
        code: Short machine-readable reason (``"NOT_FOUND"``, ``"DATABASE"``).
    """

    def __init__(self, message: str, *, code: str = "DATABASE") -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class WriteAck:
    """Acknowledgement of a committed update."""

    id: str
    fields: tuple[str, ...]


def _server_timestamp() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _new_id() -> str:
    return f"{ID_PREFIX}{uuid.uuid4().hex[:12]}"


class AgreementStore:
    """Process-wide handle on the agreement database and change feed."""

    def __init__(self, db_path: Path, *, timeout: float = 30.0) -> None:
        self.db_path = db_path
        self.engine: Engine = init_database(db_path, timeout=timeout)
        self.feed = ChangeFeed(self.engine)

    def client(self) -> AgreementStoreClient:
        return AgreementStoreClient(self)

    def close(self) -> None:
        self.feed.close()
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, record: AgreementInput) -> str:
        values = record.model_dump()
        key = values.pop("idempotency_key")
        with self.feed.writing() as batch:
            if key is not None:
                existing = batch.conn.execute(
                    select(agreements.c.id).where(agreements.c.idempotency_key == key)
                ).scalar_one_or_none()
                if existing is not None:
                    logger.debug("Duplicate submission key %s -> %s", key, existing)
                    return str(existing)

            # createdAt never runs backwards, even if the clock does.
            latest = batch.conn.execute(select(func.max(agreements.c.created_at))).scalar()
            created_at = _server_timestamp()
            if latest is not None and created_at < latest:
                created_at = latest

            agreement_id = _new_id()
            # Another process may have committed the same key since the lookup.
            inserted = batch.conn.execute(
                insert(agreements)
                .values(
                    id=agreement_id,
                    created_at=created_at,
                    idempotency_key=key,
                    **values,
                )
                .on_conflict_do_nothing(index_elements=[agreements.c.idempotency_key])
            )
            if inserted.rowcount == 0:
                existing = batch.conn.execute(
                    select(agreements.c.id).where(agreements.c.idempotency_key == key)
                ).scalar_one()
                logger.debug("Submission key %s committed concurrently -> %s", key, existing)
                return str(existing)
            batch.record(None, load_agreement(batch.conn, agreement_id))
        return agreement_id

    def patch(self, agreement_id: str, values: dict[str, str | None]) -> WriteAck:
        with self.feed.writing() as batch:
            before = load_agreement(batch.conn, agreement_id)
            if before is None:
                raise StoreError(f"No agreement with id {agreement_id}", code="NOT_FOUND")
            batch.conn.execute(
                update(agreements).where(agreements.c.id == agreement_id).values(**values)
            )
            batch.record(before, load_agreement(batch.conn, agreement_id))
        return WriteAck(id=agreement_id, fields=tuple(values))

    def get(self, agreement_id: str) -> Agreement | None:
        with self.engine.connect() as conn:
            return load_agreement(conn, agreement_id)


class AgreementStoreClient:
    """Session-scoped capability over the shared agreement collection."""

    def __init__(self, store: AgreementStore) -> None:
        self._store = store
        self._subscriptions: list[Subscription] = []

    @property
    def open_subscriptions(self) -> list[Subscription]:
        return [s for s in self._subscriptions if s.active]

    def create(self, record: AgreementInput) -> str:
        """Append a new agreement and return its store-assigned id.

        A repeated ``idempotency_key`` returns the id of the first record
        instead of inserting a duplicate.
        """
        try:
            return self._store.insert(record)
        except SQLAlchemyError as exc:
            raise StoreError(f"create failed: {exc}") from exc

    def update(self, agreement_id: str, partial: Mapping[str, str | None]) -> WriteAck:
        """Overwrite the assignment fields on one agreement (last writer wins).

        All of ``instrument``, ``brand`` and ``defects`` must be given, with a
        non-blank ``instrument``: an update only ever leaves the record
        Completed, so a Completed agreement can never drop back to Pending.

        Raises:
            ValueError: Unknown or missing fields, or a blank instrument.
            StoreError: No such agreement, or the database call failed.
        """
        unknown = set(partial) - set(ASSIGNMENT_FIELDS)
        if unknown:
            msg = f"Only {list(ASSIGNMENT_FIELDS)} may be updated, got {sorted(unknown)}"
            raise ValueError(msg)
        missing = [name for name in ASSIGNMENT_FIELDS if name not in partial]
        if missing:
            msg = f"Assignment must set all of {list(ASSIGNMENT_FIELDS)}, missing {missing}"
            raise ValueError(msg)
        instrument = partial["instrument"]
        if not isinstance(instrument, str) or not instrument.strip():
            raise ValueError("Assignment requires a non-blank instrument")
        try:
            return self._store.patch(agreement_id, dict(partial))
        except SQLAlchemyError as exc:
            raise StoreError(f"update failed: {exc}") from exc

    def subscribe(
        self,
        callback: SnapshotCallback,
        predicate: Predicate | None = None,
    ) -> Subscription:
        """Open a standing whole-snapshot subscription.

        The first snapshot is delivered before this method returns.
        """
        try:
            sub = self._store.feed.subscribe(callback, predicate)
        except SQLAlchemyError as exc:
            raise StoreError(f"subscribe failed: {exc}") from exc
        self._subscriptions.append(sub)
        sub.add_close_callback(self._forget)
        return sub

    def get(self, agreement_id: str) -> Agreement | None:
        try:
            return self._store.get(agreement_id)
        except SQLAlchemyError as exc:
            raise StoreError(f"read failed: {exc}") from exc

    def close(self) -> None:
        """Release every subscription opened through this client."""
        for sub in list(self._subscriptions):
            sub.close()
        self._subscriptions.clear()

    def _forget(self, sub: Subscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)
