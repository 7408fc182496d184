"""AdminSyncView — the administrator's live picture of all agreements.

On activation the view opens exactly one unfiltered subscription. Each
delivery replaces the whole local picture and re-partitions it into
Pending and Completed; nothing is patched incrementally and there is no
persisted pending index.

Selection is purely local: selecting a record does not reserve it in
the store, so another administrator session can still assign it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rentctl.domain.agreement import AGREEMENT_TERMS, Agreement, AgreementState, partition
from rentctl.infrastructure.store import StoreError
from rentctl.services.base import BaseService
from rentctl.services.result import ServiceResult

if TYPE_CHECKING:
    from rentctl.infrastructure.feed import Snapshot, Subscription
    from rentctl.services.context import SessionContext

logger = logging.getLogger(__name__)

ViewListener = Callable[["AdminSyncView"], None]


@dataclass
class AssignmentDraft:
    """Assignment form fields being edited for the selected record."""

    instrument: str = ""
    brand: str = ""
    defects: str = ""


class AdminSyncView(BaseService):
    """Subscription-backed Pending/Completed partition for one session."""

    def __init__(self, context: SessionContext) -> None:
        super().__init__(context)
        self._subscription: Subscription | None = None
        self._listeners: list[ViewListener] = []
        self._selected_id: str | None = None
        self._selected_copy: Agreement | None = None
        self.pending: tuple[Agreement, ...] = ()
        self.completed: tuple[Agreement, ...] = ()
        self.revision = -1
        self.deliveries = 0
        self.draft = AssignmentDraft()

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def selected(self) -> Agreement | None:
        """The selected record, refreshed from the latest delivery when present."""
        if self._selected_id is None:
            return None
        for agreement in (*self.pending, *self.completed):
            if agreement.id == self._selected_id:
                return agreement
        return self._selected_copy

    @property
    def selection_stale(self) -> bool:
        """True if the selected record has since been completed by someone."""
        selected = self.selected
        return selected is not None and not selected.is_pending

    def add_listener(self, listener: ViewListener) -> None:
        """Call *listener* after every delivery (rendering hook).

        A listener that raises is logged and skipped; the view stays current.
        """
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def activate(self) -> ServiceResult:
        """Open the view's single subscription (administrator only)."""
        op = "activate_view"
        denied = self._require_admin(op)
        if denied is not None:
            return denied

        if not self.active:
            try:
                self._subscription = self._context.client.subscribe(self._on_snapshot)
            except StoreError as exc:
                logger.warning("Agreement subscription failed: %s", exc)
                return ServiceResult.failure(op, "STORE_ERROR", str(exc), retryable=True)
            # The initial snapshot arrived inside subscribe(); listeners see it now.
            self._notify()

        return ServiceResult(ok=True, op=op, data=self.summary())

    def release(self) -> None:
        """Close the subscription. Later store changes no longer reach this view."""
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    def __enter__(self) -> AdminSyncView:
        return self

    def __exit__(self, *_: object) -> None:
        self.release()

    # ------------------------------------------------------------------
    # User intents
    # ------------------------------------------------------------------

    def select(self, agreement_id: str) -> ServiceResult:
        """Select a pending record from the last delivery for assignment."""
        op = "select"
        for agreement in self.pending:
            if agreement.id == agreement_id:
                self._selected_id = agreement.id
                self._selected_copy = agreement
                self.draft = AssignmentDraft()
                return ServiceResult(ok=True, op=op, data={"id": agreement.id})
        return ServiceResult.failure(
            op, "NOT_PENDING", f"No pending agreement with id {agreement_id} in the current view"
        )

    def edit_draft(
        self,
        *,
        instrument: str | None = None,
        brand: str | None = None,
        defects: str | None = None,
    ) -> None:
        if instrument is not None:
            self.draft.instrument = instrument
        if brand is not None:
            self.draft.brand = brand
        if defects is not None:
            self.draft.defects = defects

    def cancel(self) -> None:
        """Drop the selection and clear the assignment form."""
        self._selected_id = None
        self._selected_copy = None
        self.draft = AssignmentDraft()

    def listing(self, state: AgreementState | None = None) -> ServiceResult:
        """The current partition as wire documents (signatures omitted)."""
        op = "list_agreements"
        if not self.active:
            return ServiceResult.failure(op, "INACTIVE", "The view is not subscribed")
        data: dict[str, object] = {"revision": self.revision}
        if state in (None, AgreementState.PENDING):
            data["pending"] = [a.to_document(include_signatures=False) for a in self.pending]
        if state in (None, AgreementState.COMPLETED):
            data["completed"] = [a.to_document(include_signatures=False) for a in self.completed]
        return ServiceResult(ok=True, op=op, data=data)

    def show(self, agreement_id: str, *, district: str) -> ServiceResult:
        """One agreement from the current picture, with the standard terms."""
        op = "show_agreement"
        if not self.active:
            return ServiceResult.failure(op, "INACTIVE", "The view is not subscribed")
        for agreement in (*self.pending, *self.completed):
            if agreement.id == agreement_id:
                return ServiceResult(
                    ok=True,
                    op=op,
                    data={
                        "agreement": agreement.to_document(include_signatures=False),
                        "state": str(agreement.state),
                        "district": district,
                        "terms": list(AGREEMENT_TERMS),
                        "parent_signed": bool(agreement.parent_signature),
                        "student_signed": bool(agreement.student_signature),
                    },
                )
        return ServiceResult.failure(op, "NOT_FOUND", f"No agreement with id {agreement_id}")

    def summary(self) -> dict[str, object]:
        return {
            "active": self.active,
            "revision": self.revision,
            "pending": [a.id for a in self.pending],
            "completed": [a.id for a in self.completed],
        }

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _on_snapshot(self, snapshot: Snapshot) -> None:
        self.pending, self.completed = partition(snapshot)
        self.revision = snapshot.revision
        self.deliveries += 1
        logger.debug(
            "View refreshed at revision %d: %d pending, %d completed",
            snapshot.revision,
            len(self.pending),
            len(self.completed),
        )
        if self._subscription is not None:
            self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.warning("View listener failed at revision %d", self.revision, exc_info=True)
