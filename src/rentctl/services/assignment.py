"""AssignmentService — attach instrument data to one agreement.

Pipeline: VALIDATE → WRITE → CLEAR → EVENT → RESPOND

The write is unconditional: there is no check that the record is still
Pending. If another session assigned it first, this call overwrites
that assignment and neither caller is told (last writer wins).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rentctl.infrastructure.store import StoreError
from rentctl.services._helpers import is_blank
from rentctl.services.base import BaseService
from rentctl.services.result import ServiceResult
from rentctl.services.telemetry import traced

if TYPE_CHECKING:
    from rentctl.services.admin_view import AdminSyncView
    from rentctl.services.context import SessionContext

logger = logging.getLogger(__name__)


class AssignmentService(BaseService):
    """Administrator-side assignment.

    Args:
        context: The administrator's session.
        view: Optional view whose selection and draft are cleared on success.
    """

    def __init__(self, context: SessionContext, view: AdminSyncView | None = None) -> None:
        super().__init__(context)
        self._view = view

    @traced
    def assign(
        self,
        agreement_id: str,
        instrument: str,
        brand: str,
        defects: str = "",
    ) -> ServiceResult:
        op = "assign"
        warnings: list[str] = []

        denied = self._require_admin(op)
        if denied is not None:
            return denied

        # ── VALIDATE ─────────────────────────────────────────
        errors: dict[str, str] = {}
        if is_blank(instrument):
            errors["instrument"] = "Instrument is required."
        if is_blank(brand):
            errors["brand"] = "Brand and Serial # is required."
        if errors:
            return ServiceResult.failure(
                op, "VALIDATION_FAILED", f"{len(errors)} field(s) need attention", fields=errors
            )

        # ── WRITE ────────────────────────────────────────────
        fields = {
            "instrument": instrument.strip(),
            "brand": brand.strip(),
            "defects": (defects or "").strip(),
        }
        try:
            ack = self._context.client.update(agreement_id, fields)
        except StoreError as exc:
            logger.warning("Assignment of %s failed: %s", agreement_id, exc)
            return ServiceResult.failure(
                op, "STORE_ERROR", str(exc), retryable=exc.code != "NOT_FOUND"
            )

        # ── CLEAR ────────────────────────────────────────────
        if self._view is not None:
            self._view.cancel()

        # ── EVENT ────────────────────────────────────────────
        self._dispatch_event(
            "post_assign",
            {
                "agreement_id": agreement_id,
                "instrument": fields["instrument"],
                "brand": fields["brand"],
            },
            warnings,
        )

        return ServiceResult(
            ok=True,
            op=op,
            data={"id": ack.id, "fields": list(ack.fields), **fields, "state": "completed"},
            warnings=warnings,
        )

    def assign_selected(self) -> ServiceResult:
        """Assign the bound view's selected record using its draft."""
        op = "assign"
        view = self._view
        if view is None or view.selected is None:
            return ServiceResult.failure(op, "NO_SELECTION", "No agreement is selected")
        return self.assign(
            view.selected.id,
            view.draft.instrument,
            view.draft.brand,
            view.draft.defects,
        )
