"""SubmissionService — validate a rental form and persist it as Pending.

Pipeline: VALIDATE → BUILD → PERSIST → EVENT → RESPOND

Validation collects every violation before reporting; nothing reaches
the store unless the whole form is valid. Once submitted, the record is
opaque to the submitter.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from rentctl.domain.agreement import REQUIRED_FIELDS, AgreementInput
from rentctl.infrastructure.store import StoreError
from rentctl.services._helpers import is_blank, is_iso_date, today_iso
from rentctl.services.base import BaseService
from rentctl.services.result import ServiceResult
from rentctl.services.telemetry import traced

if TYPE_CHECKING:
    from rentctl.services.context import SessionContext

logger = logging.getLogger(__name__)

LOAN_DATE_MESSAGE = "Loan Date must be a valid date (YYYY-MM-DD)."


class SubmissionForm(BaseModel):
    """Submitter-entered fields.

    ``submission_key`` identifies this form instance; resubmitting the
    same form (e.g. a retry after a lost response) never creates a
    second record.
    """

    student_name: str = ""
    parent_name: str = ""
    address: str = ""
    phone_number: str = ""
    loan_date: str | None = None
    parent_signature: str | None = None
    student_signature: str | None = None
    submission_key: str = Field(default_factory=lambda: uuid.uuid4().hex)


def validate_form(form: SubmissionForm) -> dict[str, str]:
    """Return field name → message for every violation (empty if valid)."""
    errors: dict[str, str] = {}
    for name, message in REQUIRED_FIELDS.items():
        if is_blank(getattr(form, name)):
            errors[name] = message
    # A blank loan date counts as unset and defaults to today.
    if not is_blank(form.loan_date) and not is_iso_date(str(form.loan_date)):
        errors["loan_date"] = LOAN_DATE_MESSAGE
    return errors


class SubmissionService(BaseService):
    """Submitter-side form state and the ``submit`` operation.

    Attributes:
        is_submitted: True after a successful submit, until :meth:`reset`.
        errors: Field → message from the last failed validation.
    """

    def __init__(self, context: SessionContext) -> None:
        super().__init__(context)
        self.is_submitted = False
        self.errors: dict[str, str] = {}

    @traced
    def submit(self, form: SubmissionForm) -> ServiceResult:
        op = "submit"
        warnings: list[str] = []

        denied = self._require_ready(op)
        if denied is not None:
            return denied

        # ── VALIDATE ─────────────────────────────────────────
        errors = validate_form(form)
        self.errors = errors
        if errors:
            return ServiceResult.failure(
                op,
                "VALIDATION_FAILED",
                f"{len(errors)} field(s) need attention",
                fields=errors,
            )

        # ── BUILD ────────────────────────────────────────────
        record = AgreementInput(
            student_name=form.student_name.strip(),
            parent_name=form.parent_name.strip(),
            address=form.address.strip(),
            phone_number=form.phone_number.strip(),
            loan_date=today_iso() if is_blank(form.loan_date) else str(form.loan_date),
            parent_signature=str(form.parent_signature),
            student_signature=str(form.student_signature),
            instrument=None,
            brand=None,
            defects=None,
            submitted_by=self._context.identity,
            idempotency_key=form.submission_key,
        )

        # ── PERSIST ──────────────────────────────────────────
        try:
            agreement_id = self._context.client.create(record)
        except StoreError as exc:
            logger.warning("Agreement create failed: %s", exc)
            return ServiceResult.failure(op, "STORE_ERROR", str(exc), retryable=True)

        self.is_submitted = True

        # ── EVENT ────────────────────────────────────────────
        self._dispatch_event(
            "post_submit",
            {
                "agreement_id": agreement_id,
                "student_name": record.student_name,
                "submitted_by": record.submitted_by,
            },
            warnings,
        )

        # ── RESPOND ──────────────────────────────────────────
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": agreement_id, "loan_date": record.loan_date, "state": "pending"},
            warnings=warnings,
        )

    def reset(self) -> None:
        """Start a new form: clear the submitted flag and any errors."""
        self.is_submitted = False
        self.errors = {}
