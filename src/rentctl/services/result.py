"""ServiceResult — what every session operation hands back to the caller.

INVARIANT: Services return a ServiceResult for expected failures
(validation, permissions, store errors) and never raise them.

Error codes in use:

- ``VALIDATION_FAILED``: ``detail["fields"]`` maps field name → message
- ``NOT_READY``: identity resolution has not completed
- ``AUTH_ERROR``: sign-in failed (emitted by the CLI before any view)
- ``FORBIDDEN``: administrator role required
- ``STORE_ERROR``: store call failed; ``detail["retryable"]``
- ``NOT_FOUND``: no such agreement in the current view
- ``NOT_PENDING``: selection must come from the pending set
- ``NO_SELECTION``: nothing selected to assign
- ``INACTIVE``: the admin view has no open subscription
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @property
    def fields(self) -> dict[str, str]:
        """Per-field validation messages (empty for other errors)."""
        return dict(self.detail.get("fields", {}))

    @property
    def retryable(self) -> bool:
        return bool(self.detail.get("retryable", False))


class ServiceResult(BaseModel):
    """Outcome of one operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Operation name (``"submit"``, ``"assign"``, ``"list_agreements"``).
        data: Payload on success.
        warnings: Non-fatal issues (e.g. a lifecycle hook failed).
        error: Set when ``ok`` is False.
        meta: Timing from ``@traced`` under ``--verbose``.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, code: str, message: str, **detail: Any) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError(code=code, message=message, detail=detail))

    @property
    def code(self) -> str | None:
        """Error code, or None on success."""
        return self.error.code if self.error is not None else None
