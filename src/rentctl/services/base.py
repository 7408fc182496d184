"""BaseService — shared foundation for the session services.

Every service receives the :class:`SessionContext` at construction
time. The context carries the resolved identity, the store client, and
the optional event bus; services never reach for global state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from rentctl.domain.roles import Role
from rentctl.services.result import ServiceResult

if TYPE_CHECKING:
    from rentctl.services.context import SessionContext

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class SubmissionService(BaseService):
            def submit(self, form) -> ServiceResult:
                if (denied := self._require_ready("submit")) is not None:
                    return denied
                ...
    """

    def __init__(self, context: SessionContext) -> None:
        self._context = context

    def _require_ready(self, op: str) -> ServiceResult | None:
        """Return a failure result unless the session identity is resolved."""
        resolution = self._context.resolution
        if not resolution.ready:
            return ServiceResult.failure(
                op,
                "NOT_READY",
                resolution.error or "Session identity is not resolved",
            )
        return None

    def _require_admin(self, op: str) -> ServiceResult | None:
        """Return a failure result unless the session holds the administrator role."""
        denied = self._require_ready(op)
        if denied is not None:
            return denied
        if self._context.role is not Role.ADMINISTRATOR:
            return ServiceResult.failure(op, "FORBIDDEN", "Administrator role required")
        return None

    def _dispatch_event(self, hook_name: str, payload: dict[str, Any], warnings: list[str]) -> None:
        """Dispatch a lifecycle event. No-op if event bus not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._context.event_bus
        if bus is None:
            return
        try:
            bus.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")
