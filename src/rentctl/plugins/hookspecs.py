"""Pluggy hook specifications for agreement lifecycle events.

External collaborators (PDF rendering, mail notification, printing)
attach here rather than inside the services.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("rentctl")
hookimpl = pluggy.HookimplMarker("rentctl")


class RentctlHookSpec:
    """Hook specifications for the rentctl plugin system."""

    @hookspec
    def post_submit(
        self,
        agreement_id: str,
        student_name: str,
        submitted_by: str | None,
    ) -> None:
        """Called after a new agreement is persisted (state Pending)."""

    @hookspec
    def post_assign(
        self,
        agreement_id: str,
        instrument: str,
        brand: str,
    ) -> None:
        """Called after an assignment write is acknowledged (state Completed)."""
