"""Command: show the resolved session identity and role."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from rentctl.commands._base import RentCommand

if TYPE_CHECKING:
    from rentctl.commands._context import AppContext


@click.command(
    cls=RentCommand,
    examples="""\
  rentctl whoami
  rentctl --token "$ADMIN_TOKEN" whoami --json""",
)
@click.pass_obj
def whoami(app: AppContext) -> None:
    """Sign in and print the session identity and role."""
    from rentctl.services.result import ServiceResult

    session = app.session
    app.emit(
        ServiceResult(
            ok=True,
            op="whoami",
            data={"identity": session.identity, "role": str(session.role)},
        )
    )
