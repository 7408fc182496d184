"""Command group: the administrator's agreement views."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import click

from rentctl.commands._base import RentGroup

if TYPE_CHECKING:
    from rentctl.commands._context import AppContext
    from rentctl.services.admin_view import AdminSyncView


def _open_view(app: AppContext) -> AdminSyncView:
    from rentctl.services.admin_view import AdminSyncView

    view = AdminSyncView(app.session)
    result = view.activate()
    if not result.ok:
        app.emit(result)
    return view


@click.group(
    cls=RentGroup,
    admin_only=True,
    examples="""\
  rentctl agreements list
  rentctl agreements list --state pending
  rentctl agreements show agr_1a2b3c4d5e6f
  rentctl agreements watch""",
)
def agreements() -> None:
    """Review submitted agreements (administrator only)."""


@agreements.command("list")
@click.option(
    "--state",
    type=click.Choice(["pending", "completed"]),
    default=None,
    help="Only show one partition.",
)
@click.pass_obj
def list_cmd(app: AppContext, state: str | None) -> None:
    """Print the current Pending and Completed partitions."""
    from rentctl.domain.agreement import AgreementState

    with _open_view(app) as view:
        result = view.listing(AgreementState(state) if state else None)
    app.emit(result)


@agreements.command(
    examples="""\
  rentctl agreements show agr_1a2b3c4d5e6f
  rentctl agreements show agr_1a2b3c4d5e6f --json""",
)
@click.argument("agreement_id")
@click.pass_obj
def show(app: AppContext, agreement_id: str) -> None:
    """Print one agreement with the standard terms."""
    with _open_view(app) as view:
        result = view.show(agreement_id, district=app.settings.display.district)
    app.emit(result)


@agreements.command(
    examples="""\
  rentctl agreements watch
  rentctl agreements watch --interval 2 --max-deliveries 10""",
)
@click.option("--interval", default=0.5, show_default=True, help="Seconds between store checks.")
@click.option("--max-deliveries", type=int, default=None, help="Stop after this many snapshots.")
@click.pass_obj
def watch(app: AppContext, interval: float, max_deliveries: int | None) -> None:
    """Print the partition every time the agreement collection changes.

    Runs until interrupted (Ctrl-C) or until --max-deliveries snapshots
    have been printed.
    """
    stop = threading.Event()

    def _print(view: AdminSyncView) -> None:
        click.echo(app.render(view.listing()))
        if max_deliveries is not None and view.deliveries >= max_deliveries:
            stop.set()

    from rentctl.services.admin_view import AdminSyncView

    view = AdminSyncView(app.session)
    view.add_listener(_print)
    result = view.activate()
    if not result.ok:
        app.emit(result)

    try:
        app.session.store.feed.watch(stop, interval=interval)
    except KeyboardInterrupt:
        pass
    finally:
        view.release()
