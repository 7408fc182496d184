"""Command: complete a pending agreement with instrument data."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from rentctl.commands._base import RentCommand

if TYPE_CHECKING:
    from rentctl.commands._context import AppContext


@click.command(
    cls=RentCommand,
    admin_only=True,
    examples="""\
  rentctl assign agr_1a2b3c4d5e6f --instrument Clarinet --brand Selmer-77 --defects "minor dent"
  rentctl assign agr_1a2b3c4d5e6f --instrument Flute --brand Yamaha-123""",
)
@click.argument("agreement_id")
@click.option("--instrument", default="", help="Instrument issued.")
@click.option("--brand", default="", help="Brand and serial number.")
@click.option("--defects", default="", help="Condition notes and defects (may be empty).")
@click.pass_obj
def assign(
    app: AppContext,
    agreement_id: str,
    instrument: str,
    brand: str,
    defects: str,
) -> None:
    """Attach instrument, brand, and defects to an agreement (administrator only).

    The write is unconditional: an agreement that is already completed
    is overwritten.
    """
    from rentctl.services.assignment import AssignmentService

    app.emit(AssignmentService(app.session).assign(agreement_id, instrument, brand, defects))
