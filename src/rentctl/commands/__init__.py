"""Subcommand modules for rentctl.

Provides register_commands() which uses deferred imports to keep
``rentctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``agreements`` group and the standalone commands."""
    from rentctl.commands.agreements import agreements
    from rentctl.commands.assign import assign
    from rentctl.commands.submit import submit
    from rentctl.commands.whoami import whoami

    cli.add_command(agreements)
    cli.add_command(submit)
    cli.add_command(assign)
    cli.add_command(whoami)
