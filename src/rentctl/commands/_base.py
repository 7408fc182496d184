"""Click base classes shared by every rentctl command.

Two extra keyword arguments are accepted by ``@click.command`` /
``@click.group`` when these classes are used:

``examples``
    Text printed by an eager ``--examples`` flag (then exit 0), so
    ``--help`` stays short.
``admin_only``
    Adds an epilog telling the user the command needs an administrator
    session. The role check itself happens in the services.
"""

from __future__ import annotations

from typing import Any

import click

ADMIN_EPILOG = "Requires an administrator session: pass --token or set RENTCTL_TOKEN."


def _print_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    examples = getattr(ctx.command, "examples", None) or ""
    click.echo(f"Examples for '{ctx.command_path}':\n")
    click.echo(examples)
    ctx.exit(0)


class _RentMixin:
    """Wires ``examples`` and ``admin_only`` into a Click command."""

    params: list[click.Parameter]

    def _setup(self, examples: str | None, admin_only: bool) -> None:
        self.examples = examples
        self.admin_only = admin_only
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=_print_examples,
                    help="Show usage examples.",
                )
            )


class RentCommand(_RentMixin, click.Command):
    def __init__(
        self,
        *args: Any,
        examples: str | None = None,
        admin_only: bool = False,
        **kwargs: Any,
    ) -> None:
        if admin_only and not kwargs.get("epilog"):
            kwargs["epilog"] = ADMIN_EPILOG
        super().__init__(*args, **kwargs)
        self._setup(examples, admin_only)


class RentGroup(_RentMixin, click.Group):
    """Group whose subcommands are :class:`RentCommand` and inherit ``admin_only``."""

    command_class = RentCommand

    def __init__(
        self,
        *args: Any,
        examples: str | None = None,
        admin_only: bool = False,
        **kwargs: Any,
    ) -> None:
        if admin_only and not kwargs.get("epilog"):
            kwargs["epilog"] = ADMIN_EPILOG
        super().__init__(*args, **kwargs)
        self._setup(examples, admin_only)

    def command(self, *args: Any, **kwargs: Any) -> Any:
        bare = len(args) == 1 and callable(args[0])
        if self.admin_only and not bare:
            kwargs.setdefault("admin_only", True)
        return super().command(*args, **kwargs)
