"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. The session (store + identity) is opened lazily so
``--help`` and ``--version`` never touch the database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from rentctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from rentctl.config.settings import RentSettings
    from rentctl.services.context import SessionContext
    from rentctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: RentSettings) -> None:
        self.settings = settings
        self._session: SessionContext | None = None

        from rentctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from rentctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def session(self) -> SessionContext:
        """The resolved session (opened on first access).

        An unresolved identity is fatal: the error is emitted and the
        process exits with code 1 before any role's view is shown.
        """
        if self._session is None:
            from rentctl.services.context import SessionContext
            from rentctl.services.result import ServiceResult

            session = SessionContext.open(self.settings)
            click.get_current_context().call_on_close(session.close)
            self._session = session
            if not session.ready:
                self.emit(
                    ServiceResult.failure(
                        "sign_in",
                        "AUTH_ERROR",
                        session.resolution.error or "Sign-in did not complete",
                    )
                )
            session.init_event_bus()
        return self._session

    @property
    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def render(self, result: ServiceResult) -> str:
        """Format *result* without emitting it (for streaming output)."""
        return format_result(result, settings=self.output_settings)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout; warnings go to stderr.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = self.output_settings
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
