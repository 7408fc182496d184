"""Log routing for rentctl: structlog formatting on top of stdlib logging.

Modules log through ``logging.getLogger(__name__)``; structlog only owns
the formatting. Every line carries the session identity and role once
:func:`bind_session` has run, so interleaved output from a submitter and
an administrator terminal can be told apart.

Two renderers, both on stderr:
- console (default), coloured when stderr is a TTY
- JSON lines (``--log-json``)
"""

from __future__ import annotations

import logging
import sys

import structlog

# Third-party loggers held at WARNING even under --verbose.
_QUIET_LOGGERS = ("sqlalchemy", "PIL")

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _stderr_handler(log_json: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )
    return handler


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler and set levels.

    ``rentctl.*`` logs at DEBUG with *verbose*, WARNING otherwise. The
    root logger and :data:`_QUIET_LOGGERS` stay at WARNING.
    """
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stderr_handler(log_json))
    root.setLevel(logging.WARNING)

    logging.getLogger("rentctl").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_session(*, identity: str | None, role: str | None) -> None:
    """Attach the session identity and role to every later log line."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(identity=identity, role=role)
