"""Telemetry — @traced timing for service operations.

Near-zero overhead when disabled (single ContextVar.get per call).
When enabled via --verbose, each traced operation is timed, logged,
and its duration injected into ServiceResult.meta.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from contextvars import ContextVar
from typing import ParamSpec, TypeVar

import structlog

from rentctl.services.result import ServiceResult

_verbose_enabled: ContextVar[bool] = ContextVar("_verbose_enabled", default=False)

_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Decorator: time a service operation and record it in ``meta["telemetry"]``."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _verbose_enabled.get():
            return func(*args, **kwargs)

        log = structlog.get_logger("rentctl.telemetry")
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception:
            log.debug("span.complete", span_name=func.__qualname__, ok=False)
            raise
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        if isinstance(result, ServiceResult):
            telemetry = {"name": func.__qualname__, "duration_ms": duration_ms}
            merged = {**(result.meta or {}), "telemetry": telemetry}
            log.debug("span.complete", span_name=func.__qualname__, duration_ms=duration_ms, ok=result.ok)
            return result.model_copy(update={"meta": merged})  # type: ignore[return-value]
        log.debug("span.complete", span_name=func.__qualname__, duration_ms=duration_ms, ok=True)
        return result

    return wrapper


def enable_telemetry() -> None:
    """Enable verbose telemetry (called by AppContext at startup)."""
    _verbose_enabled.set(True)


def disable_telemetry() -> None:
    _verbose_enabled.set(False)
