"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from rentctl.config.logging import bind_session, configure_logging


@pytest.fixture(autouse=True)
def _clear_context() -> Iterator[None]:
    yield
    structlog.contextvars.clear_contextvars()


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("rentctl").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False, log_json=False)
        assert logging.getLogger("rentctl").level == logging.WARNING

    def test_sqlalchemy_kept_quiet(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("sqlalchemy").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("rentctl.test").warning("json test", answer=42)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "rentctl.test"
        assert "timestamp" in parsed

    def test_stdlib_logger_gets_session_fields(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        bind_session(identity="admin-1", role="administrator")
        logging.getLogger("rentctl.services.assignment").warning("assignment failed")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "assignment failed"
        assert parsed["identity"] == "admin-1"
        assert parsed["role"] == "administrator"


class TestBindSession:
    def test_rebinding_replaces_previous_identity(self) -> None:
        bind_session(identity="anon_1", role="submitter")
        bind_session(identity="admin-1", role="administrator")
        bound = structlog.contextvars.get_contextvars()
        assert bound == {"identity": "admin-1", "role": "administrator"}
