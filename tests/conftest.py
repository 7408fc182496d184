"""Shared pytest fixtures and test helpers for rentctl tests."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from rentctl.config.models import AuthConfig
from rentctl.config.settings import RentSettings
from rentctl.domain.signature import SignaturePad
from rentctl.infrastructure.store import AgreementStore
from rentctl.services.context import SessionContext
from rentctl.services.telemetry import disable_telemetry

ADMIN_IDENTITY = "admin-1"
ADMIN_TOKEN = "admin-token"
SECOND_ADMIN_TOKEN = "admin-laptop-token"
PARENT_TOKEN = "parent-token"

CONFIG_TOML = f"""\
[auth]
admin_identity = "{ADMIN_IDENTITY}"

[auth.tokens]
{ADMIN_TOKEN} = "{ADMIN_IDENTITY}"
{PARENT_TOKEN} = "parent-7"
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables out of every test."""
    for name in ("RENTCTL_CONFIG", "RENTCTL_TOKEN", "RENTCTL_AUTH__ADMIN_IDENTITY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_cli_state() -> Iterator[None]:
    """CLI invocations reconfigure logging and telemetry; undo both afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    rent = logging.getLogger("rentctl")
    rent_level = rent.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    rent.setLevel(rent_level)
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path) -> RentSettings:
    """Settings rooted at a temp directory with one configured administrator."""
    return RentSettings.from_cli(
        root=tmp_path,
        auth=AuthConfig(
            admin_identity=ADMIN_IDENTITY,
            tokens={
                ADMIN_TOKEN: ADMIN_IDENTITY,
                SECOND_ADMIN_TOKEN: ADMIN_IDENTITY,
                PARENT_TOKEN: "parent-7",
            },
        ),
    )


@pytest.fixture
def store(settings: RentSettings) -> Iterator[AgreementStore]:
    """Agreement store on a temp SQLite file."""
    s = AgreementStore(settings.db_path)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def admin_session(settings: RentSettings, store: AgreementStore) -> Iterator[SessionContext]:
    ctx = SessionContext.open(settings, store=store, token=ADMIN_TOKEN)
    try:
        yield ctx
    finally:
        ctx.close()


@pytest.fixture
def submitter_session(settings: RentSettings, store: AgreementStore) -> Iterator[SessionContext]:
    """Anonymous submitter session sharing the same store."""
    ctx = SessionContext.open(settings, store=store)
    try:
        yield ctx
    finally:
        ctx.close()


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """CWD = temp project with a rentctl.toml, so the CLI uses an isolated store."""
    (tmp_path / "rentctl.toml").write_text(CONFIG_TOML, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def signature_payload(offset: int = 0) -> str:
    """A real PNG signature payload from a short two-stroke signature."""
    pad = SignaturePad()
    pad.add_stroke([(10 + offset, 10), (40, 25), (70, 12)])
    pad.add_stroke([(20, 30), (60, 30)])
    return pad.save()


def write_strokes(path: Path, strokes: list[list[list[float]]] | None = None) -> Path:
    """Write a JSON stroke file (default: one short stroke)."""
    if strokes is None:
        strokes = [[[5, 5], [25, 18], [45, 9]]]
    path.write_text(json.dumps(strokes), encoding="utf-8")
    return path


def form_fields(**overrides: Any) -> dict[str, Any]:
    """Valid submission form fields (the end-to-end example), with overrides."""
    fields: dict[str, Any] = {
        "student_name": "Alex Lee",
        "parent_name": "Jamie Lee",
        "address": "12 Elm St",
        "phone_number": "555-0100",
        "parent_signature": signature_payload(),
        "student_signature": signature_payload(offset=3),
    }
    fields.update(overrides)
    return fields


def submit_agreement(session: SessionContext, **overrides: Any) -> str:
    """Submit a valid agreement through SubmissionService, asserting success."""
    from rentctl.services.submission import SubmissionForm, SubmissionService

    result = SubmissionService(session).submit(SubmissionForm(**form_fields(**overrides)))
    assert result.ok, result.error
    return str(result.data["id"])
