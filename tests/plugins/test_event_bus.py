"""Tests for EventBus — WAL-backed lifecycle event dispatch."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import select
from sqlalchemy.engine import Engine

from rentctl.infrastructure.database.engine import init_database
from rentctl.infrastructure.database.schema import agreement_events
from rentctl.plugins.event_bus import EventBus
from rentctl.plugins.hookspecs import hookimpl
from rentctl.plugins.manager import PluginManager


class RecordingPlugin:
    def __init__(self) -> None:
        self.assigned: list[str] = []

    @hookimpl
    def post_assign(self, agreement_id: str, instrument: str, brand: str) -> None:
        self.assigned.append(agreement_id)


class FlakyPlugin:
    """Fails until ``healthy`` is set."""

    def __init__(self) -> None:
        self.healthy = False
        self.calls = 0

    @hookimpl
    def post_assign(self, agreement_id: str, instrument: str, brand: str) -> None:
        self.calls += 1
        if not self.healthy:
            raise RuntimeError("mail server down")


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    e = init_database(tmp_path / "agreements.db")
    yield e
    e.dispose()


def _bus(engine: Engine, plugin: object, **kwargs: int) -> EventBus:
    pm = PluginManager()
    pm.register_plugin(plugin)
    return EventBus(engine, pm, **kwargs)


def _rows(engine: Engine) -> list:
    with engine.connect() as conn:
        return conn.execute(select(agreement_events).order_by(agreement_events.c.id)).fetchall()


PAYLOAD = {"agreement_id": "agr_1", "instrument": "Flute", "brand": "Yamaha-123"}


class TestDispatch:
    def test_success_marks_completed(self, engine: Engine) -> None:
        plugin = RecordingPlugin()
        event_id = _bus(engine, plugin).dispatch("post_assign", PAYLOAD)

        assert plugin.assigned == ["agr_1"]
        (row,) = _rows(engine)
        assert row.id == event_id
        assert row.status == "completed"
        assert row.completed is not None
        assert json.loads(row.payload) == PAYLOAD

    def test_failure_is_recorded_not_raised(self, engine: Engine) -> None:
        _bus(engine, FlakyPlugin()).dispatch("post_assign", PAYLOAD)
        (row,) = _rows(engine)
        assert row.status == "failed"
        assert row.retries == 1
        assert "mail server down" in row.error

    def test_unknown_hook_completes(self, engine: Engine) -> None:
        _bus(engine, RecordingPlugin()).dispatch("post_print", {})
        assert _rows(engine)[0].status == "completed"


class TestDrain:
    def test_retries_failed_events(self, engine: Engine) -> None:
        plugin = FlakyPlugin()
        bus = _bus(engine, plugin)
        event_id = bus.dispatch("post_assign", PAYLOAD)

        plugin.healthy = True
        assert bus.drain() == [{"id": event_id, "hook_name": "post_assign", "status": "completed"}]
        assert plugin.calls == 2

    def test_dead_letter_after_max_retries(self, engine: Engine) -> None:
        bus = _bus(engine, FlakyPlugin(), max_retries=2)
        bus.dispatch("post_assign", PAYLOAD)
        results = bus.drain()
        assert results[0]["status"] == "dead_letter"
        assert bus.drain() == []

    def test_nothing_to_drain(self, engine: Engine) -> None:
        assert _bus(engine, RecordingPlugin()).drain() == []
