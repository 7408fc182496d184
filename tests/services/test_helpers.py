"""Tests for shared service-layer helper functions."""

from __future__ import annotations

import re

from rentctl.services._helpers import is_blank, is_iso_date, now_iso, today_iso


class TestTodayIso:
    def test_format(self) -> None:
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", today_iso())


class TestNowIso:
    def test_format(self) -> None:
        result = now_iso()
        assert "T" in result
        assert ":" in result


class TestIsIsoDate:
    def test_valid(self) -> None:
        assert is_iso_date("2026-09-01")

    def test_wrong_shape(self) -> None:
        assert not is_iso_date("09/01/2026")
        assert not is_iso_date("2026-9-1")

    def test_not_a_calendar_date(self) -> None:
        assert not is_iso_date("2026-02-30")


class TestIsBlank:
    def test_blank_values(self) -> None:
        assert is_blank(None)
        assert is_blank("")
        assert is_blank("   \t")

    def test_non_blank(self) -> None:
        assert not is_blank("x")
        assert not is_blank(" Alex ")
