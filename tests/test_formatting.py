"""Tests for promptwatch.utils.formatting."""

from datetime import datetime, timedelta, timezone

import pytest

from promptwatch.utils.formatting import (
    format_cpu,
    format_duration,
    format_memory,
    format_relative_gap,
    format_short_duration,
    format_timestamp,
    format_uptime,
    truncate_path,
)


@pytest.mark.parametrize("seconds,expected", [
    (0, "0s"),
    (45, "45s"),
    (125, "2m 5s"),
    (3 * 3600 + 20 * 60, "3h 20m"),
    (-5, "0s"),
])
def test_format_duration(seconds, expected):
    assert format_duration(timedelta(seconds=seconds)) == expected


@pytest.mark.parametrize("seconds,expected", [
    (12 * 60, "12m"),
    (3600 + 5 * 60, "1h5m"),
    (-1, "0m"),
])
def test_format_short_duration(seconds, expected):
    assert format_short_duration(timedelta(seconds=seconds)) == expected


@pytest.mark.parametrize("seconds,expected", [
    (59, "0m"),
    (90 * 60, "1h 30m"),
    (2 * 86400 + 3 * 3600, "2d 3h"),
    (-1, "unknown"),
])
def test_format_uptime(seconds, expected):
    assert format_uptime(timedelta(seconds=seconds)) == expected


class TestRelativeGap:
    T0 = datetime(2026, 1, 30, 14, tzinfo=timezone.utc)

    def test_seconds(self):
        assert format_relative_gap(self.T0 + timedelta(seconds=2), self.T0) == "+2s"

    def test_minutes(self):
        assert format_relative_gap(self.T0 + timedelta(seconds=90), self.T0) == "+1m30s"

    def test_unknown(self):
        assert format_relative_gap(self.T0, None) == ""
        assert format_relative_gap(None, self.T0) == ""

    def test_not_after(self):
        assert format_relative_gap(self.T0, self.T0) == ""


def test_format_cpu():
    assert format_cpu(12.345) == "12.3%"
    assert format_cpu(150.0) == ">99%"


def test_format_memory():
    assert format_memory(512.0) == "512.00M"
    assert format_memory(2048.0) == "2.00G"


def test_format_timestamp():
    assert format_timestamp(datetime(2026, 1, 30, 14, 5)) == "2026-01-30 14:05"
    assert format_timestamp(None) == "unknown"


class TestTruncatePath:
    def test_home_replaced(self):
        assert truncate_path("/home/wiz/projects/app", 50, home="/home/wiz") == "~/projects/app"

    def test_short_path_untouched(self):
        assert truncate_path("/srv/app", 50, home="/home/wiz") == "/srv/app"

    def test_middle_truncation(self):
        result = truncate_path("/srv/very/long/path/to/some/project", 20, home="/home/wiz")
        assert len(result) == 20
        assert "..." in result
        assert result.startswith("/srv")
        assert result.endswith("project")

    def test_tiny_limit(self):
        assert truncate_path("/srv/app/thing", 5, home="") == "/srv/"
