from __future__ import annotations

from datetime import timedelta

import pytest

from clawhub.timeutil import format_ms, parse_iso8601_ms, to_ms


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2020-01-01T00:00:00Z", 1577836800000),
        ("2020-01-01T00:00:00+00:00", 1577836800000),
        ("2020-01-01T02:00:00+02:00", 1577836800000),
        ("2020-01-01T00:00:00", 1577836800000),
        ("2020-01-01T00:00:00.250Z", 1577836800250),
    ],
)
def test_parse_iso8601_ms(value: str, expected: int) -> None:
    assert parse_iso8601_ms(value) == expected


@pytest.mark.parametrize("value", ["", "   ", "not a date", "2020-13-01T00:00:00Z"])
def test_parse_iso8601_ms_rejects_garbage(value: str) -> None:
    with pytest.raises(ValueError):
        parse_iso8601_ms(value)


def test_to_ms_and_format() -> None:
    assert to_ms(timedelta(hours=6)) == 21_600_000
    assert format_ms(None) == "never"
    assert format_ms(1577836800000) == "2020-01-01 00:00:00 UTC"
