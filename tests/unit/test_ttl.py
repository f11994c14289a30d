"""
unicache — TTL Helper Tests
"""

import math
from datetime import timedelta
from typing import Any

import pytest

from unicache.errors import InvalidTTLError
from unicache.ttl import parse_duration, validate_ttl


class TestValidateTTL:
    """Test suite for validate_ttl."""

    @pytest.mark.parametrize(
        ("ttl", "expected"),
        [
            (0, 0.0),
            (timedelta(0), 0.0),
            (60, 60.0),
            (1.5, 1.5),
            (timedelta(minutes=2), 120.0),
            (timedelta(milliseconds=250), 0.25),
        ],
    )
    def test_valid(self, ttl: Any, expected: float) -> None:
        assert validate_ttl(ttl) == expected

    @pytest.mark.parametrize("ttl", [-1, -0.001, timedelta(seconds=-5), float("nan")])
    def test_negative(self, ttl: Any) -> None:
        with pytest.raises(InvalidTTLError):
            validate_ttl(ttl)

    @pytest.mark.parametrize("ttl", ["10", None, True, [1]])
    def test_not_a_duration(self, ttl: Any) -> None:
        with pytest.raises(InvalidTTLError):
            validate_ttl(ttl)

    @pytest.mark.parametrize("ttl", [math.inf, -math.inf, float("inf")])
    def test_infinite(self, ttl: Any) -> None:
        with pytest.raises(InvalidTTLError):
            validate_ttl(ttl)

    def test_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            validate_ttl(-1, scheme="redis")


class TestParseDuration:
    """Test suite for parse_duration."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("5m", timedelta(minutes=5)),
            ("10s", timedelta(seconds=10)),
            ("300ms", timedelta(milliseconds=300)),
            ("1.5h", timedelta(hours=1, minutes=30)),
            ("2h45m", timedelta(hours=2, minutes=45)),
            ("1h30m15s", timedelta(hours=1, minutes=30, seconds=15)),
            ("1us", timedelta(microseconds=1)),
            ("1µs", timedelta(microseconds=1)),
            ("-1s", timedelta(seconds=-1)),
            ("+2s", timedelta(seconds=2)),
            ("30", timedelta(seconds=30)),
            ("0.5", timedelta(milliseconds=500)),
            ("0", timedelta(0)),
            (" 1m ", timedelta(minutes=1)),
        ],
    )
    def test_valid(self, text: str, expected: timedelta) -> None:
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "abc", "5x", "m5", "1h 30m", "1hh", "-", "5m!", "1.2.3s"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValueError):
            parse_duration(text)
