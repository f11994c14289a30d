"""
unicache — URL and Driver Options Tests
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from unicache.backends.ramcache import RamcacheOptions
from unicache.backends.ramcache.options import URL_FIELDS
from unicache.errors import ConfigurationError
from unicache.urls import options_from_url, parse_cache_url, query_params, strip_query_params


class TestParseCacheUrl:
    """Test suite for parse_cache_url."""

    def test_scheme_and_query(self) -> None:
        url = parse_cache_url("ramcache://?cleanupinterval=1m")
        assert url.scheme == "ramcache"
        assert url.query == "cleanupinterval=1m"

    @pytest.mark.parametrize("text", ["", "no-scheme", "/just/a/path"])
    def test_missing_scheme(self, text: str) -> None:
        with pytest.raises(ConfigurationError):
            parse_cache_url(text)

    def test_not_a_string(self) -> None:
        with pytest.raises(ConfigurationError):
            parse_cache_url(None)  # type: ignore[arg-type]


class TestQueryParams:
    """Test suite for query_params and strip_query_params."""

    def test_lowercased_first_value_wins(self) -> None:
        url = parse_cache_url("redis://h?CountLimit=5&countlimit=9&db=1")
        assert query_params(url) == {"countlimit": "5", "db": "1"}

    def test_overrides(self) -> None:
        url = parse_cache_url("redis://h?countlimit=5")
        assert query_params(url, {"CountLimit": "7"}) == {"countlimit": "7"}

    def test_strip(self) -> None:
        url = parse_cache_url("redis://h:6379/0?countlimit=5&health_check_interval=10")
        stripped = strip_query_params(url, {"countlimit"})
        assert stripped.geturl() == "redis://h:6379/0?health_check_interval=10"


class TestRamcacheOptions:
    """Test suite for ramcache URL options."""

    def _open(self, url: str) -> RamcacheOptions:
        return options_from_url(parse_cache_url(url), RamcacheOptions, URL_FIELDS)

    def test_defaults(self) -> None:
        assert self._open("ramcache://").cleanup_interval == timedelta(minutes=5)

    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            ("cleanupinterval=1m", timedelta(minutes=1)),
            ("CleanupInterval=30s", timedelta(seconds=30)),
            ("cleanup_interval=90", timedelta(seconds=90)),
            ("cleanupinterval=1h30m", timedelta(hours=1, minutes=30)),
        ],
    )
    def test_cleanup_interval(self, query: str, expected: timedelta) -> None:
        assert self._open(f"ramcache://?{query}").cleanup_interval == expected

    @pytest.mark.parametrize("query", ["cleanupinterval=0", "cleanupinterval=-5m", "cleanupinterval=0s"])
    def test_non_positive_falls_back(self, query: str) -> None:
        assert self._open(f"ramcache://?{query}").cleanup_interval == timedelta(minutes=5)

    def test_invalid_duration(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            self._open("ramcache://?cleanupinterval=soon")

        assert isinstance(exc_info.value.__cause__, ValidationError)
        assert exc_info.value.details["scheme"] == "ramcache"

    def test_unknown_keys_ignored(self) -> None:
        assert self._open("ramcache://?colour=blue").cleanup_interval == timedelta(minutes=5)

    def test_direct_construction(self) -> None:
        assert RamcacheOptions(cleanup_interval="2m").cleanup_interval == timedelta(minutes=2)
        assert RamcacheOptions(cleanup_interval=None).cleanup_interval == timedelta(minutes=5)
