"""
unicache — ramcache Options

URL format:

    ramcache://[?cleanupinterval=<duration>]

``cleanupinterval`` accepts durations such as ``30s``, ``5m``, ``1h30m``
or a bare number of seconds. Missing or non-positive values fall back to
5 minutes.
"""

from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...ttl import parse_duration
from .eviction import DEFAULT_SWEEP_INTERVAL

# query key -> RamcacheOptions field
URL_FIELDS: dict[str, str] = {
    "cleanupinterval": "cleanup_interval",
    "cleanup_interval": "cleanup_interval",
}


class RamcacheOptions(BaseModel):
    """Options for the in-memory cache driver."""

    model_config = ConfigDict(frozen=True)

    cleanup_interval: timedelta = Field(
        default=DEFAULT_SWEEP_INTERVAL,
        description="How often the background sweep removes expired entries",
    )

    @field_validator("cleanup_interval", mode="before")
    @classmethod
    def parse_interval(cls, v: Any) -> Any:
        """Accept duration strings and plain seconds."""
        if v is None:
            return DEFAULT_SWEEP_INTERVAL
        if isinstance(v, str):
            return parse_duration(v)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return timedelta(seconds=v)
        return v

    @field_validator("cleanup_interval")
    @classmethod
    def revise_interval(cls, v: timedelta) -> timedelta:
        """Non-positive intervals fall back to the default."""
        if v <= timedelta(0):
            return DEFAULT_SWEEP_INTERVAL
        return v
