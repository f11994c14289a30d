"""
unicache — Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration is validated when it is loaded.

The cache itself is configured by a single URL whose scheme selects the
driver and whose query carries driver options, e.g.:

    ramcache://?cleanupinterval=1m
    redis://localhost:6379/0?countlimit=100
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import ConfigurationError
from ..urls import parse_cache_url


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheConfig(BaseModel):
    """Cache configuration."""

    url: str = Field(default="ramcache://", description="Cache URL; the scheme selects the driver")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure the URL carries a scheme."""
        v = v.strip()
        try:
            parse_cache_url(v)
        except ConfigurationError as e:
            raise ValueError(e.message) from e
        return v

    @property
    def scheme(self) -> str:
        return parse_cache_url(self.url).scheme.lower()


class UnicacheConfig(BaseModel):
    """Root configuration for unicache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheConfig = Field(default_factory=CacheConfig)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
