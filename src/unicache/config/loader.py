"""
unicache — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the process.

Environment variables:
    ENVIRONMENT   development | staging | production | test
    LOG_LEVEL     DEBUG | INFO | WARNING | ERROR | CRITICAL
    CACHE_URL     cache URL, e.g. ramcache:// or redis://localhost:6379/0
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import UnicacheConfig

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_config_instance: UnicacheConfig | None = None


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> UnicacheConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated UnicacheConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    env_path = Path(env_file) if env_file else Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except OSError as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    config_dict = {
        "environment": os.getenv("ENVIRONMENT", "development"),
        "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
        "cache": {
            "url": os.getenv("CACHE_URL", "ramcache://"),
        },
    }

    try:
        _config_instance = UnicacheConfig(**config_dict)  # type: ignore[arg-type]
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(include_url=False), "config_dict_keys": list(config_dict)},
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors(include_url=False)},
        ) from e

    logger.info(
        f"Configuration loaded successfully (environment: {_config_instance.environment})",
        extra={"environment": _config_instance.environment, "cache_scheme": _config_instance.cache.scheme},
    )
    return _config_instance


def get_config() -> UnicacheConfig:
    """
    Get the current configuration instance.

    Loads it from the environment on first access.
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> UnicacheConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded UnicacheConfig instance
    """
    return load_config(env_file=env_file, reload=True)


def configure_logging(level: str | int | None = None) -> None:
    """Set up root logging; defaults to the configured log level."""
    if level is None:
        level = get_config().log_level
    logging.basicConfig(level=level, format=LOG_FORMAT)
