"""
unicache — URL helpers

Cache URLs look like ``scheme://[host][:port][/path][?query]``; the scheme
selects the driver and the query carries driver options.

Each driver declares an explicit table mapping lower-cased query keys to
fields of its pydantic options model. Keys missing from the table are
ignored (logged at debug), which lets the same query string carry options
that are consumed elsewhere, e.g. by the redis client itself.
"""

import logging
from collections.abc import Mapping
from typing import Any, TypeVar
from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit

from pydantic import BaseModel, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_cache_url(url: str | SplitResult) -> SplitResult:
    """
    Parse a cache URL.

    Raises:
        ConfigurationError: If the URL cannot be parsed or has no scheme
    """
    if isinstance(url, SplitResult):
        parsed = url
    else:
        try:
            parsed = urlsplit(url.strip())
        except (AttributeError, ValueError) as e:
            raise ConfigurationError(f"Invalid cache URL: {url!r}", details={"url": repr(url)}) from e

    if not parsed.scheme:
        raise ConfigurationError(
            f"Cache URL has no scheme: {parsed.geturl()!r}",
            details={"url": parsed.geturl()},
        )
    return parsed


def query_params(url: SplitResult, overrides: Mapping[str, str] | None = None) -> dict[str, str]:
    """
    Collect query parameters into a flat dict.

    Keys are lower-cased; for repeated keys the first value wins.
    ``overrides`` are merged last.
    """
    params: dict[str, str] = {}
    for key, value in parse_qsl(url.query, keep_blank_values=True):
        params.setdefault(key.lower(), value)
    for key, value in (overrides or {}).items():
        params[key.lower()] = value
    return params


def options_from_url(
    url: SplitResult,
    model: type[ModelT],
    field_map: Mapping[str, str],
    overrides: Mapping[str, str] | None = None,
) -> ModelT:
    """
    Build a driver options model from URL query parameters.

    Args:
        url: Parsed cache URL
        model: pydantic model to populate
        field_map: lower-cased query key -> model field name
        overrides: Extra parameters that take precedence over the query

    Returns:
        Validated options model

    Raises:
        ConfigurationError: If a mapped value fails validation
    """
    values: dict[str, Any] = {}
    for key, value in query_params(url, overrides).items():
        field = field_map.get(key)
        if field is None:
            logger.debug("Ignoring unknown query parameter '%s' for %s", key, model.__name__)
            continue
        values[field] = value

    try:
        return model(**values)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid options in cache URL for scheme '{url.scheme}'",
            details={"scheme": url.scheme, "validation_errors": e.errors(include_url=False)},
        ) from e


def strip_query_params(url: SplitResult, keys: set[str]) -> SplitResult:
    """Return the URL without the given (case-insensitive) query keys."""
    kept = [(k, v) for k, v in parse_qsl(url.query, keep_blank_values=True) if k.lower() not in keys]
    return url._replace(query=urlencode(kept))
