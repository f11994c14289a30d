"""
unicache — Value Serialization

Converts values passed to ``set`` / ``set_with_ttl`` into bytes.

Accepted as-is:
- bytes, bytearray, memoryview
- str (UTF-8 encoded)

Otherwise the first matching capability wins:
1. binary:    ``__bytes__``
2. text:      ``marshal_text()`` -> str | bytes
3. JSON:      ``model_dump_json()`` (pydantic models) or ``to_json()``
4. stringer:  a user-defined ``__str__``
5. reader:    ``read()`` -> str | bytes, consumed fully

Builtin numbers, containers and None match nothing and are rejected with
UnsupportedValueTypeError. If a capability itself raises, the failure is
surfaced as SerializationError chained to the original exception.
"""

import builtins
import logging
from collections.abc import Callable
from typing import Any

from .errors import SerializationError, UnsupportedValueTypeError

logger = logging.getLogger(__name__)


def _has_method(value: Any, name: str) -> bool:
    return callable(getattr(value, name, None))


def _defines_str(value: Any) -> bool:
    """True if a non-builtin class in the MRO overrides __str__."""
    for cls in type(value).__mro__:
        if cls.__module__ == builtins.__name__:
            continue
        if "__str__" in cls.__dict__:
            return True
    return False


def _encode(result: Any) -> bytes:
    if isinstance(result, (bytes, bytearray, memoryview)):
        return bytes(result)
    if isinstance(result, str):
        return result.encode("utf-8")
    raise TypeError(f"expected str or bytes, got {type(result).__qualname__}")


def _read_all(value: Any) -> bytes:
    # read() with no size reads to EOF on file objects and io buffers
    return _encode(value.read())


def _to_json(value: Any) -> bytes:
    if _has_method(value, "model_dump_json"):
        return _encode(value.model_dump_json())
    return _encode(value.to_json())


_CAPABILITIES: list[tuple[str, Callable[[Any], bool], Callable[[Any], bytes]]] = [
    ("__bytes__", lambda v: _has_method(v, "__bytes__"), lambda v: _encode(v.__bytes__())),
    ("marshal_text", lambda v: _has_method(v, "marshal_text"), lambda v: _encode(v.marshal_text())),
    (
        "json",
        lambda v: _has_method(v, "model_dump_json") or _has_method(v, "to_json"),
        _to_json,
    ),
    ("__str__", _defines_str, lambda v: str(v).encode("utf-8")),
    ("read", lambda v: _has_method(v, "read"), _read_all),
]


def to_bytes(value: Any, scheme: str | None = None) -> bytes:
    """
    Serialize a value into bytes for storage.

    Args:
        value: Value to serialize
        scheme: Driver scheme, used to label errors

    Returns:
        Serialized payload

    Raises:
        UnsupportedValueTypeError: If no capability applies to the value
        SerializationError: If the matching capability fails
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")

    for capability, applies, convert in _CAPABILITIES:
        if not applies(value):
            continue
        try:
            return convert(value)
        except Exception as e:
            logger.debug(
                "Serialization of %s via %s failed: %s",
                type(value).__qualname__,
                capability,
                e,
                extra={"value_type": type(value).__qualname__, "capability": capability},
            )
            raise SerializationError(type(value), capability, scheme=scheme) from e

    raise UnsupportedValueTypeError(type(value), scheme=scheme)
