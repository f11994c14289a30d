"""
unicache — Key modifiers

Helpers for building keys, mainly for Redis Cluster where a ``{hash tag}``
inside a key pins related keys to the same slot.

Every cache operation accepts ``*modifiers``: callables ``(str) -> str``
applied to the key (or pattern) in order before it reaches the backend.

Example:
    await cache.set("profile", b"...", Key.tagger("user:42"))
    # stored under "{user:42}profile"
"""

from collections.abc import Callable

KeyModifier = Callable[[str], str]


class Key(str):
    """A cache key with chainable prefix/suffix helpers."""

    def prefix(self, text: str) -> "Key":
        """Prepend text to the key."""
        return Key(text + self)

    def suffix(self, text: str) -> "Key":
        """Append text to the key."""
        return Key(self + text)

    def tag_prefix(self, text: str) -> "Key":
        """Wrap text in curly braces and prepend it."""
        return self.prefix("{" + text + "}")

    def tag_suffix(self, text: str) -> "Key":
        """Wrap text in curly braces and append it."""
        return self.suffix("{" + text + "}")

    @staticmethod
    def tagger(text: str) -> KeyModifier:
        """Modifier that hash-tags a key with ``{text}``."""
        return lambda key: Key(key).tag_prefix(text)

    @staticmethod
    def prefixer(text: str) -> KeyModifier:
        """Modifier that prepends text to a key."""
        return lambda key: Key(key).prefix(text)


def modify(key: str, *modifiers: KeyModifier) -> str:
    """Apply modifiers to a key, left to right."""
    for modifier in modifiers:
        key = modifier(key)
    return str(key)
