"""
Case-indifferent parameter mapping for webhook payloads.

Mailgun posts the same logical field under several spellings ("To", "to"),
and callers may look fields up with Enum members as well as plain strings.
IndifferentParams folds all of them onto one lower-cased key.
"""

from collections.abc import Iterator, Mapping, MutableMapping
from enum import Enum
from typing import Any


def normalize_key(key: Any) -> str:
    """Return the canonical (lower-cased string) form of a mapping key."""
    if isinstance(key, Enum):
        key = key.value
    if isinstance(key, bytes):
        key = key.decode("utf-8", errors="replace")
    return str(key).lower()


def is_present(value: Any) -> bool:
    """
    True unless value is None, a whitespace-only string, or an empty
    collection.
    """
    if value is None:
        return False
    if isinstance(value, (str, bytes)):
        return bool(value.strip())
    if isinstance(value, (Mapping, list, tuple, set)):
        return len(value) > 0
    return True


class IndifferentParams(MutableMapping):
    """Ordered mapping whose keys are matched case-insensitively."""

    def __init__(self, data: Mapping | None = None, **kwargs: Any):
        self._data: dict[str, Any] = {}
        if data is not None:
            self.update(data)
        if kwargs:
            self.update(kwargs)

    def __getitem__(self, key: Any) -> Any:
        return self._data[normalize_key(key)]

    def __setitem__(self, key: Any, value: Any) -> None:
        self._data[normalize_key(key)] = value

    def __delitem__(self, key: Any) -> None:
        del self._data[normalize_key(key)]

    def __contains__(self, key: object) -> bool:
        return normalize_key(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"IndifferentParams({self._data!r})"

    def copy(self) -> "IndifferentParams":
        return IndifferentParams(self._data)
