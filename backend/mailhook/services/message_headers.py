"""
Header set reconstructed from Mailgun's ``message-headers`` field.

Mailgun sends the parsed headers as a JSON array of ``[name, value]`` pairs.
The downstream pipeline expects an unparsed header block, so the pairs are
serialized back into ``Name: Value`` lines, one header per line.
"""

import json
from typing import Any, Iterator, Optional

from mailhook.services.indifferent_params import is_present, normalize_key


class HeaderSet:
    """Ordered, case-insensitive header lookup."""

    def __init__(self, pairs: Optional[list] = None):
        # lower-cased name -> (name as first seen, latest value)
        self._headers: dict[str, tuple[str, Any]] = {}
        for name, value in pairs or []:
            key = normalize_key(name)
            original = self._headers[key][0] if key in self._headers else str(name)
            self._headers[key] = (original, value)

    @classmethod
    def from_json(cls, raw: Any) -> "HeaderSet":
        """
        Build a HeaderSet from the raw ``message-headers`` field.

        A missing or blank field gives an empty set. Invalid JSON raises
        json.JSONDecodeError to the caller.
        """
        if not is_present(raw):
            return cls()

        parsed = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        if isinstance(parsed, dict):
            parsed = list(parsed.items())
        return cls([(pair[0], pair[1]) for pair in parsed])

    def get(self, name: Any, default: Any = None) -> Any:
        entry = self._headers.get(normalize_key(name))
        return entry[1] if entry is not None else default

    def __getitem__(self, name: Any) -> Any:
        return self._headers[normalize_key(name)][1]

    def __contains__(self, name: object) -> bool:
        return normalize_key(name) in self._headers

    def __len__(self) -> int:
        return len(self._headers)

    def items(self) -> Iterator[tuple[str, Any]]:
        return iter(self._headers.values())

    def serialize(self) -> str:
        return "\n".join(f"{name}: {value}" for name, value in self.items())
