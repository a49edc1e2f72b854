"""
Repair invalid UTF-8 anywhere in an inbound webhook payload.

Form fields decoded with ``surrogateescape`` carry the bytes the sending MTA
produced that are not valid UTF-8 as lone surrogates. Such text is
reinterpreted byte-for-byte as ISO-8859-1, which always succeeds, so
downstream code can assume every string is valid text. The repair is
best-effort: it never raises, and the result may be mojibake rather than
what the sender meant.

Only str values are repaired. bytes are binary content (attachment data) and
pass through untouched.
"""

from collections.abc import Mapping
from typing import Any

from mailhook.services.indifferent_params import IndifferentParams

FALLBACK_ENCODING = "iso-8859-1"


def clean_invalid_utf8_bytes(text: Any) -> Any:
    """Return text as a valid str; non-str values are returned untouched."""
    if not isinstance(text, str):
        return text

    try:
        text.encode("utf-8")
        return text
    except UnicodeEncodeError:
        pass

    # Lone surrogates: either undecodable bytes carried by surrogateescape,
    # or garbage that cannot be mapped back to bytes at all.
    try:
        raw = text.encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError:
        return text.encode("utf-8", errors="replace").decode("utf-8")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode(FALLBACK_ENCODING)


def deep_clean_invalid_utf8_bytes(obj: Any) -> Any:
    """
    Walk mappings, lists and tuples, repairing every string found.

    Mappings keep their keys; IndifferentParams stays IndifferentParams and
    any other mapping becomes a plain dict. File handles, numbers and other
    opaque values pass through.
    """
    if isinstance(obj, IndifferentParams):
        return IndifferentParams(
            {key: deep_clean_invalid_utf8_bytes(value) for key, value in obj.items()}
        )
    if isinstance(obj, Mapping):
        return {key: deep_clean_invalid_utf8_bytes(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [deep_clean_invalid_utf8_bytes(element) for element in obj]
    if isinstance(obj, tuple):
        return tuple(deep_clean_invalid_utf8_bytes(element) for element in obj)
    return clean_invalid_utf8_bytes(obj)
