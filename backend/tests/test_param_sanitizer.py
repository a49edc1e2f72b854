"""
Invalid UTF-8 repair tests.

deep_clean_invalid_utf8_bytes walks the whole payload before any field is
extracted; it must never raise, must leave valid text alone, and must never
touch binary content.
"""

import io

from mailhook.services.indifferent_params import IndifferentParams
from mailhook.services.param_sanitizer import (
    clean_invalid_utf8_bytes,
    deep_clean_invalid_utf8_bytes,
)


def _smuggled(raw: bytes) -> str:
    """Text as a form parser hands it over when the bytes are not UTF-8."""
    return raw.decode("utf-8", errors="surrogateescape")


class TestCleanInvalidUtf8Bytes:

    def test_valid_string_is_unchanged(self):
        assert clean_invalid_utf8_bytes("héllo wörld") == "héllo wörld"

    def test_surrogate_escaped_string_is_read_as_latin1(self):
        assert clean_invalid_utf8_bytes(_smuggled(b"caf\xe9")) == "café"

    def test_unmappable_surrogate_becomes_substitution(self):
        assert clean_invalid_utf8_bytes("a\ud800b") == "a?b"

    def test_repair_is_idempotent(self):
        once = clean_invalid_utf8_bytes(_smuggled(b"\xeenv\xe5li?"))
        assert once == "învåli?"
        assert clean_invalid_utf8_bytes(once) == once

    def test_bytes_pass_through_untouched(self):
        png = b"\x89PNG\r\n\x1a\n\xff\xfe"
        assert clean_invalid_utf8_bytes(png) is png
        buffer = bytearray(b"\xff\xd8\xff\xe0")
        assert clean_invalid_utf8_bytes(buffer) is buffer

    def test_non_text_passes_through(self):
        handle = io.BytesIO(b"\xff")
        assert clean_invalid_utf8_bytes(handle) is handle
        assert clean_invalid_utf8_bytes(42) == 42
        assert clean_invalid_utf8_bytes(None) is None


class TestDeepClean:

    def test_repairs_nested_structures(self):
        payload = {
            "subject": _smuggled(b"caf\xe9"),
            "nested": {"deeper": {"name": _smuggled(b"na\xefve")}},
            "list": [_smuggled(b"\xe9t\xe9"), ("ok", _smuggled(b"\xff"))],
        }
        cleaned = deep_clean_invalid_utf8_bytes(payload)

        assert cleaned["subject"] == "café"
        assert cleaned["nested"]["deeper"]["name"] == "naïve"
        assert cleaned["list"][0] == "été"
        assert cleaned["list"][1] == ("ok", "ÿ")

    def test_valid_strings_elsewhere_are_untouched(self):
        payload = {"good": "Jon Snow <jon@example.com>", "bad": _smuggled(b"\xe9")}
        cleaned = deep_clean_invalid_utf8_bytes(payload)
        assert cleaned["good"] == "Jon Snow <jon@example.com>"
        assert cleaned["bad"] == "é"

    def test_attachment_content_keeps_its_bytes(self):
        content = b"\x89PNG\r\n\x1a\n\xff\xfe"
        payload = {
            "attachments": [{"filename": "a.png", "content": content}],
            "attachment-1": b"\xff\xd8\xff\xe0 jpeg",
        }
        cleaned = deep_clean_invalid_utf8_bytes(payload)

        assert cleaned["attachments"][0]["content"] == content
        assert isinstance(cleaned["attachments"][0]["content"], bytes)
        assert cleaned["attachment-1"] == b"\xff\xd8\xff\xe0 jpeg"

    def test_indifferent_params_keep_their_type(self):
        params = IndifferentParams({"Subject": _smuggled(b"caf\xe9")})
        cleaned = deep_clean_invalid_utf8_bytes(params)

        assert isinstance(cleaned, IndifferentParams)
        assert cleaned["SUBJECT"] == "café"

    def test_does_not_mutate_input(self):
        smuggled = _smuggled(b"caf\xe9")
        payload = {"subject": smuggled}
        deep_clean_invalid_utf8_bytes(payload)
        assert payload["subject"] == smuggled
