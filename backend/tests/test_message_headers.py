"""
HeaderSet tests.
"""

import json

import pytest

from mailhook.services.message_headers import HeaderSet


class TestHeaderSet:

    def test_parses_pairs_in_order(self):
        headers = HeaderSet.from_json(json.dumps([["X-B", "2"], ["X-A", "1"]]))
        assert list(headers.items()) == [("X-B", "2"), ("X-A", "1")]

    def test_lookup_ignores_case(self):
        headers = HeaderSet.from_json('[["Reply-To", "m@x.com"]]')
        assert headers.get("reply-to") == "m@x.com"
        assert headers["REPLY-TO"] == "m@x.com"
        assert headers.get("Cc") is None

    def test_serializes_one_header_per_line(self):
        headers = HeaderSet.from_json('[["Reply-To", "m@x.com"], ["X-Mailgun-Sid", "abc"]]')
        assert headers.serialize() == "Reply-To: m@x.com\nX-Mailgun-Sid: abc"

    def test_repeated_name_keeps_position_and_last_value(self):
        headers = HeaderSet.from_json(
            '[["Received", "first"], ["Subject", "hi"], ["received", "second"]]'
        )
        assert headers.serialize() == "Received: second\nSubject: hi"

    def test_absent_field_is_empty(self):
        assert len(HeaderSet.from_json(None)) == 0
        assert HeaderSet.from_json("").serialize() == ""

    def test_already_decoded_list_is_accepted(self):
        headers = HeaderSet.from_json([["To", "a@example.com"]])
        assert headers["to"] == "a@example.com"

    def test_malformed_json_raises(self):
        with pytest.raises(json.JSONDecodeError):
            HeaderSet.from_json("[[not json")
