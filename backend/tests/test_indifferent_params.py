"""
IndifferentParams and is_present tests.
"""

from enum import Enum

import pytest

from mailhook.services.indifferent_params import IndifferentParams, is_present


class Field(Enum):
    TO = "To"


class TestIndifferentParams:

    def test_lookup_ignores_case(self):
        params = IndifferentParams({"To": "a@example.com"})
        assert params["to"] == "a@example.com"
        assert params["TO"] == "a@example.com"
        assert "tO" in params

    def test_enum_keys_resolve_to_the_same_field(self):
        params = IndifferentParams({"to": "a@example.com"})
        assert params[Field.TO] == "a@example.com"

    def test_later_spelling_overwrites_earlier(self):
        params = IndifferentParams({"From": "", "from": "jon@example.com"})
        assert len(params) == 1
        assert params["From"] == "jon@example.com"

    def test_pop_and_delete_use_normalized_keys(self):
        params = IndifferentParams({"Attachment-1": "u1", "attachment-2": "u2"})
        assert params.pop("attachment-1") == "u1"
        del params["ATTACHMENT-2"]
        assert len(params) == 0

    def test_copy_is_independent(self):
        params = IndifferentParams({"a": 1})
        copied = params.copy()
        del copied["a"]
        assert params["a"] == 1


class TestIsPresent:

    @pytest.mark.parametrize("value", [None, "", "   ", b"", [], {}])
    def test_blank_values(self, value):
        assert not is_present(value)

    @pytest.mark.parametrize("value", ["x", 0, ["a"], object()])
    def test_present_values(self, value):
        assert is_present(value)

