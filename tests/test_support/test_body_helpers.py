"""Tests for request body decoding, spooling and method override."""
import io
import os

import pytest

from sluice.request import decode_body, method_override, read_body, spool_body
from sluice.testing import make_request


class TestDecodeBody:
    def test_form(self):
        assert decode_body(b"a=1&b=two&a=3", "application/x-www-form-urlencoded") == {
            "a": "1", "b": "two"
        }

    def test_form_blank_values(self):
        assert decode_body(b"a=&b", "application/x-www-form-urlencoded") == {
            "a": "", "b": ""
        }

    def test_json_with_charset(self):
        assert decode_body(b'[1, 2]', "application/json; charset=utf-8") == [1, 2]

    def test_json_suffix(self):
        assert decode_body(b'{"a": 1}', "application/problem+json") == {"a": 1}

    def test_empty_json(self):
        assert decode_body(b"", "application/json") is None

    def test_malformed_json(self):
        with pytest.raises(ValueError):
            decode_body(b"{", "application/json")

    def test_other_is_bytes(self):
        assert decode_body(b"<xml/>", "text/xml") == b"<xml/>"
        assert decode_body(b"raw", None) == b"raw"


class TestSpool:
    def test_spool_and_read(self, tmp_path):
        path = spool_body(io.BytesIO(b"x=1&y=2"), chunk_size=2, directory=tmp_path)
        try:
            assert os.path.dirname(path) == str(tmp_path)
            assert read_body(path, "application/x-www-form-urlencoded") == {
                "x": "1", "y": "2"
            }
        finally:
            os.unlink(path)

    def test_read_matches_in_memory_decode(self, tmp_path):
        data = b'{"nested": {"list": [1, 2, 3]}}'
        path = spool_body(io.BytesIO(data), directory=tmp_path)
        try:
            assert read_body(path, "application/json") == decode_body(
                data, "application/json"
            )
        finally:
            os.unlink(path)


class TestMethodOverride:
    def test_plain_method(self):
        assert method_override(make_request("/", method="get")) == "GET"

    def test_header_override(self):
        req = make_request("/", method="POST", headers={"X-HTTP-Method-Override": "patch"})
        assert method_override(req) == "PATCH"

    def test_query_override(self):
        req = make_request("/", method="POST", query_string={"_method": "DELETE"})
        assert method_override(req) == "DELETE"

    def test_unknown_override_ignored(self):
        req = make_request("/", method="POST", headers={"X-HTTP-Method-Override": "BREW"})
        assert method_override(req) == "POST"

    def test_only_post_can_override(self):
        req = make_request("/", method="PUT", headers={"X-HTTP-Method-Override": "DELETE"})
        assert method_override(req) == "PUT"
