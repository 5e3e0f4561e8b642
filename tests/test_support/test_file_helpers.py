"""Tests for JSON helpers, file transfers and the response intent."""
import pytest
from werkzeug.http import parse_options_header

from sluice.helpers import content_disposition, json_dumps, jsonp_body, send_file
from sluice.response import FileTransfer, ResponseIntent


class TestJsonHelpers:
    def test_compact(self):
        assert json_dumps({"a": [1, 2]}) == '{"a":[1,2]}'

    def test_sort_keys(self):
        assert json_dumps({"b": 1, "a": 1}, sort_keys=True) == '{"a":1,"b":1}'

    @pytest.mark.parametrize("callback", ["cb", "jQuery_123", "app.handlers.done"])
    def test_valid_callbacks(self, callback):
        assert jsonp_body(callback, "{}") == f"{callback}({{}});"

    @pytest.mark.parametrize("callback", ["", "1abc", "a b", "x();alert(1)"])
    def test_invalid_callbacks(self, callback):
        with pytest.raises(ValueError):
            jsonp_body(callback, "{}")


class TestSendFile:
    def test_relative_path_uses_root(self, tmp_path):
        (tmp_path / "a.txt").write_text("hi")
        transfer, headers = send_file("a.txt", root_path=str(tmp_path))
        assert transfer == FileTransfer(str(tmp_path / "a.txt"), "text/plain")
        assert dict(headers)["Content-Length"] == "2"

    def test_download_name_drives_mimetype(self, tmp_path):
        (tmp_path / "blob").write_bytes(b"{}")
        transfer, headers = send_file(str(tmp_path / "blob"), "data.json")
        assert transfer.mimetype == "application/json"
        assert dict(headers)["Content-Disposition"] == "attachment; filename=data.json"

    def test_disposition_quotes_special_characters(self):
        value = content_disposition('my "report"; v2.txt')
        assert parse_options_header(value) == (
            "attachment", {"filename": 'my "report"; v2.txt'}
        )

    def test_disposition_non_ascii_name(self):
        value = content_disposition("résumé.pdf")
        assert value.startswith("attachment; filename=resume.pdf")
        assert "filename*=UTF-8''r%C3%A9sum%C3%A9.pdf" in value
        value.encode("ascii")

    def test_no_cache(self, tmp_path):
        (tmp_path / "a.txt").write_text("hi")
        _, headers = send_file(str(tmp_path / "a.txt"), cache_seconds=0)
        assert dict(headers)["Cache-Control"] == "no-cache"

    def test_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            send_file(str(tmp_path / "missing"))

    def test_directory_is_not_a_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            send_file(str(tmp_path))


class TestResponseIntent:
    def test_defaults(self):
        intent = ResponseIntent().finalize()
        assert intent.status == 200
        assert intent.body == b""
        assert dict(intent.header_items()) == {"Content-Type": "text/html; charset=utf-8"}

    def test_write_accumulates(self):
        intent = ResponseIntent()
        intent.write("a")
        intent.write(b"b")
        intent.write(None)
        assert intent.body == b"ab"

    def test_set_body_replaces(self):
        intent = ResponseIntent()
        intent.write("a")
        intent.set_body("b")
        assert intent.body == b"b"

    def test_location_and_cookies_in_headers(self):
        intent = ResponseIntent()
        intent.location = "/x"
        intent.set_cookie("a", 1)
        intent.set_cookie("b", "2", httponly=True)
        items = intent.header_items()
        assert ("Location", "/x") in items
        cookies = [v for k, v in items if k == "Set-Cookie"]
        assert len(cookies) == 2
        assert cookies[0].startswith("a=1")
        assert "HttpOnly" in cookies[1]
        assert intent.is_redirect

    def test_unknown_cookie_option(self):
        with pytest.raises(TypeError):
            ResponseIntent().set_cookie("a", "1", colour="red")

    def test_file_suppresses_default_content_type(self):
        intent = ResponseIntent()
        intent.file = FileTransfer("/tmp/x")
        assert "Content-Type" not in dict(intent.header_items())
