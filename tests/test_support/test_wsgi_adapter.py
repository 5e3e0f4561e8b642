"""Tests for the WSGI transport adapter and logging setup."""
import logging

from sluice import Sluice
from sluice.logging import create_logger, default_handler, has_level_handler
from sluice.response import FileTransfer, ResponseIntent
from sluice.wsgi import to_wsgi_response

from conftest import make_environ


def call_wsgi(app, environ):
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = headers

    body = b"".join(app(environ, start_response))
    return captured["status"], captured["headers"], body


class TestWsgi:
    def test_raw_wsgi_call(self):
        app = Sluice("raw")
        app.get("/hello/:name", lambda ctx, name: f"hi {name}")
        status, headers, body = call_wsgi(app, make_environ(path="/hello/ada"))
        assert status == "200 OK"
        assert body == b"hi ada"
        assert ("Content-Type", "text/html; charset=utf-8") in headers

    def test_head_has_no_body(self):
        app = Sluice("raw")
        app.on("HEAD", "/", lambda ctx: "ignored")
        status, _, body = call_wsgi(app, make_environ(method="HEAD"))
        assert status == "200 OK"
        assert body == b""

    def test_post_body_through_environ(self):
        app = Sluice("raw")
        app.post("/", lambda ctx: str(ctx.request_body()["k"]))
        environ = make_environ(method="POST", body=b'{"k": 5}',
                               content_type="application/json")
        assert call_wsgi(app, environ)[2] == b"5"

    def test_intent_conversion(self):
        intent = ResponseIntent()
        intent.status = 201
        intent.write("made")
        intent.headers["X-A"] = "1"
        intent.set_cookie("c", "v")
        response = to_wsgi_response(intent, make_environ())
        assert response.status_code == 201
        assert response.get_data() == b"made"
        assert response.headers["X-A"] == "1"
        assert response.headers["Set-Cookie"].startswith("c=v")

    def test_file_conversion(self, tmp_path):
        path = tmp_path / "f.txt"
        path.write_bytes(b"file body")
        intent = ResponseIntent()
        intent.file = FileTransfer(str(path), "text/plain")
        intent.headers["Content-Type"] = "text/plain"
        response = to_wsgi_response(intent.finalize(), make_environ())
        assert response.direct_passthrough
        assert b"".join(response.response) == b"file body"
        response.close()


class TestLogging:
    def test_logger_named_after_app(self):
        app = Sluice("sluice_logging_test")
        assert app.logger.name == "sluice_logging_test"
        assert app.logger is app.logger

    def test_debug_sets_level(self):
        app = Sluice("sluice_logging_debug")
        app.debug = True
        assert create_logger(app).level == logging.DEBUG

    def test_default_handler_added_once(self):
        logger = logging.getLogger("sluice_logging_handler")
        logger.propagate = False
        try:
            app = Sluice("sluice_logging_handler")
            create_logger(app)
            create_logger(app)
            assert logger.handlers.count(default_handler) == 1
            assert has_level_handler(logger)
        finally:
            logger.removeHandler(default_handler)
            logger.propagate = True
