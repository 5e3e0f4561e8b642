"""The per-dispatch request context.

One :class:`RequestContext` is created for every request and passed
explicitly to filters, handlers and error handlers. Nothing about the
current request is stored in globals. The context moves through::

    CREATED -> MATCHING -> BEFORE -> HANDLING -> AFTER -> FINALIZED

and ends in ``ERROR_FINALIZED`` instead when ``error()`` was called at
any point after matching.
"""
import enum
import io
import os

from werkzeug.http import HTTP_STATUS_CODES

from sluice.exceptions import Halt
from sluice.helpers import json_dumps, jsonp_body, send_file
from sluice.request import decode_body, method_override, read_body, spool_body
from sluice.response import ResponseIntent
from sluice.sessions import (
    FLASH_KEY,
    FlashStore,
    decode_session_id,
    encode_session_id,
    new_session_id,
)

_missing = object()

#: Status codes ``redirect()`` accepts.
REDIRECT_CODES = frozenset({300, 301, 302, 303, 307, 308})


class State(enum.Enum):
    CREATED = "created"
    MATCHING = "matching"
    BEFORE = "filtering:before"
    HANDLING = "handling"
    AFTER = "filtering:after"
    FINALIZED = "finalized"
    ERROR_FINALIZED = "error-finalized"


def strip_base_path(path, base_path):
    """Remove *base_path* from *path*; ``None`` if *path* lies outside it."""
    base = (base_path or "").rstrip("/")
    if not base:
        return path or "/"
    if path == base:
        return "/"
    if path.startswith(base + "/"):
        return path[len(base):]
    return None


class RequestContext:
    """Mutable facade over one request and its response intent.

    Attributes set by the dispatcher: ``route`` (the matched route or
    ``None``), ``failure`` (a :class:`~sluice.exceptions.HandlerFailure`
    when a handler or filter raised).
    """

    def __init__(self, app, request):
        self.app = app
        self.config = app.config
        self.request = request
        self.method = method_override(request)
        self.raw_path = request.path
        self.path = strip_base_path(request.path, self.config.get("BASE_PATH"))
        self.state = State.CREATED
        self.route = None
        self.failure = None
        self.error_code = None
        self.response = ResponseIntent()
        self._params = {}
        self._raw_body = None
        self._parsed_form = None
        self._spool_path = None
        self._flash = None
        self._had_flash = False
        self._in_error_handler = False
        self._issued_session = False
        self._session_id = decode_session_id(
            request.cookies.get(self.config["FLASH_COOKIE_NAME"]),
            self.config.get("SECRET_KEY"),
        )

    def __repr__(self):
        return f"<RequestContext {self.method} {self.raw_path!r} [{self.state.value}]>"

    def transition(self, state):
        self.state = state

    @property
    def errored(self):
        return self.error_code is not None

    # -- parameters --

    def bind_params(self, values):
        self._params = dict(values)

    @property
    def bound_values(self):
        """Bound parameter values in declaration order."""
        if self.route is None:
            return ()
        return tuple(self._params.get(name) for name in self.route.names)

    def params(self, name=None):
        """Return the bound route parameter *name*, or ``None``.

        Without a name, return a copy of all bound parameters. Query and
        body values are never included.
        """
        if name is None:
            return dict(self._params)
        return self._params.get(name)

    # -- request data --

    def request_headers(self, name):
        return self.request.headers.get(name)

    def query(self, name, default=None):
        return self.request.args.get(name, default)

    def form(self, name, default=None):
        return self._form_data()[0].get(name, default)

    def files(self, name):
        """Return the uploaded file for field *name*, or ``None``."""
        return self._form_data()[1].get(name)

    def _load_raw_body(self):
        if self._raw_body is None:
            self._raw_body = self.request.get_data(cache=True, parse_form_data=False)
        return self._raw_body

    def _form_data(self):
        # Raw bytes stay cached for request_body().
        if self._parsed_form is None:
            if self._spool_path is not None and self._raw_body is None:
                with open(self._spool_path, "rb") as f:
                    data = f.read()
                _, form, files = self.request.make_form_data_parser().parse(
                    io.BytesIO(data),
                    self.request.mimetype,
                    len(data),
                    self.request.mimetype_params,
                )
            else:
                self._load_raw_body()
                form, files = self.request.form, self.request.files
            self._parsed_form = (form, files)
        return self._parsed_form

    def request_body(self, load=True):
        """Return the request body.

        With *load*, the body is parsed by content type: form-encoded
        into a dict, JSON into the decoded document, anything else is
        returned as bytes. Without *load*, the body is spooled to a
        temporary file chunk by chunk and its path is returned; decode it
        with :func:`sluice.request.read_body`.
        """
        content_type = self.request.content_type
        if not load:
            if self._spool_path is None:
                if self._raw_body is not None:
                    stream = io.BytesIO(self._raw_body)
                else:
                    stream = self.request.stream
                self._spool_path = spool_body(
                    stream, self.config["BODY_SPOOL_CHUNK_SIZE"]
                )
            return self._spool_path

        try:
            if self._spool_path is not None:
                return read_body(self._spool_path, content_type)
            return decode_body(self._load_raw_body(), content_type)
        except ValueError:
            self.error(400, "The request body could not be decoded.")

    # -- response shaping --

    def status(self, code):
        self.response.status = int(code)

    def header(self, name, value):
        self.response.headers[name] = value

    def write(self, data):
        """Append *data* to the response body."""
        self.response.write(data)

    def url(self, path):
        """Prefix an absolute *path* with ``BASE_PATH``."""
        base = (self.config.get("BASE_PATH") or "").rstrip("/")
        if base and path.startswith("/") and not path.startswith("//"):
            return base + path
        return path

    def json(self, data, callback=None):
        """Send *data* as JSON, or as JSONP when *callback* is given."""
        payload = json_dumps(data, sort_keys=self.config["JSON_SORT_KEYS"])
        if callback:
            self.response.content_type = "application/javascript; charset=utf-8"
            self.response.set_body(jsonp_body(callback, payload))
        else:
            self.response.content_type = "application/json"
            self.response.set_body(payload)
        if self.response.status is None:
            self.response.status = 200

    def redirect(self, path, code=302):
        """Redirect to *path* and stop the current phase."""
        if code not in REDIRECT_CODES:
            raise ValueError(
                f"Invalid redirect code {code!r}; expected one of"
                f" {', '.join(map(str, sorted(REDIRECT_CODES)))}."
            )
        self.response.clear_body()
        self.response.status = code
        self.response.location = self.url(path)
        raise Halt(code)

    def error(self, code, message=None):
        """Produce an error response for *code* and stop the current phase.

        The handler registered for *code* is called as
        ``handler(context, message)``; without one the body is the
        message or the standard reason phrase. Calling ``error()`` from
        inside an error handler only changes the status.
        """
        code = int(code)
        self.error_code = code
        self.response.status = code
        if self._in_error_handler:
            raise Halt(code)

        self.response.clear_body()
        self.response.location = None
        self.response.headers.remove("Content-Type")
        handler = self.app.error_handlers.get(code)
        if handler is None:
            self._default_error_body(code, message)
            raise Halt(code)

        self._in_error_handler = True
        try:
            rv = handler(self, message)
            if rv is not None:
                self.write(rv)
        except Halt:
            raise
        except Exception:
            self.app.logger.exception("Error handler for %s failed", code)
            self.response.clear_body()
            self.response.headers.remove("Content-Type")
            self._default_error_body(code, message)
        finally:
            self._in_error_handler = False
        raise Halt(code)

    def _default_error_body(self, code, message):
        self.response.content_type = "text/plain; charset=utf-8"
        self.response.set_body(message or HTTP_STATUS_CODES.get(code, f"Error {code}"))

    # -- cookies, session and flash --

    def cookie(self, name, value=_missing, **options):
        """Read an incoming cookie, or queue an outgoing one.

        Options: ``expires``, ``max_age``, ``path``, ``domain``,
        ``secure``, ``httponly`` and ``samesite``.
        """
        if value is _missing:
            return self.request.cookies.get(name)
        self.response.set_cookie(name, value, **options)

    @property
    def session_id(self):
        return self._session_id

    def _ensure_session_id(self):
        if self._session_id is None:
            self._session_id = new_session_id()
            self._issued_session = True
        return self._session_id

    def session(self, key, value=_missing):
        """Read, set or (with ``None``) delete a session value."""
        store = self.app.session_store
        if value is _missing:
            if self._session_id is None:
                return None
            return store.get(self._session_id, key)
        if value is None:
            if self._session_id is not None:
                store.set(self._session_id, key, None)
            return
        store.set(self._ensure_session_id(), key, value)

    @property
    def flashes(self):
        if self._flash is None:
            old = None
            if self._session_id is not None:
                old = self.app.session_store.get(self._session_id, FLASH_KEY)
            self._had_flash = bool(old)
            self._flash = FlashStore(old)
        return self._flash

    def flash(self, key, value=_missing, now=False):
        """Read a one-shot message, or flash one for the next request.

        With *now*, the value is readable in this request only.
        """
        if value is _missing:
            return self.flashes.get(key)
        self.flashes.set(key, value, now=now)

    # -- collaborators --

    def partial(self, name, locals=None):
        return self.app.renderer.partial(name, locals)

    def render(self, name, locals=None, layout=_missing):
        """Render view *name* into the response body.

        The configured ``DEFAULT_LAYOUT`` wraps the output unless
        *layout* overrides it; pass ``None`` to render without one.
        """
        if layout is _missing:
            layout = self.config.get("DEFAULT_LAYOUT")
        self.write(self.app.renderer.render(name, locals, layout=layout))

    def send(self, path, download_name=None, cache_seconds=None):
        """Send the file at *path*; a missing file becomes a 404."""
        if cache_seconds is None:
            cache_seconds = self.config.get("SEND_FILE_MAX_AGE_DEFAULT")
        try:
            transfer, headers = send_file(
                path, download_name, cache_seconds, root_path=self.app.root_path
            )
        except FileNotFoundError:
            self.error(404)
        self.response.clear_body()
        self.response.file = transfer
        for name, value in headers:
            self.response.headers[name] = value

    # -- lifecycle --

    def _persist_flash(self):
        if self._session_id is None and (self._flash is None or not self._flash.modified):
            return
        flashes = self.flashes
        if flashes.modified:
            self.app.session_store.set(self._ensure_session_id(), FLASH_KEY, flashes.new)
        elif self._had_flash:
            self.app.session_store.set(self._session_id, FLASH_KEY, None)

    def _queue_session_cookie(self):
        options = self.config.get_namespace("SESSION_COOKIE_")
        self.response.set_cookie(
            self.config["FLASH_COOKIE_NAME"],
            encode_session_id(self._session_id, self.config.get("SECRET_KEY")),
            path=options.get("path") or "/",
            domain=options.get("domain"),
            secure=bool(options.get("secure")),
            httponly=bool(options.get("httponly")),
            samesite=options.get("samesite"),
        )

    def finalize(self):
        """Persist the flash generation and complete the response intent."""
        self._persist_flash()
        if self._issued_session:
            self._queue_session_cookie()
        self.response.finalize()
        self.state = State.ERROR_FINALIZED if self.errored else State.FINALIZED
        return self.response

    def close(self):
        """Release resources held for this request."""
        if self._spool_path is not None:
            try:
                os.unlink(self._spool_path)
            except FileNotFoundError:
                pass
            self._spool_path = None
