"""The response intent handed to the transport layer.

Handlers and filters never write to the client directly. They shape a
:class:`ResponseIntent` through the request context; the dispatcher
finalizes it once and the transport adapter turns it into bytes on the
wire.
"""
from dataclasses import dataclass, field

from werkzeug.datastructures import Headers
from werkzeug.http import dump_cookie

DEFAULT_CONTENT_TYPE = "text/html; charset=utf-8"

#: Options accepted by :meth:`ResponseIntent.set_cookie`.
COOKIE_OPTIONS = frozenset(
    {"expires", "max_age", "path", "domain", "secure", "httponly", "samesite"}
)


@dataclass(frozen=True)
class OutgoingCookie:
    """A queued ``Set-Cookie`` directive."""

    name: str
    value: str
    options: dict = field(default_factory=dict)

    def to_header_value(self):
        options = dict(self.options)
        options.setdefault("path", "/")
        return dump_cookie(self.name, self.value, **options)


@dataclass(frozen=True)
class FileTransfer:
    """A file the transport streams instead of a body."""

    path: str
    mimetype: str = "application/octet-stream"


class ResponseIntent:
    """Status, headers, cookies and body or redirect target of a response."""

    def __init__(self):
        self.status = None
        self.headers = Headers()
        self.cookies = []
        self.location = None
        self.file = None
        self._chunks = []

    def __repr__(self):
        return f"<ResponseIntent status={self.status!r} location={self.location!r}>"

    @property
    def body(self):
        return b"".join(self._chunks)

    @property
    def content_type(self):
        return self.headers.get("Content-Type", DEFAULT_CONTENT_TYPE)

    @content_type.setter
    def content_type(self, value):
        self.headers["Content-Type"] = value

    @property
    def is_redirect(self):
        return self.location is not None

    def write(self, data):
        if data is None:
            return
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._chunks.append(bytes(data))

    def set_body(self, data):
        self._chunks = []
        self.write(data)

    def clear_body(self):
        self._chunks = []
        self.file = None

    def set_cookie(self, name, value, **options):
        unknown = set(options) - COOKIE_OPTIONS
        if unknown:
            raise TypeError(f"Unknown cookie option(s): {', '.join(sorted(unknown))}")
        self.cookies.append(OutgoingCookie(name, str(value), options))

    def header_items(self):
        """All headers including ``Content-Type`` and ``Set-Cookie``."""
        headers = Headers(self.headers)
        if self.file is None and "Content-Type" not in headers:
            headers["Content-Type"] = DEFAULT_CONTENT_TYPE
        if self.location is not None:
            headers["Location"] = self.location
        for cookie in self.cookies:
            headers.add("Set-Cookie", cookie.to_header_value())
        return list(headers.items())

    def finalize(self):
        if self.status is None:
            self.status = 200
        return self
