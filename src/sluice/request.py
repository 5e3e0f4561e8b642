"""Request body decoding, spooling and method override.

The incoming request is a :class:`werkzeug.wrappers.Request`; these
helpers add the two body access modes the request context offers:
parse it into memory, or copy it to a temporary file in fixed-size
chunks and hand back the path.
"""
import json
import os
import shutil
import tempfile
from urllib.parse import parse_qsl

from werkzeug.datastructures import MultiDict
from werkzeug.http import parse_options_header

FORM_MIMETYPE = "application/x-www-form-urlencoded"
JSON_MIMETYPE = "application/json"

#: Methods a request may switch to through an override.
OVERRIDABLE_METHODS = frozenset({"PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})


def mimetype_of(content_type):
    mimetype, _ = parse_options_header(content_type or "")
    return mimetype.lower()


def is_json_mimetype(mimetype):
    return mimetype == JSON_MIMETYPE or (
        mimetype.startswith("application/") and mimetype.endswith("+json")
    )


def decode_body(data, content_type, charset="utf-8"):
    """Decode raw body bytes according to *content_type*.

    Form-encoded bodies become a dict (first value per key), JSON bodies
    are parsed, anything else is returned as bytes. Raises ``ValueError``
    for malformed JSON.
    """
    mimetype = mimetype_of(content_type)
    if mimetype == FORM_MIMETYPE:
        text = data.decode(charset, "replace")
        return MultiDict(parse_qsl(text, keep_blank_values=True)).to_dict()
    if is_json_mimetype(mimetype):
        if not data:
            return None
        return json.loads(data.decode(charset))
    return data


def read_body(path, content_type, charset="utf-8"):
    """Decode a body previously spooled to *path*.

    Yields the same structure :func:`decode_body` gives for the bytes.
    """
    with open(path, "rb") as f:
        return decode_body(f.read(), content_type, charset)


def spool_body(stream, chunk_size=65536, directory=None):
    """Copy *stream* into a temporary file and return its path.

    The body is never held in memory as a whole; at most one chunk of
    *chunk_size* bytes is buffered at a time.
    """
    fd, path = tempfile.mkstemp(prefix="sluice-body-", dir=directory)
    try:
        with os.fdopen(fd, "wb") as f:
            shutil.copyfileobj(stream, f, chunk_size)
    except BaseException:
        os.unlink(path)
        raise
    return path


def method_override(request):
    """Return the effective method of *request*.

    A POST may tunnel another method through the
    ``X-HTTP-Method-Override`` header or a ``_method`` query argument.
    """
    method = request.method.upper()
    if method != "POST":
        return method
    override = (
        request.headers.get("X-HTTP-Method-Override")
        or request.args.get("_method")
        or ""
    ).upper()
    if override in OVERRIDABLE_METHODS:
        return override
    return method
