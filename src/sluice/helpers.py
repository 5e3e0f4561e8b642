"""Response helpers: JSON bodies and file transfers."""
import json
import mimetypes
import os
import re
import time
import unicodedata
from urllib.parse import quote

from werkzeug.http import dump_options_header, http_date

from sluice.response import FileTransfer

_callback_re = re.compile(r"^[A-Za-z_$][\w$]*(\.[A-Za-z_$][\w$]*)*$")


def json_dumps(data, sort_keys=False):
    return json.dumps(data, sort_keys=sort_keys, separators=(",", ":"))


def jsonp_body(callback, payload):
    """Wrap a JSON *payload* in a call to *callback*."""
    if not _callback_re.match(callback):
        raise ValueError(f"Invalid JSONP callback name {callback!r}.")
    return f"{callback}({payload});"


def content_disposition(download_name):
    """Build an ``attachment`` disposition for *download_name*.

    Non-ASCII names get an ASCII fallback plus an RFC 5987
    ``filename*`` parameter, the way werkzeug's ``send_file`` does it.
    """
    try:
        download_name.encode("ascii")
    except UnicodeEncodeError:
        simple = unicodedata.normalize("NFKD", download_name)
        simple = simple.encode("ascii", "ignore").decode("ascii")
        quoted = quote(download_name, safe="!#$&+^`|~")
        options = {"filename": simple, "filename*": f"UTF-8''{quoted}"}
    else:
        options = {"filename": download_name}
    return dump_options_header("attachment", options)


def send_file(path, download_name=None, cache_seconds=None, root_path=None):
    """Prepare a file transfer.

    Returns ``(transfer, headers)``: the :class:`FileTransfer` for the
    transport and the headers describing it. Relative paths are resolved
    against *root_path*. Raises ``FileNotFoundError`` when *path* is not
    a regular file.
    """
    path = os.fspath(path)
    if not os.path.isabs(path) and root_path:
        path = os.path.join(root_path, path)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"No such file: {path!r}")

    mimetype = mimetypes.guess_type(download_name or path)[0]
    if mimetype is None:
        mimetype = "application/octet-stream"
    stat = os.stat(path)

    headers = [
        ("Content-Type", mimetype),
        ("Content-Length", str(stat.st_size)),
        ("Last-Modified", http_date(stat.st_mtime)),
    ]
    if download_name:
        headers.append(("Content-Disposition", content_disposition(download_name)))
    if cache_seconds is not None:
        cache_seconds = int(cache_seconds)
        if cache_seconds > 0:
            headers.append(("Cache-Control", f"public, max-age={cache_seconds}"))
        else:
            headers.append(("Cache-Control", "no-cache"))
        headers.append(("Expires", http_date(time.time() + cache_seconds)))
    return FileTransfer(path, mimetype), headers
