"""Session storage, session ids and the two-generation flash store.

Session data lives in a pluggable store keyed by session id. The id
travels in a cookie (``FLASH_COOKIE_NAME``); when ``SECRET_KEY`` is set
the cookie value is ``<id>.<hmac-sha256>`` and unsigned or tampered ids
are ignored.
"""
import hashlib
import hmac
import json
import os
import secrets
import threading

#: Session key holding the flash generation written by the previous request.
FLASH_KEY = "_flash"


class SessionStore:
    """Interface of a session backend.

    Implementations must make a single ``get`` or ``set`` atomic for a
    given session id and key.
    """

    def get(self, session_id, key):
        raise NotImplementedError

    def set(self, session_id, key, value):
        """Store *value*; a ``None`` value deletes *key*."""
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """Process-local store, mostly useful for tests and development."""

    def __init__(self):
        self._data = {}
        self._lock = threading.Lock()

    def get(self, session_id, key):
        with self._lock:
            return self._data.get(session_id, {}).get(key)

    def set(self, session_id, key, value):
        with self._lock:
            if value is None:
                values = self._data.get(session_id)
                if values is not None:
                    values.pop(key, None)
                    if not values:
                        del self._data[session_id]
                return
            self._data.setdefault(session_id, {})[key] = value

    def __len__(self):
        return len(self._data)


class FileSessionStore(SessionStore):
    """One JSON document per session id inside *directory*."""

    def __init__(self, directory):
        self.directory = os.fspath(directory)
        os.makedirs(self.directory, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, session_id):
        if not is_valid_session_id(session_id):
            raise ValueError(f"Invalid session id {session_id!r}.")
        return os.path.join(self.directory, f"{session_id}.json")

    def _read(self, path):
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return {}

    def get(self, session_id, key):
        with self._lock:
            return self._read(self._path(session_id)).get(key)

    def set(self, session_id, key, value):
        path = self._path(session_id)
        with self._lock:
            values = self._read(path)
            if value is None:
                values.pop(key, None)
            else:
                values[key] = value
            if not values:
                if os.path.exists(path):
                    os.remove(path)
                return
            tmp = f"{path}.tmp"
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(values, f, separators=(",", ":"))
            os.replace(tmp, path)


def new_session_id():
    return secrets.token_hex(16)


def is_valid_session_id(session_id):
    return (
        isinstance(session_id, str)
        and 0 < len(session_id) <= 128
        and all(c in "0123456789abcdefABCDEF" for c in session_id)
    )


def _sign(payload, secret):
    """Create an HMAC-SHA256 signature for *payload*."""
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    return hmac.new(secret, payload.encode("utf-8"), hashlib.sha256).hexdigest()


def encode_session_id(session_id, secret):
    """Return the cookie value carrying *session_id*."""
    if not secret:
        return session_id
    return f"{session_id}.{_sign(session_id, secret)}"


def decode_session_id(cookie_value, secret):
    """Return the session id from a cookie value, or ``None`` if invalid."""
    if not cookie_value:
        return None
    if secret:
        if "." not in cookie_value:
            return None
        session_id, sig = cookie_value.rsplit(".", 1)
        if not hmac.compare_digest(sig, _sign(session_id, secret)):
            return None
    else:
        session_id = cookie_value
    if not is_valid_session_id(session_id):
        return None
    return session_id


class FlashStore:
    """Two generations of one-shot messages.

    ``old`` holds what the previous request flashed and is readable now;
    ``new`` collects what this request flashes for the next one. Reads
    pop from ``old``, so every value is seen at most once.
    """

    def __init__(self, old=None):
        self.old = dict(old or {})
        self.new = {}

    def get(self, key):
        return self.old.pop(key, None)

    def set(self, key, value, now=False):
        if now:
            self.old[key] = value
        else:
            self.new[key] = value

    @property
    def modified(self):
        return bool(self.new)
