"""Route templates, compiled patterns and the route table.

Templates are ``/``-delimited. A segment starting with ``:`` captures
one non-empty path segment under that name, every other segment must
match literally::

    "/authors/:author/books/:title"

Leading and trailing slashes are ignored on both templates and paths,
so ``"/"`` compiles to the empty pattern and matches only the root.
"""
import threading
from dataclasses import dataclass
from typing import Any, Callable

from sluice.exceptions import ConfigurationError, RouteNotFound

#: Method marker for routes that accept any HTTP method.
ANY_METHOD = "*"


def split_path(path):
    """Split a request path into its non-empty segments."""
    stripped = path.strip("/")
    if not stripped:
        return []
    return stripped.split("/")


@dataclass(frozen=True)
class Segment:
    """One segment of a compiled template."""

    value: str
    is_capture: bool = False


@dataclass(frozen=True)
class Pattern:
    """A compiled route template.

    ``names`` lists the capture names in declaration order; ``match``
    returns the captured raw values aligned with it.
    """

    template: str
    segments: tuple
    names: tuple

    def match(self, path):
        """Return the captured raw strings for *path*, or ``None``."""
        parts = split_path(path)
        if len(parts) != len(self.segments):
            return None
        captured = []
        for segment, part in zip(self.segments, parts):
            if segment.is_capture:
                if not part:
                    return None
                captured.append(part)
            elif segment.value != part:
                return None
        return tuple(captured)


def compile_pattern(template):
    """Compile *template* into a :class:`Pattern`.

    Raises :class:`ConfigurationError` for an empty template, an unnamed
    capture or a capture name used twice.
    """
    if not isinstance(template, str) or not template.strip():
        raise ConfigurationError("Route template must be a non-empty string.")

    segments = []
    names = []
    for part in template.strip("/").split("/"):
        if not part:
            if segments or template.strip("/"):
                raise ConfigurationError(
                    f"Route template {template!r} contains an empty segment."
                )
            continue
        if part.startswith(":"):
            name = part[1:]
            if not name:
                raise ConfigurationError(
                    f"Route template {template!r} has a capture without a name."
                )
            if name in names:
                raise ConfigurationError(
                    f"Route template {template!r} declares capture {name!r} twice."
                )
            names.append(name)
            segments.append(Segment(name, is_capture=True))
        else:
            segments.append(Segment(part))
    return Pattern(template, tuple(segments), tuple(names))


@dataclass(frozen=True)
class Route:
    """A registered (method, template, handler) triple."""

    method: str
    template: str
    pattern: Pattern
    handler: Callable[..., Any]

    @property
    def names(self):
        return self.pattern.names

    @property
    def is_wildcard(self):
        return self.method == ANY_METHOD

    @property
    def endpoint(self):
        return getattr(self.handler, "__name__", repr(self.handler))


class RouteTable:
    """Ordered collection of compiled routes.

    Routes are registered during setup. The table is sealed by the first
    dispatch, after which it is read-only and safe to share between
    threads.

    Usage::

        table = RouteTable()
        table.register("GET", "/users/:id", show_user)
        table.seal()
        route, params = table.resolve("GET", "/users/42")
    """

    def __init__(self):
        self._routes = []
        self._sealed = False
        self._lock = threading.Lock()

    @property
    def routes(self):
        return tuple(self._routes)

    @property
    def sealed(self):
        return self._sealed

    def __len__(self):
        return len(self._routes)

    def __iter__(self):
        return iter(self._routes)

    def register(self, method, template, handler):
        """Compile *template* and append a route for *method*."""
        if not callable(handler):
            raise ConfigurationError(
                f"Handler for {method} {template!r} is not callable."
            )
        if not isinstance(method, str) or not method:
            raise ConfigurationError("Route method must be a non-empty string.")
        route = Route(method.upper(), template, compile_pattern(template), handler)
        with self._lock:
            if self._sealed:
                raise ConfigurationError(
                    f"Cannot register {method} {template!r}: the route table"
                    " is sealed."
                )
            self._routes.append(route)
        return route

    def seal(self):
        """Freeze the table. Further registrations raise."""
        with self._lock:
            if not self._sealed:
                self._routes = tuple(self._routes)
                self._sealed = True

    def resolve(self, method, path):
        """Find the route for *method* and *path*.

        Returns ``(route, raw_params)`` where *raw_params* maps capture
        names to raw strings in declaration order. Exact-method routes
        are preferred over wildcard routes; within each group the first
        registered structural match wins.

        Raises :class:`RouteNotFound` when nothing matches.
        """
        method = method.upper()
        wildcard = None
        for route in self._routes:
            if route.method != method and not route.is_wildcard:
                continue
            values = route.pattern.match(path)
            if values is None:
                continue
            if not route.is_wildcard:
                return route, dict(zip(route.names, values))
            if wildcard is None:
                wildcard = (route, values)
        if wildcard is not None:
            route, values = wildcard
            return route, dict(zip(route.names, values))
        raise RouteNotFound(method, path)

