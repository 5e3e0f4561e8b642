"""Before and after filters, global or scoped to matching paths.

A filter is called as ``fn(context, method, path)``. It short-circuits
the pipeline by calling ``context.error()`` or ``context.redirect()``,
both of which raise :class:`~sluice.exceptions.Halt`.

A scope is ``None`` (every path), a regular expression searched against
the path with its surrounding slashes removed, or a predicate taking the
path::

    chain.before(None, log_request)
    chain.before(r"^admin/", require_login)
    chain.after(lambda path: path.endswith(".json"), add_cors)

Parameter filters are keyed by route parameter name instead of by path
and run before the before filters; see :class:`ParamFilterRegistry`.
"""
import re
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

from sluice.exceptions import ConfigurationError

BEFORE = "before"
AFTER = "after"
PHASES = (BEFORE, AFTER)


@dataclass(frozen=True)
class Filter:
    phase: str
    body: Callable[..., Any]
    scope: Optional[Any] = None

    def applies_to(self, path):
        if self.scope is None:
            return True
        if isinstance(self.scope, re.Pattern):
            return self.scope.search(path.strip("/")) is not None
        return bool(self.scope(path))


def _compile_scope(scope):
    if scope is None:
        return None
    if isinstance(scope, str):
        try:
            return re.compile(scope)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid filter scope {scope!r}: {e}"
            ) from e
    if isinstance(scope, re.Pattern) or callable(scope):
        return scope
    raise ConfigurationError(
        f"Filter scope must be None, a regex or a predicate, not {scope!r}."
    )


class FilterChain:
    """Ordered before/after filter lists.

    Global and scoped filters share one list per phase and run in
    registration order.
    """

    def __init__(self):
        self._filters = {BEFORE: [], AFTER: []}
        self._sealed = False
        self._lock = threading.Lock()

    def filters(self, phase):
        return tuple(self._filters[phase])

    def _add(self, phase, scope, fn):
        if not callable(fn):
            raise ConfigurationError(f"{phase.capitalize()} filter is not callable.")
        entry = Filter(phase, fn, _compile_scope(scope))
        with self._lock:
            if self._sealed:
                raise ConfigurationError(
                    f"Cannot add a {phase} filter: the filter chain is sealed."
                )
            self._filters[phase].append(entry)
        return fn

    def before(self, scope, fn):
        return self._add(BEFORE, scope, fn)

    def after(self, scope, fn):
        return self._add(AFTER, scope, fn)

    def seal(self):
        with self._lock:
            if not self._sealed:
                self._filters = {k: tuple(v) for k, v in self._filters.items()}
                self._sealed = True

    def run(self, phase, method, path, context):
        """Run the *phase* filters that apply to *path*, in order.

        A :class:`~sluice.exceptions.Halt` raised by a filter stops the
        phase and propagates to the caller.
        """
        if phase not in PHASES:
            raise ValueError(f"Unknown filter phase {phase!r}.")
        for entry in self._filters[phase]:
            if entry.applies_to(path):
                entry.body(context, method, path)


class ParamFilterRegistry:
    """Callbacks keyed by route parameter name.

    A parameter filter is called as ``fn(context, value)`` with the bound
    value whenever the matched route captures its name. Like a before
    filter it may short-circuit through ``context.error()`` or
    ``context.redirect()``.
    """

    def __init__(self):
        self._filters = {}
        self._sealed = False
        self._lock = threading.Lock()

    def __contains__(self, name):
        return name in self._filters

    def register(self, name, fn):
        if not callable(fn):
            raise ConfigurationError(f"Filter for parameter {name!r} is not callable.")
        with self._lock:
            if self._sealed:
                raise ConfigurationError(
                    f"Cannot add a filter for parameter {name!r}: the"
                    " registry is sealed."
                )
            self._filters.setdefault(name, []).append(fn)
        return fn

    def seal(self):
        with self._lock:
            if not self._sealed:
                self._filters = {k: tuple(v) for k, v in self._filters.items()}
                self._sealed = True

    def run(self, names, context):
        """Run the filters for each of *names* in order."""
        for name in names:
            for fn in self._filters.get(name, ()):
                fn(context, context.params(name))
