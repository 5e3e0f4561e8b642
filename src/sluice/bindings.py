"""Named transforms applied to captured route parameters.

A transform is called as ``transform(raw_value, lookup)``. ``lookup``
returns the bound value of another parameter of the same dispatch, which
lets transforms compose::

    bindings.register("author", lambda value, lookup: value.upper())
    bindings.register(
        "title",
        lambda value, lookup: f"{value.upper()} by {lookup('author')}",
    )
"""
import threading

from sluice.exceptions import BindingCycleError, ConfigurationError

_missing = object()


class BindingRegistry:
    """Name to transform mapping, read-only once sealed."""

    def __init__(self):
        self._transforms = {}
        self._sealed = False
        self._lock = threading.Lock()

    def __contains__(self, name):
        return name in self._transforms

    def __len__(self):
        return len(self._transforms)

    @property
    def sealed(self):
        return self._sealed

    def register(self, name, transform):
        """Register *transform* for parameter *name*.

        Registering the same name twice replaces the earlier transform.
        """
        if not isinstance(name, str) or not name:
            raise ConfigurationError("Binding name must be a non-empty string.")
        if not callable(transform):
            raise ConfigurationError(f"Binding for {name!r} is not callable.")
        with self._lock:
            if self._sealed:
                raise ConfigurationError(
                    f"Cannot bind {name!r}: the binding registry is sealed."
                )
            self._transforms[name] = transform

    def seal(self):
        with self._lock:
            self._sealed = True

    def get(self, name):
        return self._transforms.get(name)

    def apply(self, name, raw_value, lookup):
        """Transform *raw_value* with the transform bound to *name*.

        Returns *raw_value* unchanged when *name* has no transform.
        """
        transform = self._transforms.get(name)
        if transform is None:
            return raw_value
        return transform(raw_value, lookup)

    def scope(self, raw_params):
        """Create the per-dispatch resolver for *raw_params*."""
        return BindingScope(self, raw_params)


class BindingScope:
    """Resolves the parameters of one dispatch.

    Each name is transformed at most once; later lookups reuse the
    cached value. Names currently being resolved are tracked so that a
    transform looking itself up, directly or through others, raises
    :class:`BindingCycleError` instead of recursing forever.
    """

    def __init__(self, registry, raw_params):
        self.registry = registry
        self.raw_params = dict(raw_params)
        self._values = {}
        self._resolving = set()

    def lookup(self, name):
        """Return the bound value of *name*, or ``None`` if not captured."""
        value = self._values.get(name, _missing)
        if value is not _missing:
            return value
        if name not in self.raw_params:
            return None
        if name in self._resolving:
            raise BindingCycleError(name)
        self._resolving.add(name)
        try:
            value = self.registry.apply(name, self.raw_params[name], self.lookup)
        finally:
            self._resolving.discard(name)
        self._values[name] = value
        return value

    def resolve_all(self):
        """Bind every captured name, keeping declaration order."""
        return {name: self.lookup(name) for name in self.raw_params}
