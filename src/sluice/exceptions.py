"""Exception hierarchy shared by the router, dispatcher and request context."""


class SluiceError(Exception):
    """Base for all sluice-specific errors."""


class ConfigurationError(SluiceError):
    """Raised when routes, bindings, filters or settings are invalid.

    Configuration errors are never turned into error responses. They
    propagate out of dispatch so a broken app fails loudly at startup.
    """


class BindingCycleError(ConfigurationError):
    """Raised when binding transforms look each other up in a loop."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"binding cycle detected for name {name}")


class RouteNotFound(SluiceError, LookupError):
    """No registered route matches the method and path."""

    code = 404

    def __init__(self, method, path):
        self.method = method
        self.path = path
        super().__init__(f"No route matches {method} {path!r}")


class HandlerFailure(SluiceError):
    """An uncaught exception escaped a handler or filter.

    The original exception is kept on ``original_exception`` and the
    response is converted into a 500.
    """

    code = 500

    def __init__(self, original_exception):
        self.original_exception = original_exception
        super().__init__(
            f"{type(original_exception).__name__}: {original_exception}"
        )


class Halt(Exception):
    """Short-circuit signal raised by ``error()`` and ``redirect()``.

    Filters and handlers should let it propagate; the dispatcher catches
    it and moves on to finalization.
    """

    def __init__(self, code):
        self.code = code
        super().__init__(code)
