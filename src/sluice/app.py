"""The sluice application: registration API and request entry points."""
import os
import sys

from sluice.bindings import BindingRegistry
from sluice.cli import AppGroup
from sluice.config import Config
from sluice.dispatcher import Dispatcher
from sluice.exceptions import ConfigurationError
from sluice.filters import FilterChain, ParamFilterRegistry
from sluice.routing import ANY_METHOD, RouteTable
from sluice.sessions import MemorySessionStore
from sluice.templating import JinjaRenderer
from sluice.wsgi import wsgi_app

#: Default configuration values.
_default_config = {
    "DEBUG": False,
    "TESTING": False,
    "PROPAGATE_EXCEPTIONS": None,
    "SECRET_KEY": None,
    "FLASH_COOKIE_NAME": "_F",
    "SESSION_COOKIE_PATH": "/",
    "SESSION_COOKIE_DOMAIN": None,
    "SESSION_COOKIE_SECURE": False,
    "SESSION_COOKIE_HTTPONLY": True,
    "SESSION_COOKIE_SAMESITE": "Lax",
    "VIEWS_DIRECTORY": "views",
    "DEFAULT_LAYOUT": None,
    "TEMPLATES_AUTO_RELOAD": None,
    "BASE_PATH": "",
    "JSON_SORT_KEYS": False,
    "SEND_FILE_MAX_AGE_DEFAULT": None,
    "BODY_SPOOL_CHUNK_SIZE": 65536,
}


class Sluice:
    """A request dispatch application.

    Routes, bindings, filters and error handlers are registered on the
    application during setup::

        app = Sluice(__name__)

        @app.get("/hello/:name")
        def hello(ctx, name):
            return f"Hello, {name}!"

    The first dispatched request seals the registries.
    """

    #: The config class to use. Defaults to :class:`Config`.
    config_class = Config

    default_config = _default_config

    #: The CLI runner class for tests.
    test_cli_runner_class = None

    def __init__(self, import_name=None, root_path=None, session_store=None,
                 renderer=None):
        self.import_name = import_name
        self._explicit_root_path = root_path
        self.config = self.config_class(self.root_path, self.default_config)
        self.routes = RouteTable()
        self.bindings = BindingRegistry()
        self.filters = FilterChain()
        self.param_filters = ParamFilterRegistry()
        self.error_handlers = {}
        self.session_store = session_store or MemorySessionStore()
        self.dispatcher = Dispatcher(self)
        self._renderer = renderer
        self._logger = None
        self.cli = AppGroup(name=self.import_name)

    def __repr__(self):
        return f"<{type(self).__name__} {self.name!r}>"

    @property
    def debug(self):
        return self.config["DEBUG"]

    @debug.setter
    def debug(self, value):
        self.config["DEBUG"] = bool(value)

    @property
    def testing(self):
        return self.config["TESTING"]

    @testing.setter
    def testing(self, value):
        self.config["TESTING"] = bool(value)

    @property
    def secret_key(self):
        return self.config["SECRET_KEY"]

    @secret_key.setter
    def secret_key(self, value):
        self.config["SECRET_KEY"] = value

    @property
    def name(self):
        if self.import_name == "__main__":
            fn = getattr(sys.modules["__main__"], "__file__", None)
            if fn is not None:
                return os.path.splitext(os.path.basename(fn))[0]
        return self.import_name or "sluice"

    @property
    def logger(self):
        if self._logger is None:
            from sluice.logging import create_logger
            self._logger = create_logger(self)
        return self._logger

    @property
    def root_path(self):
        if self._explicit_root_path is not None:
            return self._explicit_root_path
        if self.import_name:
            mod = sys.modules.get(self.import_name)
            if mod and getattr(mod, "__file__", None):
                return os.path.dirname(os.path.abspath(mod.__file__))
        return os.getcwd()

    @root_path.setter
    def root_path(self, value):
        self._explicit_root_path = value

    @property
    def renderer(self):
        """The template collaborator, built from the config on first use."""
        if self._renderer is None:
            auto_reload = self.config.get("TEMPLATES_AUTO_RELOAD")
            if auto_reload is None:
                auto_reload = self.debug
            self._renderer = JinjaRenderer(
                self.config["VIEWS_DIRECTORY"],
                default_layout=self.config.get("DEFAULT_LAYOUT"),
                root_path=self.root_path,
                auto_reload=auto_reload,
            )
        return self._renderer

    @renderer.setter
    def renderer(self, value):
        self._renderer = value

    @property
    def sealed(self):
        return self.routes.sealed

    # -- registration --

    def on(self, method, template, handler=None):
        """Register *handler* for *method* (or a list of methods) and *template*.

        Without a handler, return a decorator::

            @app.on(["GET", "POST"], "/login")
            def login(ctx):
                ...
        """
        methods = [method] if isinstance(method, str) else list(method)
        if not methods:
            raise ConfigurationError(f"No method given for route {template!r}.")

        def decorator(f):
            for m in methods:
                self.routes.register(m, template, f)
            return f

        if handler is None:
            return decorator
        return decorator(handler)

    route = on

    def get(self, template, handler=None):
        return self.on("GET", template, handler)

    def post(self, template, handler=None):
        return self.on("POST", template, handler)

    def put(self, template, handler=None):
        return self.on("PUT", template, handler)

    def delete(self, template, handler=None):
        return self.on("DELETE", template, handler)

    def patch(self, template, handler=None):
        return self.on("PATCH", template, handler)

    def any(self, template, handler=None):
        """Register a route matching every method."""
        return self.on(ANY_METHOD, template, handler)

    def _filter(self, add, scope, fn):
        if fn is None:
            return lambda f: add(scope, f)
        return add(scope, fn)

    def before(self, scope=None, fn=None):
        """Register a before filter, globally or for a path scope.

        Usable as ``@app.before()``, ``@app.before(r"^admin/")`` or
        ``app.before(None, fn)``. A single callable argument is always a
        scope predicate taking the path, never the filter itself.
        """
        return self._filter(self.filters.before, scope, fn)

    def after(self, scope=None, fn=None):
        """Register an after filter. Same forms as :meth:`before`."""
        return self._filter(self.filters.after, scope, fn)

    def filter(self, name, fn=None):
        """Register a filter for route parameter *name*.

        It runs as ``fn(context, value)`` before the before filters on
        every request whose route captures *name*::

            @app.filter("id")
            def check_id(ctx, value):
                if not value.isdigit():
                    ctx.error(404)
        """
        def decorator(f):
            self.param_filters.register(name, f)
            return f

        if fn is None:
            return decorator
        return decorator(fn)

    def bind(self, name, transform=None):
        """Register a transform for route parameter *name*."""
        def decorator(f):
            self.bindings.register(name, f)
            return f

        if transform is None:
            return decorator
        return decorator(transform)

    def error(self, code, handler=None):
        """Register an error handler for status *code*.

        The handler is called as ``handler(context, message)``.
        """
        if not isinstance(code, int) or not 100 <= code <= 599:
            raise ConfigurationError(f"{code!r} is not a valid HTTP status code.")

        def decorator(f):
            if not callable(f):
                raise ConfigurationError(f"Error handler for {code} is not callable.")
            if self.sealed:
                raise ConfigurationError(
                    f"Cannot register an error handler for {code}: the"
                    " application is already dispatching."
                )
            self.error_handlers[code] = f
            return f

        if handler is None:
            return decorator
        return decorator(handler)

    def seal(self):
        """Freeze routes, bindings and both filter registries."""
        if self.routes.sealed:
            return
        self.routes.seal()
        self.bindings.seal()
        self.filters.seal()
        self.param_filters.seal()

    # -- dispatch --

    def dispatch(self, request):
        """Dispatch a :class:`werkzeug.wrappers.Request` and return the
        finalized :class:`~sluice.response.ResponseIntent`."""
        return self.dispatcher.dispatch(request)

    def wsgi_app(self, environ, start_response):
        """The actual WSGI application."""
        return wsgi_app(self, environ, start_response)

    def __call__(self, environ, start_response):
        """WSGI interface."""
        return self.wsgi_app(environ, start_response)

    def test_client(self, use_cookies=True, **kwargs):
        """Return a test client for this app."""
        from sluice.testing import SluiceClient
        return SluiceClient(self, use_cookies=use_cookies, **kwargs)

    def test_cli_runner(self, **kwargs):
        """Return a CLI runner for testing CLI commands."""
        runner_cls = self.test_cli_runner_class
        if runner_cls is None:
            from sluice.testing import SluiceCliRunner
            runner_cls = SluiceCliRunner
        return runner_cls(self, **kwargs)

    def run(self, host=None, port=None, debug=None, **kwargs):
        """Run the werkzeug development server."""
        if debug is not None:
            self.debug = debug
        if os.environ.get("SLUICE_RUN_FROM_CLI") == "true":
            return
        from werkzeug.serving import run_simple
        kwargs.setdefault("use_reloader", self.debug)
        kwargs.setdefault("use_debugger", False)
        run_simple(host or "127.0.0.1", port or 8000, self, **kwargs)
