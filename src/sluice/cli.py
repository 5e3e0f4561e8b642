"""Command line interface: ``sluice --app module:name routes|run``."""
from __future__ import annotations

import os
import sys
import typing as t
from operator import itemgetter

import click
from werkzeug.utils import ImportStringError, import_string

if t.TYPE_CHECKING:
    from sluice.app import Sluice

#: Modules tried in the working directory when no ``--app`` is given.
DEFAULT_MODULES = ("app", "wsgi")


class NoAppException(click.UsageError):
    """Raised if an application cannot be found or loaded."""


def locate_app(import_path: str) -> Sluice:
    """Load the application named by *import_path*.

    The path is ``module:name`` or ``module``; without a name the
    module's ``app`` attribute is used. A callable that is not an
    application is called without arguments as a factory.
    """
    from sluice.app import Sluice

    module_name, _, app_name = import_path.partition(":")
    app_name = app_name or "app"
    try:
        obj = import_string(f"{module_name}:{app_name}")
    except ImportStringError as e:
        raise NoAppException(
            f"Could not import {import_path!r}: {e.exception}"
        ) from None

    if not isinstance(obj, Sluice) and callable(obj):
        obj = obj()
    if not isinstance(obj, Sluice):
        raise NoAppException(
            f"{module_name}:{app_name} is not a sluice application."
        )
    return obj


class ScriptInfo:
    """Locates and caches the application a command works on."""

    def __init__(
        self,
        app_import_path: str | None = None,
        create_app: t.Callable[[], Sluice] | None = None,
    ) -> None:
        self.app_import_path = app_import_path
        self.create_app = create_app
        self.debug: bool | None = None
        self._loaded_app: Sluice | None = None

    def load_app(self) -> Sluice:
        if self._loaded_app is not None:
            return self._loaded_app

        if self.create_app is not None:
            app = self.create_app()
        elif self.app_import_path:
            app = locate_app(self.app_import_path)
        else:
            app = self._find_default_app()

        if self.debug is not None:
            app.debug = self.debug
        self._loaded_app = app
        return app

    def _find_default_app(self) -> Sluice:
        if os.getcwd() not in sys.path:
            sys.path.insert(0, os.getcwd())
        for name in DEFAULT_MODULES:
            if os.path.exists(f"{name}.py"):
                return locate_app(name)
        raise NoAppException(
            "Could not locate a sluice application. Use the 'sluice --app'"
            " option, the 'SLUICE_APP' environment variable, or an 'app.py'"
            " or 'wsgi.py' file in the current directory."
        )


pass_script_info = click.make_pass_decorator(ScriptInfo, ensure=True)


class AppGroup(click.Group):
    """Group for an application's own commands, listed alphabetically."""

    def __contains__(self, name: str) -> bool:
        return name in self.commands

    def list_commands(self, ctx: click.Context | None = None) -> list[str]:  # type: ignore[override]
        return sorted(self.commands)


def _set_app(ctx: click.Context, param: click.Option, value: str | None) -> None:
    if value is not None:
        ctx.ensure_object(ScriptInfo).app_import_path = value


def _set_debug(ctx: click.Context, param: click.Option, value: bool | None) -> None:
    if value is not None:
        ctx.ensure_object(ScriptInfo).debug = value


class SluiceGroup(AppGroup):
    """The ``sluice`` command group.

    Adds the ``--app`` and ``--debug`` options and the ``run`` and
    ``routes`` commands, and falls back to the commands registered on
    the loaded application's ``cli`` group.
    """

    def __init__(self, **extra: t.Any) -> None:
        params: list[click.Parameter] = list(extra.pop("params", None) or ())
        params.append(
            click.Option(
                ["-A", "--app"],
                metavar="MODULE:NAME",
                help="The sluice application to load.",
                is_eager=True,
                expose_value=False,
                callback=_set_app,
            )
        )
        params.append(
            click.Option(
                ["--debug/--no-debug"],
                default=None,
                help="Set debug mode on the loaded application.",
                expose_value=False,
                callback=_set_debug,
            )
        )
        extra.setdefault("context_settings", {}).setdefault(
            "auto_envvar_prefix", "SLUICE"
        )
        super().__init__(params=params, **extra)
        self.add_command(run_command)
        self.add_command(routes_command)

    def get_command(self, ctx: click.Context, name: str) -> click.Command | None:
        rv = super().get_command(ctx, name)
        if rv is not None:
            return rv
        try:
            app = ctx.ensure_object(ScriptInfo).load_app()
        except NoAppException as e:
            click.secho(f"Error: {e.format_message()}\n", err=True, fg="red")
            return None
        return app.cli.get_command(ctx, name)

    def list_commands(self, ctx: click.Context) -> list[str]:  # type: ignore[override]
        rv = set(super().list_commands(ctx))
        try:
            rv.update(ctx.ensure_object(ScriptInfo).load_app().cli.list_commands(ctx))
        except NoAppException as e:
            click.secho(f"Error: {e.format_message()}\n", err=True, fg="red")
        return sorted(rv)

    def make_context(
        self,
        info_name: str | None,
        args: list[str],
        parent: click.Context | None = None,
        **extra: t.Any,
    ) -> click.Context:
        os.environ["SLUICE_RUN_FROM_CLI"] = "true"
        return super().make_context(info_name, args, parent=parent, **extra)


@click.command("run", short_help="Run a development server.")
@click.option("--host", "-h", default="127.0.0.1", help="The interface to bind to.")
@click.option("--port", "-p", default=8000, help="The port to bind to.")
@click.option(
    "--reload/--no-reload",
    default=None,
    help="Enable or disable the reloader. By default the reloader is active"
    " if debug is enabled.",
)
@pass_script_info
def run_command(info: ScriptInfo, host: str, port: int, reload: bool | None) -> None:
    """Run the werkzeug development server for the application."""
    from werkzeug.serving import run_simple

    app = info.load_app()
    if reload is None:
        reload = app.debug
    run_simple(host, port, app, use_reloader=reload, use_debugger=False)


def _describe_handler(handler: t.Callable[..., t.Any]) -> str:
    module = getattr(handler, "__module__", None)
    name = getattr(handler, "__qualname__", None) or getattr(
        handler, "__name__", repr(handler)
    )
    if module:
        return f"{module}.{name}"
    return name


@click.command("routes", short_help="Show the routes for the app.")
@click.option(
    "--sort",
    "-s",
    type=click.Choice(("match", "methods", "rule", "handler")),
    default="match",
    help=(
        "Method to sort routes by. 'match' is the order in which routes are"
        " tried when dispatching a request."
    ),
)
@pass_script_info
def routes_command(info: ScriptInfo, sort: str) -> None:
    app = info.load_app()
    routes = list(app.routes)
    if not routes:
        click.echo("No routes were registered.")
        return

    rows = [
        [
            route.method,
            route.template,
            ", ".join(route.names),
            _describe_handler(route.handler),
        ]
        for route in routes
    ]
    headers = ["Methods", "Rule", "Parameters", "Handler"]
    sorts = {"methods": 0, "rule": 1, "handler": 3}
    if sort in sorts:
        rows.sort(key=itemgetter(sorts[sort]))

    rows.insert(0, headers)
    widths = [max(len(row[i]) for row in rows) for i in range(len(headers))]
    rows.insert(1, ["-" * w for w in widths])
    template = "  ".join(f"{{{i}:<{w}}}" for i, w in enumerate(widths))
    for row in rows:
        click.echo(template.format(*row).rstrip())


cli = SluiceGroup(
    name="sluice",
    help=(
        "A utility script for sluice applications.\n\n"
        "The application is given with the '--app' option or the\n"
        "'SLUICE_APP' environment variable, or found in an 'app.py' or\n"
        "'wsgi.py' file in the current directory."
    ),
)


def main() -> None:
    cli.main()
