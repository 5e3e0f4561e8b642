"""Testing helpers: a cookie-keeping test client, direct request
construction and a CLI runner bound to an application."""
from click.testing import CliRunner
from werkzeug.test import Client, EnvironBuilder

from sluice.cli import ScriptInfo


def make_request(path="/", method="GET", **kwargs):
    """Build a :class:`werkzeug.wrappers.Request` for :meth:`Sluice.dispatch`.

    Accepts the keyword arguments of :class:`werkzeug.test.EnvironBuilder`
    (``query_string``, ``headers``, ``data``, ``json``, ``content_type``...).
    """
    builder = EnvironBuilder(path=path, method=method, **kwargs)
    try:
        return builder.get_request()
    finally:
        builder.close()


class SluiceClient(Client):
    """Test client that calls the app's WSGI interface.

    Cookies set by responses are sent back on later requests, so flash
    messages and sessions survive from one request to the next.
    """

    def __init__(self, app, use_cookies=True, **kwargs):
        self.app = app
        super().__init__(app, use_cookies=use_cookies, **kwargs)


class SluiceCliRunner(CliRunner):
    def __init__(self, app, **kwargs):
        self.app = app
        super().__init__(**kwargs)

    def invoke(self, cli=None, args=None, **kwargs):
        """Invoke *cli* (the app's own command group by default) with
        the application preloaded."""
        if cli is None:
            cli = self.app.cli
        if "obj" not in kwargs:
            kwargs["obj"] = ScriptInfo(create_app=lambda: self.app)
        return super().invoke(cli, args, **kwargs)
