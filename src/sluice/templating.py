"""Jinja2 view rendering for ``render`` and ``partial``.

Views live in ``VIEWS_DIRECTORY``. A name without an extension gets
``.html`` appended, so ``render("template")`` loads ``template.html``.
With a layout, the rendered view is passed to the layout template as
``content``.
"""
import os

import jinja2
from markupsafe import Markup

from sluice.helpers import json_dumps


def _htmlsafe_dumps(obj, **kwargs):
    """JSON-dump and replace HTML-unsafe characters with Unicode escapes."""
    rv = json_dumps(obj, **kwargs)
    return Markup(
        rv.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("'", "\\u0027")
    )


def template_filename(name):
    if os.path.splitext(name)[1]:
        return name
    return f"{name}.html"


class JinjaRenderer:
    """Template collaborator backed by a Jinja2 environment.

    The environment is created on first use so that an app without a
    views directory never touches the filesystem.
    """

    def __init__(self, views_directory="views", default_layout=None,
                 root_path=None, auto_reload=False):
        if root_path and not os.path.isabs(views_directory):
            views_directory = os.path.join(root_path, views_directory)
        self.views_directory = views_directory
        self.default_layout = default_layout
        self.auto_reload = auto_reload
        self._env = None

    @property
    def env(self):
        if self._env is None:
            self._env = self.create_environment()
        return self._env

    def create_environment(self):
        env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(self.views_directory),
            autoescape=jinja2.select_autoescape(["html", "htm", "xml"]),
            auto_reload=self.auto_reload,
            extensions=["jinja2.ext.do"],
        )
        env.filters["tojson"] = _htmlsafe_dumps
        return env

    def partial(self, name, locals=None):
        """Render view *name* on its own and return the string."""
        template = self.env.get_template(template_filename(name))
        return template.render(**(locals or {}))

    def render(self, name, locals=None, layout=None):
        """Render view *name*, wrapped in *layout* when one is given."""
        content = self.partial(name, locals)
        if not layout:
            return content
        context = dict(locals or {})
        context["content"] = Markup(content)
        return self.partial(layout, context)
