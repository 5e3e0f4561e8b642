"""WSGI transport adapter.

Turns a WSGI environ into a :class:`werkzeug.wrappers.Request` and a
finalized :class:`~sluice.response.ResponseIntent` into a
:class:`werkzeug.wrappers.Response`.
"""
from werkzeug.wrappers import Request, Response
from werkzeug.wsgi import wrap_file


def to_wsgi_response(intent, environ):
    """Build the werkzeug response for a finalized *intent*."""
    response = Response(status=intent.status or 200)
    response.headers.clear()
    for name, value in intent.header_items():
        response.headers.add(name, value)
    if intent.file is not None:
        f = open(intent.file.path, "rb")
        response.response = wrap_file(environ, f)
        response.direct_passthrough = True
    else:
        response.set_data(intent.body)
    return response


def wsgi_app(app, environ, start_response):
    """Run *app*'s dispatcher for one WSGI request."""
    request = Request(environ)
    try:
        intent = app.dispatch(request)
        response = to_wsgi_response(intent, environ)
        return response(environ, start_response)
    finally:
        request.close()
