"""Drive one request through match, bind, filter, handle and finalize."""
from sluice.context import RequestContext, State
from sluice.exceptions import ConfigurationError, Halt, HandlerFailure, RouteNotFound
from sluice.filters import AFTER, BEFORE


class Dispatcher:
    """Runs the request pipeline for an application.

    The first dispatch seals the route table, the binding registry and
    the filter registries. From then on the dispatcher only reads shared
    state, so concurrent dispatches need no further locking.
    """

    def __init__(self, app):
        self.app = app

    @property
    def logger(self):
        return self.app.logger

    def should_propagate(self):
        return bool(self.app.config.get("PROPAGATE_EXCEPTIONS"))

    def dispatch(self, request):
        """Dispatch *request* and return the finalized response intent."""
        self.app.seal()
        ctx = RequestContext(self.app, request)
        try:
            self.run(ctx)
            return ctx.finalize()
        finally:
            ctx.close()

    def run(self, ctx):
        ctx.transition(State.MATCHING)
        try:
            self.match(ctx)
        except Halt:
            return
        except ConfigurationError:
            raise
        except Exception as e:
            self.fail(ctx, e)
            return

        ctx.transition(State.BEFORE)
        if not self.run_phase(ctx, BEFORE):
            return

        ctx.transition(State.HANDLING)
        self.handle(ctx)

        ctx.transition(State.AFTER)
        self.run_phase(ctx, AFTER)

    def match(self, ctx):
        if ctx.path is None:
            self.logger.debug("%s %s is outside the base path", ctx.method, ctx.raw_path)
            ctx.error(404)
        try:
            route, raw_params = self.app.routes.resolve(ctx.method, ctx.path)
        except RouteNotFound as e:
            self.logger.debug("%s", e)
            ctx.error(404)
        ctx.route = route
        ctx.bind_params(self.app.bindings.scope(raw_params).resolve_all())

    def run_phase(self, ctx, phase):
        """Run the *phase* filters; return False if one short-circuited."""
        try:
            if phase == BEFORE:
                self.app.param_filters.run(ctx.route.names, ctx)
            self.app.filters.run(phase, ctx.method, ctx.path, ctx)
        except Halt as e:
            self.logger.debug("%s filter halted %s %s with %s", phase, ctx.method, ctx.path, e.code)
            return False
        except ConfigurationError:
            raise
        except Exception as e:
            self.fail(ctx, e)
            return False
        return True

    def handle(self, ctx):
        try:
            rv = ctx.route.handler(ctx, *ctx.bound_values)
        except Halt as e:
            self.logger.debug("Handler halted %s %s with %s", ctx.method, ctx.path, e.code)
            return
        except ConfigurationError:
            raise
        except Exception as e:
            self.fail(ctx, e)
            return
        if isinstance(rv, (str, bytes, bytearray)):
            ctx.write(rv)

    def fail(self, ctx, exc):
        """Record *exc* as a handler failure and turn it into a 500."""
        ctx.failure = HandlerFailure(exc)
        self.log_exception(ctx, exc)
        if self.should_propagate():
            raise exc
        try:
            ctx.error(500)
        except Halt:
            pass

    def log_exception(self, ctx, exc):
        self.logger.error(
            "Exception on %s [%s]", ctx.raw_path, ctx.method, exc_info=exc
        )
