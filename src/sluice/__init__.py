"""sluice: a request dispatch engine with patterned routes, parameter
bindings, scoped filters and a per-request context."""

__version__ = "0.1.0"

from sluice.app import Sluice
from sluice.bindings import BindingRegistry
from sluice.config import Config
from sluice.context import RequestContext, State
from sluice.exceptions import (
    BindingCycleError,
    ConfigurationError,
    Halt,
    HandlerFailure,
    RouteNotFound,
    SluiceError,
)
from sluice.filters import FilterChain, ParamFilterRegistry
from sluice.request import read_body
from sluice.response import ResponseIntent
from sluice.routing import RouteTable, compile_pattern
from sluice.sessions import FileSessionStore, MemorySessionStore, SessionStore

__all__ = [
    "__version__",
    "Sluice",
    "BindingRegistry",
    "Config",
    "RequestContext",
    "State",
    "BindingCycleError",
    "ConfigurationError",
    "Halt",
    "HandlerFailure",
    "RouteNotFound",
    "SluiceError",
    "FilterChain",
    "ParamFilterRegistry",
    "read_body",
    "ResponseIntent",
    "RouteTable",
    "compile_pattern",
    "FileSessionStore",
    "MemorySessionStore",
    "SessionStore",
]
