"""Routing decorators for handler functions.

These are markers only: they record metadata on the function under
``__autoroute__`` and return it unchanged. No registration happens at
import time; the build reads the decorators from source and generates
``register_service`` instead.

Usage::

    from autoroute import auto_register, get, post

    @auto_register("/events")
    @get("/search")
    async def search(request): ...

    @auto_register("/events", use_scope_as_path=True)
    @post("/create")
    async def create(request): ...
"""

from collections.abc import Callable
from typing import Any

from autoroute.route import HttpVerb

type Handler = Callable[..., Any]

ATTRIBUTE = "__autoroute__"


def _mark(func: Handler, **metadata: Any) -> Handler:
    existing = dict(getattr(func, ATTRIBUTE, {}))
    existing.update(metadata)
    setattr(func, ATTRIBUTE, existing)
    return func


def metadata(func: Handler) -> dict[str, Any]:
    """Return the routing metadata recorded on *func* (empty if none)."""
    return dict(getattr(func, ATTRIBUTE, {}))


def auto_register(scope: str, use_scope_as_path: bool = False) -> Callable[[Handler], Handler]:
    """Mark a handler for collection into *scope*."""

    def decorator(func: Handler) -> Handler:
        return _mark(func, scope=scope, use_scope_as_path=use_scope_as_path)

    return decorator


def _verb_marker(verb: HttpVerb) -> Callable[[str], Callable[[Handler], Handler]]:
    def marker(path: str) -> Callable[[Handler], Handler]:
        def decorator(func: Handler) -> Handler:
            return _mark(func, verb=verb, path=path)

        return decorator

    marker.__name__ = marker.__qualname__ = verb.decorator
    marker.__doc__ = f"Declare the handler's {verb.value} path."
    return marker


get = _verb_marker(HttpVerb.GET)
post = _verb_marker(HttpVerb.POST)
put = _verb_marker(HttpVerb.PUT)
delete = _verb_marker(HttpVerb.DELETE)
patch = _verb_marker(HttpVerb.PATCH)
