"""Runtime side of generated code.

Generated ``register_service(config)`` functions build :class:`Scope`
containers and hand them to ``config.service()``. Any web runtime can
accept them by providing a ``service`` method; :class:`ServiceConfig` is
a plain collecting implementation used by tests and adapters.

Generated ``list_routes()`` functions print through :func:`print_routes`.
"""

import sys
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TextIO

from autoroute.route import HttpVerb


@dataclass(frozen=True, slots=True)
class ScopedRoute:
    """One handler attached to a scope."""

    path: str
    verb: HttpVerb
    handler: Callable[..., Any]


@dataclass(slots=True)
class Scope:
    """A routing container rooted at ``prefix``.

    ``route()`` returns the scope so calls chain::

        Scope("/events").route("/search", "GET", search).route("/create", "POST", create)
    """

    prefix: str
    entries: list[ScopedRoute] = field(default_factory=list)

    def route(self, path: str, verb: str | HttpVerb, handler: Callable[..., Any]) -> "Scope":
        self.entries.append(ScopedRoute(path=path, verb=HttpVerb(verb), handler=handler))
        return self

    def full_path(self, path: str) -> str:
        """Join the scope prefix and a handler path."""
        if self.prefix in ("", "/"):
            return path if path.startswith("/") else f"/{path}"
        return f"{self.prefix.rstrip('/')}/{path.lstrip('/')}"

    @property
    def routes(self) -> Iterator[tuple[str, str, Callable[..., Any]]]:
        """Yield ``(verb, full_path, handler)`` for every attached handler."""
        for entry in self.entries:
            yield entry.verb.value, self.full_path(entry.path), entry.handler

    def __len__(self) -> int:
        return len(self.entries)


class ServiceTarget(Protocol):
    """Anything ``register_service`` can attach scopes to."""

    def service(self, scope: Scope) -> Any: ...


class ServiceConfig:
    """Mutable configuration handle that collects attached scopes.

    Adapters for a concrete web runtime walk :attr:`routes` and register
    each ``(verb, path, handler)`` with their own router.
    """

    __slots__ = ("scopes",)

    def __init__(self) -> None:
        self.scopes: list[Scope] = []

    def service(self, scope: Scope) -> "ServiceConfig":
        self.scopes.append(scope)
        return self

    @property
    def routes(self) -> list[tuple[str, str, Callable[..., Any]]]:
        return [route for scope in self.scopes for route in scope.routes]


# ---------------------------------------------------------------------------
# Route table rendering
# ---------------------------------------------------------------------------

_HEADERS = ("SCOPE", "PATH", "HANDLER", "VERB")


def format_route_table(rows: Sequence[tuple[str, str, str, str]]) -> str:
    """Render ``(scope, path, handler_name, verb)`` rows as a plain-text table."""
    if not rows:
        return "No routes registered."

    widths = [
        max(len(_HEADERS[i]), *(len(row[i]) for row in rows)) for i in range(len(_HEADERS) - 1)
    ]
    fmt = "  ".join(f"{{:<{w}}}" for w in widths) + "  {}"

    lines = [fmt.format(*_HEADERS)]
    sep_len = sum(widths) + 2 * len(widths) + max(len(_HEADERS[-1]), *(len(r[3]) for r in rows))
    lines.append("-" * min(sep_len, 80))
    lines.extend(fmt.format(*row) for row in rows)
    return "\n".join(lines)


def print_routes(rows: Iterable[tuple[str, str, str, str]], file: TextIO | None = None) -> None:
    """Print the route table to *file* (default stdout)."""
    print(format_route_table(list(rows)), file=file or sys.stdout)
