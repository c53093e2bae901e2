"""HttpVerb enum and the RouteDescriptor frozen dataclass."""

from dataclasses import dataclass
from enum import Enum


class HttpVerb(Enum):
    """HTTP verbs a handler can be registered for."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @property
    def decorator(self) -> str:
        """Decorator name that declares this verb (``get``, ``post``, ...)."""
        return self.value.lower()

    @classmethod
    def from_decorator(cls, name: str) -> "HttpVerb | None":
        return _BY_DECORATOR.get(name)


_BY_DECORATOR: dict[str, HttpVerb] = {verb.decorator: verb for verb in HttpVerb}


@dataclass(frozen=True, slots=True)
class RouteDescriptor:
    """One collected handler.

    ``(source_unit, handler_name)`` is the natural key: re-processing a
    unit replaces its descriptors instead of adding to them.
    """

    scope: str
    path: str
    handler_name: str
    verb: HttpVerb
    source_unit: str
    use_scope_as_path: bool = False
    line: int = 0

    @property
    def key(self) -> tuple[str, str]:
        return (self.source_unit, self.handler_name)

    @property
    def sort_key(self) -> tuple[str, str, str, str, str]:
        return (self.scope, self.path, self.verb.value, self.source_unit, self.handler_name)

    def row(self) -> tuple[str, str, str, str]:
        """The listing row: ``(scope, path, handler_name, verb)``."""
        return (self.scope, self.path, self.handler_name, self.verb.value)
