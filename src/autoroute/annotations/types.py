"""Parsed decorator data handed to the extractor and scope parser."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class NonLiteral:
    """A decorator argument that is not a Python literal.

    Routing metadata is read from source without importing it, so only
    literal arguments have a value. ``source`` keeps the expression text
    for diagnostics.
    """

    source: str


@dataclass(frozen=True, slots=True)
class Annotation:
    """One decorator attached to a handler.

    ``name`` is the last dotted component of the decorator expression:
    ``@autoroute.get("/x")`` and ``@get("/x")`` both have name ``"get"``.
    ``called`` is False for a bare ``@get`` with no argument list.
    """

    name: str
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)
    called: bool = True
    line: int | None = None
    col: int | None = None


@dataclass(frozen=True, slots=True)
class ScopeSpec:
    """A validated grouping decorator."""

    scope: str
    use_scope_as_path: bool = False
