"""Autoroute exception hierarchy.

Shared across the collector, registry, synthesizer, and CLI so every
module raises and catches the same types.

Annotation errors are located: they carry the file, line, and handler
where the bad decorator was written, and render as compiler-style
diagnostics. Aggregation errors name the offending scope.
"""


class AutorouteError(Exception):
    """Base for all autoroute-specific errors."""


# ---------------------------------------------------------------------------
# Annotation (declaration-site) errors
# ---------------------------------------------------------------------------


class AnnotationError(AutorouteError):
    """A handler's routing decorators are malformed.

    Raised by the extractor and scope parser without a filename; the
    collector fills in the location with :meth:`at` before re-raising.
    """

    def __init__(
        self,
        message: str,
        *,
        filename: str | None = None,
        line: int | None = None,
        col: int | None = None,
        handler: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.line = line
        self.col = col
        self.handler = handler

    @property
    def kind(self) -> str:
        return type(self).__name__

    def at(
        self,
        *,
        filename: str | None = None,
        line: int | None = None,
        col: int | None = None,
        handler: str | None = None,
    ) -> "AnnotationError":
        """Fill in location fields that are still unset. Returns ``self``."""
        if self.filename is None:
            self.filename = filename
        if self.line is None:
            self.line = line
        if self.col is None:
            self.col = col
        if self.handler is None:
            self.handler = handler
        return self

    def __str__(self) -> str:
        where = self.filename or "<unknown>"
        if self.line is not None:
            where = f"{where}:{self.line}"
            if self.col is not None:
                where = f"{where}:{self.col + 1}"
        subject = f" in handler {self.handler!r}" if self.handler else ""
        return f"{where}: {self.kind}{subject}: {self.message}"


class MissingVerbAnnotation(AnnotationError):  # noqa: N818 — diagnostic kind name
    """A grouped handler has no HTTP verb decorator."""


class AmbiguousVerbAnnotation(AnnotationError):  # noqa: N818 — diagnostic kind name
    """A grouped handler has more than one HTTP verb decorator."""


class InvalidPath(AnnotationError):  # noqa: N818 — diagnostic kind name
    """The verb decorator's path is missing, empty, or not a string literal."""


class InvalidScope(AnnotationError):  # noqa: N818 — diagnostic kind name
    """The grouping decorator's scope is missing, empty, or not rooted at ``/``."""


class UnknownOption(AnnotationError):  # noqa: N818 — diagnostic kind name
    """A decorator was given an argument it does not recognize."""


class UnitSyntaxError(AnnotationError):
    """The compilation unit itself could not be parsed."""


# ---------------------------------------------------------------------------
# Aggregation errors
# ---------------------------------------------------------------------------


class AggregationError(AutorouteError):
    """Raised when generated code cannot be synthesized from the registry."""


class EmptyScope(AggregationError):  # noqa: N818 — diagnostic kind name
    """Registration was requested for nothing.

    Raised directly when the scope list is empty, and through
    :class:`UnknownScope` when a requested scope has no handlers.
    """


class UnknownScope(EmptyScope):  # noqa: N818 — diagnostic kind name
    """A requested scope has zero recorded handlers."""

    def __init__(self, scope: str, known: tuple[str, ...] = ()) -> None:
        self.scope = scope
        self.known = known
        msg = f"No handlers recorded for scope {scope!r}"
        if known:
            msg = f"{msg}. Known scopes: {', '.join(known)}"
        super().__init__(msg)


class DuplicateHandler(AggregationError):  # noqa: N818 — diagnostic kind name
    """Two compilation units declare the same handler name in one scope."""

    def __init__(self, scope: str, handler_name: str, units: tuple[str, ...]) -> None:
        self.scope = scope
        self.handler_name = handler_name
        self.units = units
        super().__init__(
            f"Handler {handler_name!r} is declared in scope {scope!r} "
            f"by more than one unit: {', '.join(units)}"
        )


# ---------------------------------------------------------------------------
# Registry / build errors
# ---------------------------------------------------------------------------


class RegistryIOFailure(AutorouteError):  # noqa: N818 — diagnostic kind name
    """The registry's backing file could not be read or written. Fatal."""


class BuildOrderError(AutorouteError):
    """Collection and aggregation were interleaved.

    Raised when a descriptor is recorded after the registry was sealed,
    or when synthesis is attempted while collection is still open.
    """
