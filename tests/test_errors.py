"""Tests for autoroute.errors — exception hierarchy and diagnostics."""

from autoroute.errors import (
    AggregationError,
    AmbiguousVerbAnnotation,
    AnnotationError,
    AutorouteError,
    BuildOrderError,
    DuplicateHandler,
    EmptyScope,
    InvalidPath,
    InvalidScope,
    MissingVerbAnnotation,
    RegistryIOFailure,
    UnitSyntaxError,
    UnknownOption,
    UnknownScope,
)


class TestHierarchy:
    def test_annotation_errors(self) -> None:
        for cls in (
            MissingVerbAnnotation,
            AmbiguousVerbAnnotation,
            InvalidPath,
            InvalidScope,
            UnknownOption,
            UnitSyntaxError,
        ):
            assert issubclass(cls, AnnotationError)
            assert issubclass(cls, AutorouteError)

    def test_aggregation_errors(self) -> None:
        assert issubclass(EmptyScope, AggregationError)
        assert issubclass(DuplicateHandler, AggregationError)

    def test_unknown_scope_is_empty_scope(self) -> None:
        assert issubclass(UnknownScope, EmptyScope)

    def test_registry_and_order_errors(self) -> None:
        assert issubclass(RegistryIOFailure, AutorouteError)
        assert issubclass(BuildOrderError, AutorouteError)


class TestAnnotationError:
    def test_str_with_full_location(self) -> None:
        err = InvalidPath("@get path must not be empty", filename="app/events.py", line=12, col=0)
        err.at(handler="search")
        assert str(err) == (
            "app/events.py:12:1: InvalidPath in handler 'search': @get path must not be empty"
        )

    def test_str_without_location(self) -> None:
        err = MissingVerbAnnotation("expected a verb")
        assert str(err) == "<unknown>: MissingVerbAnnotation: expected a verb"

    def test_at_keeps_existing_fields(self) -> None:
        err = AmbiguousVerbAnnotation("two verbs", line=7, col=4)
        err.at(filename="m.py", line=3, col=0, handler="h")
        assert err.line == 7
        assert err.col == 4
        assert err.filename == "m.py"
        assert err.handler == "h"

    def test_at_returns_self(self) -> None:
        err = InvalidScope("bad")
        assert err.at(filename="m.py") is err

    def test_kind(self) -> None:
        assert UnknownOption("x").kind == "UnknownOption"


class TestAggregationErrors:
    def test_unknown_scope_names_scope(self) -> None:
        err = UnknownScope("/missing", ("/events", "/users"))
        assert err.scope == "/missing"
        assert "'/missing'" in str(err)
        assert "/events, /users" in str(err)

    def test_duplicate_handler_names_units(self) -> None:
        err = DuplicateHandler("/events", "search", ("app.a", "app.b"))
        assert err.units == ("app.a", "app.b")
        assert "'search'" in str(err)
        assert "app.a, app.b" in str(err)
