"""Tests for autoroute.annotations.scope — grouping decorator parsing."""

import pytest

from autoroute.annotations import Annotation, NonLiteral, ScopeSpec, normalize_scope, parse_scope
from autoroute.errors import InvalidScope, UnknownOption


def _scope(*args: object, **kwargs: object) -> Annotation:
    return Annotation(name="auto_register", args=args, kwargs=kwargs, line=5, col=0)


class TestNormalizeScope:
    def test_plain(self) -> None:
        assert normalize_scope("/events") == "/events"

    def test_trailing_slash_stripped(self) -> None:
        assert normalize_scope("/events/") == "/events"
        assert normalize_scope("/api/v1//") == "/api/v1"

    def test_root_kept(self) -> None:
        assert normalize_scope("/") == "/"
        assert normalize_scope("//") == "/"

    def test_empty(self) -> None:
        with pytest.raises(InvalidScope):
            normalize_scope("")

    def test_not_rooted(self) -> None:
        with pytest.raises(InvalidScope):
            normalize_scope("events")


class TestParseScope:
    def test_scope_only(self) -> None:
        assert parse_scope(_scope("/events")) == ScopeSpec("/events", False)

    def test_flag_keyword(self) -> None:
        assert parse_scope(_scope("/events", use_scope_as_path=True)) == ScopeSpec("/events", True)

    def test_flag_positional(self) -> None:
        assert parse_scope(_scope("/events", True)) == ScopeSpec("/events", True)

    def test_scope_keyword(self) -> None:
        assert parse_scope(_scope(scope="/users/")) == ScopeSpec("/users", False)

    def test_missing(self) -> None:
        with pytest.raises(InvalidScope) as exc_info:
            parse_scope(_scope())
        assert exc_info.value.line == 5

    def test_bare_decorator(self) -> None:
        with pytest.raises(InvalidScope):
            parse_scope(Annotation(name="auto_register", called=False))

    def test_empty(self) -> None:
        with pytest.raises(InvalidScope):
            parse_scope(_scope(""))

    def test_not_rooted(self) -> None:
        with pytest.raises(InvalidScope):
            parse_scope(_scope("events"))

    def test_non_string(self) -> None:
        with pytest.raises(InvalidScope):
            parse_scope(_scope(3))

    def test_non_literal(self) -> None:
        with pytest.raises(InvalidScope):
            parse_scope(_scope(NonLiteral("PREFIX")))

    def test_unknown_keyword(self) -> None:
        with pytest.raises(UnknownOption) as exc_info:
            parse_scope(_scope("/events", prefix="/x"))
        assert "'prefix'" in exc_info.value.message

    def test_too_many_positional(self) -> None:
        with pytest.raises(UnknownOption):
            parse_scope(_scope("/events", True, "extra"))

    def test_non_bool_flag(self) -> None:
        with pytest.raises(UnknownOption):
            parse_scope(_scope("/events", use_scope_as_path="yes"))

    def test_flag_given_twice(self) -> None:
        with pytest.raises(UnknownOption):
            parse_scope(_scope("/events", True, use_scope_as_path=True))
