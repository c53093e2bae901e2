"""Grouping decorator parsing.

``@auto_register("/events")`` or ``@auto_register("/events", use_scope_as_path=True)``.
"""

from autoroute.annotations.types import Annotation, NonLiteral, ScopeSpec
from autoroute.errors import InvalidScope, UnknownOption

_OPTIONS = frozenset({"use_scope_as_path"})


def normalize_scope(value: str) -> str:
    """Strip trailing slashes; the root scope ``/`` stays ``/``.

    Raises ``InvalidScope`` if *value* is empty or not rooted at ``/``.
    """
    if not isinstance(value, str) or not value:
        raise InvalidScope("scope must be a non-empty string")
    if not value.startswith("/"):
        raise InvalidScope(f"scope must start with '/', got {value!r}")
    return value.rstrip("/") or "/"


def parse_scope(annotation: Annotation) -> ScopeSpec:
    """Validate a grouping decorator and return its scope and options.

    Raises:
        InvalidScope: The scope argument is missing, not a string literal,
            empty, or does not start with ``/``.
        UnknownOption: An unrecognized keyword, a non-bool flag, or too
            many positional arguments.
    """
    where = {"line": annotation.line, "col": annotation.col}
    decorator = f"@{annotation.name}"

    for key in sorted(annotation.kwargs):
        if key != "scope" and key not in _OPTIONS:
            raise UnknownOption(f"{decorator} got unknown option {key!r}", **where)

    args = list(annotation.args)
    if "scope" in annotation.kwargs:
        if args:
            raise UnknownOption(f"{decorator} got scope both positionally and by keyword", **where)
        args.append(annotation.kwargs["scope"])
    if len(args) > 2:
        raise UnknownOption(
            f"{decorator} takes at most 2 positional arguments, got {len(args)}",
            **where,
        )

    if not annotation.called or not args:
        raise InvalidScope(f"{decorator} requires a scope argument", **where)

    raw = args[0]
    if isinstance(raw, NonLiteral):
        raise InvalidScope(
            f"{decorator} scope must be a string literal, got {raw.source}",
            **where,
        )
    try:
        scope = normalize_scope(raw)
    except InvalidScope as exc:
        raise InvalidScope(f"{decorator} {exc.message}", **where) from None

    if len(args) == 2 and "use_scope_as_path" in annotation.kwargs:
        raise UnknownOption(
            f"{decorator} got use_scope_as_path both positionally and by keyword",
            **where,
        )
    flag = args[1] if len(args) == 2 else annotation.kwargs.get("use_scope_as_path", False)
    if not isinstance(flag, bool):
        shown = flag.source if isinstance(flag, NonLiteral) else repr(flag)
        raise UnknownOption(
            f"{decorator} use_scope_as_path must be True or False, got {shown}",
            **where,
        )

    return ScopeSpec(scope=scope, use_scope_as_path=flag)
