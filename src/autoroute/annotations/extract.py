"""Verb/path extraction from a handler's decorator list.

Pure parsing: no registry access, no side effects. Raises located
``AnnotationError`` subclasses; the caller adds the filename.
"""

from collections.abc import Sequence

from autoroute.annotations.types import Annotation, NonLiteral
from autoroute.errors import (
    AmbiguousVerbAnnotation,
    InvalidPath,
    MissingVerbAnnotation,
    UnknownOption,
)
from autoroute.route import HttpVerb


def find_verb_annotations(
    annotations: Sequence[Annotation],
) -> list[tuple[HttpVerb, Annotation]]:
    """Return every ``(verb, annotation)`` pair, in declaration order."""
    found: list[tuple[HttpVerb, Annotation]] = []
    for annotation in annotations:
        verb = HttpVerb.from_decorator(annotation.name)
        if verb is not None:
            found.append((verb, annotation))
    return found


def extract_verb_path(annotations: Sequence[Annotation]) -> tuple[HttpVerb, str]:
    """Find the single verb decorator and return ``(verb, path)``.

    Raises:
        MissingVerbAnnotation: No verb decorator is present.
        AmbiguousVerbAnnotation: More than one verb decorator is present.
        InvalidPath: The path is absent, not a string literal, or empty.
        UnknownOption: The verb decorator has an unexpected keyword.
    """
    found = find_verb_annotations(annotations)

    if not found:
        names = ", ".join(f"@{verb.decorator}" for verb in HttpVerb)
        raise MissingVerbAnnotation(f"expected exactly one of {names}")

    if len(found) > 1:
        declared = ", ".join(f"@{a.name}" for _, a in found)
        second = found[1][1]
        raise AmbiguousVerbAnnotation(
            f"found {len(found)} verb decorators ({declared}); expected exactly one",
            line=second.line,
            col=second.col,
        )

    verb, annotation = found[0]
    return verb, _path_argument(annotation)


def _path_argument(annotation: Annotation) -> str:
    where = {"line": annotation.line, "col": annotation.col}
    decorator = f"@{annotation.name}"

    unexpected = sorted(k for k in annotation.kwargs if k != "path")
    if unexpected:
        raise UnknownOption(
            f"{decorator} got unexpected keyword {unexpected[0]!r}",
            **where,
        )

    values = list(annotation.args)
    if "path" in annotation.kwargs:
        values.append(annotation.kwargs["path"])

    if not annotation.called or not values:
        raise InvalidPath(f"{decorator} requires a path argument", **where)
    if len(values) > 1:
        raise InvalidPath(f"{decorator} takes exactly one path argument", **where)

    path = values[0]
    if isinstance(path, NonLiteral):
        raise InvalidPath(
            f"{decorator} path must be a string literal, got {path.source}",
            **where,
        )
    if not isinstance(path, str):
        raise InvalidPath(
            f"{decorator} path must be a string, got {type(path).__name__}",
            **where,
        )
    if not path:
        raise InvalidPath(f"{decorator} path must not be empty", **where)
    return path
