"""Per-unit annotation processing.

Reads one Python module's source with ``ast`` (user code is never
imported at build time), finds top-level handlers carrying the grouping
decorator, and turns each into a :class:`RouteDescriptor`.

Each unit is processed in isolation. The only thing units share is the
registry store that :func:`emit_unit` writes into.

Errors abort the unit: the first malformed handler raises a located
``AnnotationError`` and nothing from the unit is recorded.
"""

from __future__ import annotations

import ast
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from autoroute.annotations import Annotation, NonLiteral, extract_verb_path, parse_scope
from autoroute.errors import AnnotationError, UnitSyntaxError, UnknownOption
from autoroute.route import RouteDescriptor

if TYPE_CHECKING:
    from autoroute.registry import RegistryStore

logger = logging.getLogger("autoroute.collect")

DEFAULT_GROUPING = "auto_register"


# ---------------------------------------------------------------------------
# Decorator → Annotation
# ---------------------------------------------------------------------------


def _decorator_name(node: ast.expr) -> str | None:
    """``get`` for ``@get``, ``@autoroute.get``, and ``@rt.get(...)``."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _argument_value(node: ast.expr) -> Any:
    try:
        return ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
        return NonLiteral(ast.unparse(node))


def annotation_from_decorator(node: ast.expr) -> Annotation | None:
    """Convert one decorator expression. Returns None for unnamed decorators."""
    if isinstance(node, ast.Call):
        name = _decorator_name(node.func)
        if name is None:
            return None
        args: list[Any] = []
        for arg in node.args:
            if isinstance(arg, ast.Starred):
                args.append(NonLiteral(ast.unparse(arg)))
            else:
                args.append(_argument_value(arg))
        kwargs: dict[str, Any] = {}
        for keyword in node.keywords:
            # **options unpacking has no keyword name
            key = keyword.arg if keyword.arg is not None else f"**{ast.unparse(keyword.value)}"
            kwargs[key] = _argument_value(keyword.value)
        return Annotation(
            name=name,
            args=tuple(args),
            kwargs=kwargs,
            called=True,
            line=node.lineno,
            col=node.col_offset,
        )

    name = _decorator_name(node)
    if name is None:
        return None
    return Annotation(name=name, called=False, line=node.lineno, col=node.col_offset)


def handler_annotations(func: ast.FunctionDef | ast.AsyncFunctionDef) -> list[Annotation]:
    """Return a function's decorators as annotations, top to bottom."""
    annotations: list[Annotation] = []
    for node in func.decorator_list:
        annotation = annotation_from_decorator(node)
        if annotation is not None:
            annotations.append(annotation)
    return annotations


# ---------------------------------------------------------------------------
# Unit processing
# ---------------------------------------------------------------------------


def describe_handler(
    func: ast.FunctionDef | ast.AsyncFunctionDef,
    source_unit: str,
    *,
    grouping: str = DEFAULT_GROUPING,
) -> RouteDescriptor | None:
    """Build the descriptor for one handler.

    Returns None if the handler has no grouping decorator. Raises an
    ``AnnotationError`` located at the handler (filename left unset).
    """
    annotations = handler_annotations(func)
    grouping_annotations = [a for a in annotations if a.name == grouping]
    if not grouping_annotations:
        return None

    try:
        if len(grouping_annotations) > 1:
            extra = grouping_annotations[1]
            raise UnknownOption(
                f"@{grouping} may only be applied once per handler",
                line=extra.line,
                col=extra.col,
            )
        verb, path = extract_verb_path(annotations)
        spec = parse_scope(grouping_annotations[0])
    except AnnotationError as exc:
        raise exc.at(line=func.lineno, col=func.col_offset, handler=func.name) from None

    return RouteDescriptor(
        scope=spec.scope,
        path=path,
        handler_name=func.name,
        verb=verb,
        source_unit=source_unit,
        use_scope_as_path=spec.use_scope_as_path,
        line=func.lineno,
    )


def collect_source(
    source: str | bytes,
    source_unit: str,
    *,
    filename: str = "<unknown>",
    grouping: str = DEFAULT_GROUPING,
) -> list[RouteDescriptor]:
    """Process one unit's source and return its descriptors.

    *source* may be raw bytes, in which case a PEP 263 coding declaration
    is honoured the same way the interpreter honours it.

    Only module-level ``def`` / ``async def`` handlers are collected; the
    generated code reaches them as ``<module>.<name>``. When a name is
    defined twice, the later definition wins, as it does at import time.

    Raises:
        UnitSyntaxError: The source does not decode or does not parse.
        AnnotationError: A grouped handler's decorators are malformed.
    """
    try:
        tree = ast.parse(source, filename=filename)
    except SyntaxError as exc:
        raise UnitSyntaxError(
            exc.msg,
            filename=filename,
            line=exc.lineno,
            col=(exc.offset - 1) if exc.offset else None,
        ) from None
    except ValueError as exc:
        # Undecodable bytes or an unknown coding declaration
        raise UnitSyntaxError(f"cannot decode source: {exc}", filename=filename) from None

    by_name: dict[str, RouteDescriptor] = {}
    for node in tree.body:
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue
        try:
            descriptor = describe_handler(node, source_unit, grouping=grouping)
        except AnnotationError as exc:
            raise exc.at(filename=filename) from None
        if descriptor is None:
            # A plain redefinition shadows an earlier grouped handler
            by_name.pop(node.name, None)
            continue
        by_name[node.name] = descriptor

    descriptors = list(by_name.values())
    logger.debug("%s: %d handler(s) in unit %s", filename, len(descriptors), source_unit)
    return descriptors


def module_name_for(path: str | Path, root: str | Path) -> str:
    """Dotted module name of *path* relative to *root*.

    ``root/pkg/events.py`` → ``pkg.events``; ``root/pkg/__init__.py`` → ``pkg``.

    Raises ``ValueError`` if *path* is outside *root* or does not map to
    an importable module name.
    """
    resolved = Path(path).resolve()
    relative = resolved.relative_to(Path(root).resolve())
    parts = list(relative.with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    if not parts or not all(part.isidentifier() for part in parts):
        msg = f"{path} does not map to an importable module name under {root}"
        raise ValueError(msg)
    return ".".join(parts)


def unit_exists(source_unit: str, root: str | Path) -> bool:
    """Return True if *source_unit* still has a source file under *root*."""
    base = Path(root).joinpath(*source_unit.split("."))
    return base.with_suffix(".py").is_file() or (base / "__init__.py").is_file()


def collect_file(
    path: str | Path,
    *,
    root: str | Path = ".",
    source_unit: str | None = None,
    grouping: str = DEFAULT_GROUPING,
) -> tuple[str, list[RouteDescriptor]]:
    """Read and process one source file. Returns ``(source_unit, descriptors)``."""
    path = Path(path)
    unit = source_unit or module_name_for(path, root)
    source = path.read_bytes()
    return unit, collect_source(source, unit, filename=str(path), grouping=grouping)


def emit_unit(
    store: RegistryStore,
    path: str | Path,
    *,
    root: str | Path = ".",
    source_unit: str | None = None,
    grouping: str = DEFAULT_GROUPING,
) -> tuple[str, list[RouteDescriptor]]:
    """Process one unit and record its descriptors, replacing the unit's old ones.

    On an ``AnnotationError`` nothing is written and the unit's previously
    recorded descriptors stay as they were.
    """
    unit, descriptors = collect_file(path, root=root, source_unit=source_unit, grouping=grouping)
    store.record_unit(unit, descriptors)
    return unit, descriptors
