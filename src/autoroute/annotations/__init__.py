"""Decorator parsing: verb/path extraction and scope validation."""

from autoroute.annotations.extract import extract_verb_path, find_verb_annotations
from autoroute.annotations.scope import normalize_scope, parse_scope
from autoroute.annotations.types import Annotation, NonLiteral, ScopeSpec

__all__ = [
    "Annotation",
    "NonLiteral",
    "ScopeSpec",
    "extract_verb_path",
    "find_verb_annotations",
    "normalize_scope",
    "parse_scope",
]
