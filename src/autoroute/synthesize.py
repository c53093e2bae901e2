"""Aggregation: turn the sealed registry into generated Python source.

Two entry points, both pure functions of the registry contents:

- :meth:`Synthesizer.synthesize_register_service` emits
  ``register_service(config)`` for an ordered list of scopes
- :meth:`Synthesizer.synthesize_list_routes` emits ``list_routes()``
  over every recorded descriptor

Generated code imports each handler's module under a private alias
(``import app.events as _autoroute_m0``) and references handlers through
it, so equal function names in different modules never clash and no unit
name can shadow ``config``, ``Scope`` or the other generated names.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from kida import DictLoader, Environment

from autoroute._templates import MODULE_TEMPLATE, TEMPLATES
from autoroute.annotations.scope import normalize_scope
from autoroute.errors import (
    BuildOrderError,
    DuplicateHandler,
    EmptyScope,
    InvalidScope,
    UnknownScope,
)
from autoroute.registry import ALL, COLLECTING, RegistryStore
from autoroute.route import RouteDescriptor

logger = logging.getLogger("autoroute.synthesize")

DEFAULT_RUNTIME_MODULE = "autoroute.runtime"
MODULE_ALIAS_PREFIX = "_autoroute_m"


def create_environment() -> Environment:
    """Create the kida Environment holding the code templates.

    Output is Python source, not HTML: autoescaping is off.
    """
    return Environment(
        loader=DictLoader(TEMPLATES),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )


@dataclass(frozen=True, slots=True)
class _RouteLine:
    path: str
    verb: str
    target: str


@dataclass(frozen=True, slots=True)
class _ScopeGroup:
    label: str
    root: str
    entries: tuple[_RouteLine, ...]


@dataclass(frozen=True, slots=True)
class ScopePlan:
    """Resolved registration for one scope: where it mounts and what it holds."""

    scope: str
    root: str
    descriptors: tuple[RouteDescriptor, ...]


@dataclass(frozen=True, slots=True)
class _ModuleImport:
    name: str
    alias: str


def _module_imports(plans: Sequence[ScopePlan]) -> list[_ModuleImport]:
    units = sorted({d.source_unit for plan in plans for d in plan.descriptors})
    return [_ModuleImport(unit, f"{MODULE_ALIAS_PREFIX}{i}") for i, unit in enumerate(units)]


def _check_duplicates(scope: str, descriptors: Sequence[RouteDescriptor]) -> None:
    units_by_name: dict[str, set[str]] = {}
    for d in descriptors:
        units_by_name.setdefault(d.handler_name, set()).add(d.source_unit)
    for name in sorted(units_by_name):
        units = units_by_name[name]
        if len(units) > 1:
            raise DuplicateHandler(scope, name, tuple(sorted(units)))


class Synthesizer:
    """Reads a sealed :class:`RegistryStore` and renders generated modules."""

    __slots__ = ("_env", "_runtime_module", "_store")

    def __init__(
        self,
        store: RegistryStore,
        *,
        environment: Environment | None = None,
        runtime_module: str = DEFAULT_RUNTIME_MODULE,
    ) -> None:
        self._store = store
        self._env = environment or create_environment()
        self._runtime_module = runtime_module

    def _require_sealed(self) -> None:
        if self._store.phase == COLLECTING:
            msg = (
                f"Registry {self._store.path} is still collecting; "
                "seal it before generating code"
            )
            raise BuildOrderError(msg)

    # -- planning ---------------------------------------------------------

    def plan(
        self,
        scopes: Sequence[str],
        use_scope_as_path: bool | None = None,
    ) -> list[ScopePlan]:
        """Resolve the requested scopes against the registry.

        ``use_scope_as_path=None`` defers to the annotations: a scope
        mounts at its own prefix when any of its handlers declared
        ``use_scope_as_path=True``.

        Raises:
            EmptyScope: *scopes* is empty.
            UnknownScope: A requested scope has no recorded handlers.
            DuplicateHandler: Two units declare one handler name in a scope.
            InvalidScope: A requested scope is malformed.
        """
        if isinstance(scopes, str):
            scopes = [scopes]
        if not scopes:
            msg = "register_service needs at least one scope"
            raise EmptyScope(msg)

        self._require_sealed()

        requested: list[str] = []
        for raw in scopes:
            try:
                scope = normalize_scope(raw)
            except InvalidScope as exc:
                raise InvalidScope(f"requested {exc.message}") from None
            if scope not in requested:
                requested.append(scope)

        by_scope: dict[str, list[RouteDescriptor]] = {scope: [] for scope in requested}
        for descriptor in self._store.read_all(requested):
            by_scope[descriptor.scope].append(descriptor)

        plans: list[ScopePlan] = []
        for scope in requested:
            descriptors = by_scope[scope]
            if not descriptors:
                raise UnknownScope(scope, tuple(self._store.scopes()))
            _check_duplicates(scope, descriptors)

            if use_scope_as_path is None:
                scoped = any(d.use_scope_as_path for d in descriptors)
            else:
                scoped = use_scope_as_path
            plans.append(
                ScopePlan(
                    scope=scope,
                    root=scope if scoped else "/",
                    descriptors=tuple(descriptors),
                )
            )
        return plans

    # -- rendering --------------------------------------------------------

    def _render(
        self,
        *,
        plans: Sequence[ScopePlan] = (),
        rows: Sequence[RouteDescriptor] = (),
        include_register: bool,
        include_listing: bool,
    ) -> str:
        modules = _module_imports(plans)
        aliases = {m.name: m.alias for m in modules}
        runtime_names = []
        if include_register:
            runtime_names.append("Scope")
        if include_listing:
            runtime_names.append("print_routes")

        groups = [
            _ScopeGroup(
                label=f"scope {plan.scope!r} mounted at {plan.root!r}",
                root=repr(plan.root),
                entries=tuple(
                    _RouteLine(
                        path=repr(d.path),
                        verb=repr(d.verb.value),
                        target=f"{aliases[d.source_unit]}.{d.handler_name}",
                    )
                    for d in plan.descriptors
                ),
            )
            for plan in plans
        ]

        template = self._env.get_template(MODULE_TEMPLATE)
        return template.render(
            {
                "modules": modules,
                "runtime_module": self._runtime_module,
                "runtime_names": ", ".join(runtime_names),
                "include_register": include_register,
                "include_listing": include_listing,
                "groups": groups,
                "rows": [repr(d.row()) for d in rows],
            }
        )

    def synthesize_register_service(
        self,
        scopes: Sequence[str],
        use_scope_as_path: bool | None = None,
    ) -> str:
        """Generated module text defining ``register_service(config)``."""
        plans = self.plan(scopes, use_scope_as_path)
        logger.debug(
            "Synthesizing register_service for %s",
            ", ".join(f"{p.scope} ({len(p.descriptors)})" for p in plans),
        )
        return self._render(plans=plans, include_register=True, include_listing=False)

    def synthesize_list_routes(self) -> str:
        """Generated module text defining ``list_routes()`` over every scope."""
        self._require_sealed()
        rows = self._store.read_all(ALL)
        logger.debug("Synthesizing list_routes over %d route(s)", len(rows))
        return self._render(rows=rows, include_register=False, include_listing=True)

    def synthesize_module(
        self,
        scopes: Sequence[str],
        use_scope_as_path: bool | None = None,
    ) -> str:
        """One module defining both ``register_service`` and ``list_routes``."""
        plans = self.plan(scopes, use_scope_as_path)
        rows = self._store.read_all(ALL)
        return self._render(
            plans=plans,
            rows=rows,
            include_register=True,
            include_listing=True,
        )
