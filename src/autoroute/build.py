"""Two-phase build orchestration.

Phase 1 (scatter): every unit is processed on its own and recorded.
Phase 2 (gather): once the registry is sealed, generated code is read
back from it.

Single-process use::

    build = RouteBuild(BuildConfig(source_root="src"))
    report = build.collect(["src/app"])
    if report.ok:
        build.finish()
        source = build.generate(["/events"])

Split across processes, the build tool calls ``begin()`` once, ``emit()``
from any number of workers, then ``finish()`` once before generating.
"""

import logging
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from autoroute.collect import emit_unit, module_name_for, unit_exists
from autoroute.config import BuildConfig
from autoroute.errors import AnnotationError
from autoroute.registry import RegistryStore
from autoroute.synthesize import Synthesizer

logger = logging.getLogger("autoroute.build")


@dataclass(slots=True)
class CollectReport:
    """Outcome of processing a batch of units."""

    units: list[str] = field(default_factory=list)
    descriptors: int = 0
    errors: list[AnnotationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def merge(self, other: "CollectReport") -> None:
        self.units.extend(other.units)
        self.descriptors += other.descriptors
        self.errors.extend(other.errors)


def iter_sources(paths: Iterable[str | Path]) -> Iterator[Path]:
    """Expand files and directories into ``.py`` files, sorted per directory.

    Hidden directories and ``__pycache__`` are skipped.
    """
    seen: set[Path] = set()
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            candidates = sorted(
                p
                for p in path.rglob("*.py")
                if not any(
                    part.startswith(".") or part == "__pycache__"
                    for part in p.relative_to(path).parts[:-1]
                )
            )
        elif path.is_file():
            candidates = [path]
        else:
            raise FileNotFoundError(f"Source path not found: {path}")
        for candidate in candidates:
            key = candidate.resolve()
            if key not in seen:
                seen.add(key)
                yield candidate


class RouteBuild:
    """Drives collection and aggregation against one build's registry."""

    __slots__ = ("config", "store")

    def __init__(self, config: BuildConfig | None = None) -> None:
        self.config = config or BuildConfig()
        self.store = RegistryStore(self.config.registry_path, busy_timeout=self.config.busy_timeout)

    # -- phase 1 ----------------------------------------------------------

    def begin(self, *, full: bool | None = None) -> None:
        """Open collection. Incremental builds forget units whose files are gone."""
        full = self.config.full_rebuild if full is None else full
        self.store.begin_build(full=full)
        if full:
            return
        for unit in self.store.units():
            if not unit_exists(unit, self.config.source_root):
                self.store.forget_unit(unit)

    def _emit_one(self, path: Path) -> CollectReport:
        report = CollectReport()
        try:
            unit = module_name_for(path, self.config.source_root)
        except ValueError as exc:
            # Not importable, so generated code could never reach it
            logger.warning("Skipping %s: %s", path, exc)
            return report
        try:
            unit, descriptors = emit_unit(
                self.store,
                path,
                source_unit=unit,
                grouping=self.config.grouping_decorator,
            )
        except AnnotationError as exc:
            logger.debug("Unit %s failed: %s", path, exc)
            report.errors.append(exc)
            return report
        report.units.append(unit)
        report.descriptors += len(descriptors)
        return report

    def emit(self, paths: Iterable[str | Path]) -> CollectReport:
        """Process and record units. A failing unit does not stop the others."""
        sources = list(iter_sources(paths))
        report = CollectReport()
        if self.config.jobs > 1 and len(sources) > 1:
            with ThreadPoolExecutor(max_workers=self.config.jobs) as pool:
                for partial in pool.map(self._emit_one, sources):
                    report.merge(partial)
        else:
            for source in sources:
                report.merge(self._emit_one(source))
        logger.info(
            "Collected %d handler(s) from %d unit(s), %d error(s)",
            report.descriptors,
            len(sources),
            len(report.errors),
        )
        return report

    def collect(self, paths: Iterable[str | Path]) -> CollectReport:
        """``begin()`` then ``emit()``. Call :meth:`finish` afterwards."""
        self.begin()
        return self.emit(paths)

    def finish(self) -> None:
        """Seal the registry: the barrier between collection and aggregation."""
        self.store.seal()

    # -- phase 2 ----------------------------------------------------------

    def synthesizer(self) -> Synthesizer:
        return Synthesizer(self.store, runtime_module=self.config.runtime_module)

    def generate(self, scopes: Sequence[str], use_scope_as_path: bool | None = None) -> str:
        """Generated module with ``register_service`` and ``list_routes``."""
        return self.synthesizer().synthesize_module(scopes, use_scope_as_path)

    def write(
        self,
        output: str | Path,
        scopes: Sequence[str],
        use_scope_as_path: bool | None = None,
    ) -> Path:
        """Generate and write the module to *output*. Returns the path written."""
        source = self.generate(scopes, use_scope_as_path)
        target = Path(output)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(source, encoding="utf-8")
        logger.info("Wrote %s", target)
        return target
