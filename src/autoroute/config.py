"""Build configuration.

BuildConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Build configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = BuildConfig(source_root="src", build_id="ci-1234", full_rebuild=True)
    """

    # Registry location: <build_dir>/registry-<build_id>.sqlite3
    build_dir: str | Path = ".autoroute"
    build_id: str = "default"

    # Sources — unit ids are dotted module names relative to this root
    source_root: str | Path = "."

    # Clear the registry when the build begins (full rebuild boundary)
    full_rebuild: bool = False

    # Seconds a writer waits for another process's write lock
    busy_timeout: float = 30.0

    # Worker threads used to process units (1 = sequential)
    jobs: int = 1

    # Decorator name that marks a handler for collection
    grouping_decorator: str = "auto_register"

    # Module the generated code imports Scope / print_routes from
    runtime_module: str = "autoroute.runtime"

    @property
    def registry_path(self) -> Path:
        return Path(self.build_dir) / f"registry-{self.build_id}.sqlite3"
