"""Shared fixtures: a registry in tmp_path and throwaway handler packages."""

import itertools
import sys
import textwrap
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from autoroute.registry import RegistryStore

_package_ids = itertools.count()

type PackageFactory = Callable[[dict[str, str]], tuple[str, Path]]


@pytest.fixture
def store(tmp_path: Path) -> RegistryStore:
    return RegistryStore(tmp_path / "build" / "registry-test.sqlite3")


@pytest.fixture
def make_package(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[PackageFactory]:
    """Write ``{module: source}`` into a fresh, importable package.

    Returns ``(package_name, source_root)``. Each call uses a new package
    name so modules imported by one test never leak into another.
    """
    root = tmp_path / "src"
    root.mkdir(exist_ok=True)
    monkeypatch.syspath_prepend(str(root))

    def make(modules: dict[str, str]) -> tuple[str, Path]:
        name = f"handlers_{next(_package_ids)}"
        package = root / name
        package.mkdir()
        (package / "__init__.py").write_text("")
        for module, source in modules.items():
            (package / f"{module}.py").write_text(textwrap.dedent(source))
        return name, root

    yield make

    for module in list(sys.modules):
        if module.startswith("handlers_"):
            del sys.modules[module]
