"""Tests for autoroute.registry — the build-scoped SQLite store."""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from autoroute.errors import BuildOrderError, RegistryIOFailure
from autoroute.registry import ALL, COLLECTING, SEALED, RegistryStore
from autoroute.route import HttpVerb, RouteDescriptor


def _d(
    handler_name: str = "search",
    path: str = "/search",
    verb: HttpVerb = HttpVerb.GET,
    scope: str = "/events",
    source_unit: str = "app.events",
    **kwargs: object,
) -> RouteDescriptor:
    return RouteDescriptor(
        scope=scope,
        path=path,
        handler_name=handler_name,
        verb=verb,
        source_unit=source_unit,
        **kwargs,  # type: ignore[arg-type]
    )


SEARCH = _d()
CREATE = _d("create", "/create", HttpVerb.POST)


class TestLifecycle:
    def test_absent_store_reads_empty(self, store: RegistryStore) -> None:
        assert store.read_all() == []
        assert store.read_all({"/events"}) == []
        assert store.phase is None
        assert len(store) == 0

    def test_read_does_not_create_file(self, store: RegistryStore) -> None:
        store.read_all()
        assert not store.path.exists()

    def test_created_lazily_on_first_write(self, store: RegistryStore) -> None:
        store.record(SEARCH)
        assert store.path.exists()
        assert store.phase == COLLECTING

    def test_seal(self, store: RegistryStore) -> None:
        store.begin_build()
        store.seal()
        assert store.phase == SEALED

    def test_record_after_seal_fails(self, store: RegistryStore) -> None:
        store.record(SEARCH)
        store.seal()
        with pytest.raises(BuildOrderError):
            store.record(CREATE)
        with pytest.raises(BuildOrderError):
            store.record_unit("app.events", [CREATE])
        assert store.read_all() == [SEARCH]

    def test_incremental_begin_keeps_rows(self, store: RegistryStore) -> None:
        store.record(SEARCH)
        store.seal()
        store.begin_build()
        assert store.phase == COLLECTING
        assert store.read_all() == [SEARCH]

    def test_full_begin_clears(self, store: RegistryStore) -> None:
        store.record(SEARCH)
        store.seal()
        store.begin_build(full=True)
        assert store.read_all() == []

    def test_clear_removes_file(self, store: RegistryStore) -> None:
        store.record(SEARCH)
        store.clear()
        assert not store.path.exists()
        assert store.read_all() == []

    def test_clear_absent_is_noop(self, store: RegistryStore) -> None:
        store.clear()
        assert not store.path.exists()


class TestRecord:
    def test_idempotent(self, store: RegistryStore) -> None:
        store.record(SEARCH)
        store.record(SEARCH)
        assert store.read_all() == [SEARCH]

    def test_latest_write_wins(self, store: RegistryStore) -> None:
        store.record(SEARCH)
        moved = _d(path="/find", verb=HttpVerb.POST)
        store.record(moved)
        assert store.read_all() == [moved]

    def test_round_trips_fields(self, store: RegistryStore) -> None:
        full = _d(use_scope_as_path=True, line=42)
        store.record(full)
        (back,) = store.read_all()
        assert back == full
        assert back.verb is HttpVerb.GET

    def test_same_name_different_units(self, store: RegistryStore) -> None:
        other = _d(source_unit="app.other")
        store.record(SEARCH)
        store.record(other)
        assert len(store.read_all()) == 2


class TestRecordUnit:
    def test_replaces_only_that_unit(self, store: RegistryStore) -> None:
        users = _d("list_users", "/", scope="/users", source_unit="app.users")
        store.record_unit("app.events", [SEARCH, CREATE])
        store.record_unit("app.users", [users])

        renamed = _d("lookup", "/lookup")
        store.record_unit("app.events", [renamed])

        assert store.read_all() == [renamed, users]

    def test_empty_unit_removes_its_rows(self, store: RegistryStore) -> None:
        store.record_unit("app.events", [SEARCH, CREATE])
        store.record_unit("app.events", [])
        assert store.read_all() == []

    def test_repeated_rebuild_does_not_grow(self, store: RegistryStore) -> None:
        for _ in range(5):
            store.record_unit("app.events", [SEARCH, CREATE])
        assert len(store) == 2

    def test_rejects_foreign_descriptor(self, store: RegistryStore) -> None:
        with pytest.raises(ValueError):
            store.record_unit("app.users", [SEARCH])

    def test_forget_unit(self, store: RegistryStore) -> None:
        store.record_unit("app.events", [SEARCH, CREATE])
        assert store.forget_unit("app.events") == 2
        assert store.units() == []


class TestReadAll:
    def test_ordered_by_scope_path_verb(self, store: RegistryStore) -> None:
        rows = [
            _d("b_post", "/b", HttpVerb.POST, source_unit="u1"),
            _d("z", "/a", HttpVerb.GET, scope="/zeta", source_unit="u1"),
            _d("b_get", "/b", HttpVerb.GET, source_unit="u2"),
            _d("a", "/a", HttpVerb.PUT, source_unit="u2"),
        ]
        for row in rows:
            store.record(row)

        result = store.read_all()
        assert [(d.scope, d.path, d.verb.value) for d in result] == [
            ("/events", "/a", "PUT"),
            ("/events", "/b", "GET"),
            ("/events", "/b", "POST"),
            ("/zeta", "/a", "GET"),
        ]

    def test_deterministic(self, store: RegistryStore) -> None:
        store.record(CREATE)
        store.record(SEARCH)
        assert store.read_all() == store.read_all() == [CREATE, SEARCH]

    def test_order_independent_of_insertion(self, tmp_path: Path) -> None:
        first = RegistryStore(tmp_path / "a.sqlite3")
        second = RegistryStore(tmp_path / "b.sqlite3")
        for d in (SEARCH, CREATE):
            first.record(d)
        for d in (CREATE, SEARCH):
            second.record(d)
        assert first.read_all() == second.read_all()

    def test_filter_by_scope(self, store: RegistryStore) -> None:
        users = _d("list_users", "/", scope="/users", source_unit="app.users")
        store.record(SEARCH)
        store.record(users)
        assert store.read_all({"/users"}) == [users]
        assert store.read_all(["/events", "/users"]) == [SEARCH, users]
        assert store.read_all(ALL) == [SEARCH, users]

    def test_unknown_scope_reads_empty(self, store: RegistryStore) -> None:
        store.record(SEARCH)
        assert store.read_all({"/missing"}) == []

    def test_empty_request_reads_empty(self, store: RegistryStore) -> None:
        store.record(SEARCH)
        assert store.read_all(set()) == []

    def test_scopes_and_units(self, store: RegistryStore) -> None:
        store.record(SEARCH)
        store.record(_d("u", "/", scope="/users", source_unit="app.users"))
        assert store.scopes() == ["/events", "/users"]
        assert store.units() == ["app.events", "app.users"]


class TestConcurrency:
    def test_parallel_units_all_recorded(self, store: RegistryStore) -> None:
        store.begin_build()
        units = [f"app.unit{i}" for i in range(16)]

        def write(unit: str) -> None:
            RegistryStore(store.path).record_unit(
                unit,
                [_d(f"h{j}", f"/p{j}", source_unit=unit) for j in range(3)],
            )

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(write, units))

        assert store.units() == sorted(units)
        assert len(store) == 48

    def test_shared_instance_parallel_records(self, store: RegistryStore) -> None:
        store.begin_build()

        def write(i: int) -> None:
            store.record(_d(f"h{i}", f"/p{i:02d}"))

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(write, range(20)))

        assert len(store.read_all()) == 20


class TestIOFailure:
    def test_unwritable_location(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        store = RegistryStore(blocker / "registry.sqlite3")
        with pytest.raises(RegistryIOFailure):
            store.record(SEARCH)

    def test_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "registry.sqlite3"
        path.write_bytes(b"this is not a sqlite database" * 100)
        with pytest.raises(RegistryIOFailure):
            RegistryStore(path).read_all()
