"""Build-scoped route registry backed by a SQLite file.

Annotation processing runs once per unit, possibly in separate
processes, so descriptors cannot accumulate in a module global. Every
unit writes into one SQLite file instead; the aggregator reads it back
once collection is over.

Lifecycle:
    - The file is created lazily on the first write
    - Reads of an absent file return nothing (no error, no file created)
    - ``begin_build(full=True)`` is the only destructive clear
    - ``seal()`` is the barrier between collection and aggregation

Concurrency:
    Writers are serialized by SQLite's database lock (``BEGIN IMMEDIATE``)
    across processes, and by a ``threading.Lock`` within one process.
    ``busy_timeout`` bounds how long a writer waits for the lock.
"""

import logging
import sqlite3
import threading
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Final

from autoroute.errors import BuildOrderError, RegistryIOFailure
from autoroute.route import HttpVerb, RouteDescriptor

logger = logging.getLogger("autoroute.registry")


class _AllScopes:
    """Sentinel for ``read_all(ALL)``."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "ALL"


ALL: Final = _AllScopes()

COLLECTING: Final = "collecting"
SEALED: Final = "sealed"

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS routes (
    source_unit TEXT NOT NULL,
    handler_name TEXT NOT NULL,
    scope TEXT NOT NULL,
    path TEXT NOT NULL,
    verb TEXT NOT NULL,
    use_scope_as_path INTEGER NOT NULL DEFAULT 0,
    line INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (source_unit, handler_name)
);
CREATE INDEX IF NOT EXISTS routes_by_scope ON routes (scope, path, verb);
CREATE TABLE IF NOT EXISTS meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

_UPSERT = """\
INSERT INTO routes (source_unit, handler_name, scope, path, verb, use_scope_as_path, line)
VALUES (?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (source_unit, handler_name) DO UPDATE SET
    scope = excluded.scope,
    path = excluded.path,
    verb = excluded.verb,
    use_scope_as_path = excluded.use_scope_as_path,
    line = excluded.line
"""

_SELECT = (
    "SELECT scope, path, handler_name, verb, source_unit, use_scope_as_path, line FROM routes"
)
_ORDER = " ORDER BY scope, path, verb, source_unit, handler_name"


def _params(descriptor: RouteDescriptor) -> tuple[Any, ...]:
    return (
        descriptor.source_unit,
        descriptor.handler_name,
        descriptor.scope,
        descriptor.path,
        descriptor.verb.value,
        int(descriptor.use_scope_as_path),
        descriptor.line,
    )


def _descriptor(row: Sequence[Any]) -> RouteDescriptor:
    scope, path, handler_name, verb, source_unit, use_scope_as_path, line = row
    return RouteDescriptor(
        scope=scope,
        path=path,
        handler_name=handler_name,
        verb=HttpVerb(verb),
        source_unit=source_unit,
        use_scope_as_path=bool(use_scope_as_path),
        line=line,
    )


class RegistryStore:
    """Keyed upsert + full scan over a build-local SQLite file.

    Usage::

        store = RegistryStore(".autoroute/registry-default.sqlite3")
        store.begin_build()
        store.record_unit("app.events", descriptors)   # once per unit, any process
        store.seal()
        routes = store.read_all({"/events"})
    """

    __slots__ = ("_busy_timeout", "_lock", "path")

    def __init__(self, path: str | Path, *, busy_timeout: float = 30.0) -> None:
        self.path = Path(path)
        self._busy_timeout = busy_timeout
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"RegistryStore({str(self.path)!r})"

    # -- connections ------------------------------------------------------

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path, timeout=self._busy_timeout, autocommit=True)
        except (sqlite3.Error, OSError) as exc:
            msg = f"Cannot open registry {self.path}: {exc}"
            raise RegistryIOFailure(msg) from exc
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)
            yield conn
        except sqlite3.Error as exc:
            msg = f"Registry {self.path} is unreadable or unwritable: {exc}"
            raise RegistryIOFailure(msg) from exc
        finally:
            conn.close()

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        """One exclusive write transaction, committed on success."""
        with self._lock, self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def _read(self, sql: str, params: Sequence[Any] = ()) -> list[Any]:
        if not self.path.exists():
            return []
        with self._connect() as conn:
            return conn.execute(sql, params).fetchall()

    @staticmethod
    def _phase(conn: sqlite3.Connection) -> str | None:
        row = conn.execute("SELECT value FROM meta WHERE key = 'phase'").fetchone()
        return row[0] if row else None

    @staticmethod
    def _set_phase(conn: sqlite3.Connection, phase: str) -> None:
        conn.execute(
            "INSERT INTO meta (key, value) VALUES ('phase', ?)"
            " ON CONFLICT (key) DO UPDATE SET value = excluded.value",
            (phase,),
        )

    def _open_for_records(self, conn: sqlite3.Connection) -> None:
        if self._phase(conn) == SEALED:
            msg = (
                f"Registry {self.path} is sealed; begin a new build before "
                "recording more handlers"
            )
            raise BuildOrderError(msg)
        self._set_phase(conn, COLLECTING)

    # -- phase control ----------------------------------------------------

    @property
    def phase(self) -> str | None:
        """``"collecting"``, ``"sealed"``, or None if no build has touched the file."""
        rows = self._read("SELECT value FROM meta WHERE key = 'phase'")
        return rows[0][0] if rows else None

    def begin_build(self, *, full: bool = False) -> None:
        """Open the collection phase.

        Incremental builds keep every recorded descriptor; units that are
        re-processed replace their own rows. ``full=True`` clears the
        registry first.
        """
        with self._write() as conn:
            if full:
                conn.execute("DELETE FROM routes")
            self._set_phase(conn, COLLECTING)
        logger.info("Build started on %s (%s)", self.path, "full" if full else "incremental")

    def seal(self) -> None:
        """Close the collection phase. Aggregation may start after this."""
        with self._write() as conn:
            self._set_phase(conn, SEALED)
        logger.info("Registry %s sealed", self.path)

    # -- writes -----------------------------------------------------------

    def record(self, descriptor: RouteDescriptor) -> None:
        """Insert or replace one descriptor by ``(source_unit, handler_name)``."""
        with self._write() as conn:
            self._open_for_records(conn)
            conn.execute(_UPSERT, _params(descriptor))
        logger.debug("Recorded %s.%s", descriptor.source_unit, descriptor.handler_name)

    def record_unit(self, source_unit: str, descriptors: Iterable[RouteDescriptor]) -> None:
        """Replace everything *source_unit* contributed with *descriptors*.

        One transaction: other units' rows are untouched, and handlers the
        unit no longer declares disappear.
        """
        rows = [_params(d) for d in descriptors]
        for row in rows:
            if row[0] != source_unit:
                msg = f"Descriptor for unit {row[0]!r} passed to record_unit({source_unit!r})"
                raise ValueError(msg)

        with self._write() as conn:
            self._open_for_records(conn)
            conn.execute("DELETE FROM routes WHERE source_unit = ?", (source_unit,))
            conn.executemany(_UPSERT, rows)
        logger.debug("Recorded unit %s (%d handler(s))", source_unit, len(rows))

    def forget_unit(self, source_unit: str) -> int:
        """Drop a unit whose source no longer exists. Returns rows removed."""
        with self._write() as conn:
            self._open_for_records(conn)
            removed = conn.execute(
                "DELETE FROM routes WHERE source_unit = ?", (source_unit,)
            ).rowcount
        if removed:
            logger.warning("Forgot %d handler(s) from removed unit %s", removed, source_unit)
        return removed

    def clear(self) -> None:
        """Delete the backing file. The next write recreates it."""
        with self._lock:
            for suffix in ("", "-wal", "-shm"):
                target = self.path.with_name(self.path.name + suffix)
                try:
                    target.unlink(missing_ok=True)
                except OSError as exc:
                    msg = f"Cannot remove registry file {target}: {exc}"
                    raise RegistryIOFailure(msg) from exc

    # -- reads ------------------------------------------------------------

    def read_all(self, scopes: Iterable[str] | _AllScopes = ALL) -> list[RouteDescriptor]:
        """Descriptors in *scopes* (or all), ordered by ``(scope, path, verb)``.

        Rows are unique per natural key, so the latest write is the only
        one present. Returns ``[]`` when nothing matches or the registry
        does not exist yet.
        """
        if isinstance(scopes, _AllScopes):
            rows = self._read(_SELECT + _ORDER)
        else:
            wanted = sorted(set(scopes))
            if not wanted:
                return []
            marks = ", ".join("?" for _ in wanted)
            rows = self._read(f"{_SELECT} WHERE scope IN ({marks}){_ORDER}", wanted)
        return [_descriptor(row) for row in rows]

    def scopes(self) -> list[str]:
        """Every scope with at least one descriptor, sorted."""
        return [row[0] for row in self._read("SELECT DISTINCT scope FROM routes ORDER BY scope")]

    def units(self) -> list[str]:
        """Every unit with at least one descriptor, sorted."""
        rows = self._read("SELECT DISTINCT source_unit FROM routes ORDER BY source_unit")
        return [row[0] for row in rows]

    def __len__(self) -> int:
        rows = self._read("SELECT COUNT(*) FROM routes")
        return rows[0][0] if rows else 0
