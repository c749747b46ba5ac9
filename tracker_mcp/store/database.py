"""SQLite store handle with explicit lifecycle and atomic units of work."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, NoReturn

from tracker_mcp.errors import ConcurrencyTimeout, StoreUnavailable, TrackerError, ValidationFailure
from tracker_mcp.store.schema import SCHEMA_SQL

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# sqlite3 error texts that mean the database itself can no longer be used
_FATAL_MARKERS = (
    "unable to open",
    "disk i/o",
    "malformed",
    "readonly",
    "database or disk is full",
    "closed database",
    "not a database",
)


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a datetime as the sortable UTC text stored in the database."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse stored or caller-supplied ISO 8601 text; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise ValidationFailure(f"Invalid timestamp '{value}': expected ISO 8601") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class Database:
    """
    Handle on one tracker database file.

    Open with ``Database.open(path)`` and release with ``close()``. Every engine
    component is given the handle explicitly. ``transaction()`` groups writes
    into one all-or-nothing unit; nested units become savepoints of the
    enclosing one.
    """

    def __init__(self, conn: sqlite3.Connection, path: Path | str, busy_timeout_ms: int, clock: Clock) -> None:
        self._conn: sqlite3.Connection | None = conn
        self.path = path
        self.busy_timeout_ms = busy_timeout_ms
        self._clock = clock
        self._lock = threading.RLock()
        self._depth = 0

    @classmethod
    def open(
        cls,
        path: Path | str,
        *,
        busy_timeout_ms: int = 5000,
        clock: Clock | None = None,
    ) -> Database:
        """
        Open (creating if needed) the database at ``path`` and apply the schema.

        Raises:
            StoreUnavailable: the file cannot be opened or initialised
        """
        try:
            conn = sqlite3.connect(
                str(path),
                timeout=busy_timeout_ms / 1000,
                isolation_level=None,
                check_same_thread=False,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")
            conn.execute("PRAGMA synchronous = NORMAL")
            conn.executescript(SCHEMA_SQL)
        except sqlite3.Error as e:
            logger.error("Cannot open tracker database at %s: %s", path, e)
            raise StoreUnavailable(f"Cannot open tracker database at {path}: {e}") from e

        logger.info("Opened tracker database at %s", path)
        return cls(conn, path, busy_timeout_ms, clock or utc_now)

    def close(self) -> None:
        """Close the underlying connection. Safe to call more than once."""
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        logger.info("Closed tracker database at %s", self.path)

    @property
    def closed(self) -> bool:
        return self._conn is None

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        """Current wall-clock time (UTC) according to the injected clock."""
        return parse_timestamp(self._clock())

    def timestamp(self) -> str:
        """Current time formatted for storage."""
        return format_timestamp(self._clock())

    # ------------------------------------------------------------------
    # Units of work
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run the enclosed block as one atomic unit.

        The outermost unit takes the write lock with ``BEGIN IMMEDIATE``, waiting
        at most ``busy_timeout_ms`` before raising ``ConcurrencyTimeout``.
        Any exception rolls the whole unit back and propagates.
        """
        with self._lock:
            conn = self._require_open()
            if self._depth:
                yield from self._savepoint(conn)
                return

            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                self._raise_translated(e)

            self._depth = 1
            try:
                yield conn
            except BaseException:
                self._rollback(conn)
                raise
            else:
                try:
                    conn.execute("COMMIT")
                except sqlite3.Error as e:
                    self._rollback(conn)
                    self._raise_translated(e)
            finally:
                self._depth = 0

    def _savepoint(self, conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
        name = f"unit_{self._depth}"
        conn.execute(f"SAVEPOINT {name}")
        self._depth += 1
        try:
            yield conn
        except BaseException:
            conn.execute(f"ROLLBACK TO {name}")
            conn.execute(f"RELEASE {name}")
            raise
        else:
            conn.execute(f"RELEASE {name}")
        finally:
            self._depth -= 1

    def _rollback(self, conn: sqlite3.Connection) -> None:
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        """Execute one statement, translating sqlite3 failures into tracker errors."""
        with self._lock:
            conn = self._require_open()
            try:
                return conn.execute(sql, tuple(params))
            except sqlite3.Error as e:
                self._raise_translated(e)

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Row | None:
        # Drain the cursor so RETURNING statements are finalised before COMMIT.
        rows = self.execute(sql, params).fetchall()
        return rows[0] if rows else None

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def _require_open(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreUnavailable(f"Tracker database at {self.path} is closed")
        return self._conn

    def _raise_translated(self, error: sqlite3.Error) -> NoReturn:
        translated = self._translate(error)
        if translated is None:
            raise error
        raise translated from error

    def _translate(self, error: sqlite3.Error) -> TrackerError | None:
        message = str(error).lower()
        if isinstance(error, sqlite3.IntegrityError):
            return ValidationFailure(f"Constraint violated: {error}")
        if "locked" in message or "busy" in message:
            return ConcurrencyTimeout(f"Write lock not acquired within {self.busy_timeout_ms} ms")
        if isinstance(error, sqlite3.ProgrammingError) or any(m in message for m in _FATAL_MARKERS):
            logger.error("Tracker database at %s is unavailable: %s", self.path, error)
            return StoreUnavailable(f"Tracker database unavailable: {error}")
        return None
