"""Thread-safe access to the SQLite database that holds jobs and products."""

from __future__ import annotations

import re
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .config import DatabaseConfig

_PLACEHOLDER = re.compile(r"\$(\d+)")


class DatabaseError(Exception):
    """Raised when the database cannot be opened or a statement fails."""


def _adapt(value: Any) -> Any:
    """Turn enums and datetimes into values SQLite stores and compares well."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")
    return value


class Database:
    """A single SQLite connection shared safely between threads.

    Statements use numbered ``$1``, ``$2`` ... placeholders. Enum arguments are
    stored as their values and datetimes as fixed-width UTC ISO strings.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        connection.isolation_level = None
        self._conn = connection
        self._lock = threading.RLock()
        self._in_transaction = False

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection."""
        with self._lock:
            self._conn.close()

    def health(self) -> None:
        """Raise DatabaseError if the database does not answer."""
        self.query_row("SELECT 1")

    @contextmanager
    def transaction(self) -> Iterator[Database]:
        """Run the block in a transaction: commit on success, roll back on error.

        A transaction opened inside another one joins the outer transaction.
        """
        with self._lock:
            if self._in_transaction:
                yield self
                return
            self._run("BEGIN", ())
            self._in_transaction = True
            try:
                yield self
            except BaseException:
                self._in_transaction = False
                self._run("ROLLBACK", ())
                raise
            self._in_transaction = False
            self._run("COMMIT", ())

    def execute(self, query: str, *args: Any) -> int:
        """Run a statement and return the number of rows it changed."""
        with self._lock:
            return self._run(query, args).rowcount

    def query(self, query: str, *args: Any) -> list[tuple[Any, ...]]:
        """Run a query and return all its rows."""
        with self._lock:
            cursor = self._run(query, args)
            try:
                return cursor.fetchall()
            except sqlite3.Error as err:
                raise DatabaseError(str(err)) from err

    def query_row(self, query: str, *args: Any) -> tuple[Any, ...] | None:
        """Run a query and return its first row, or None if there is none."""
        with self._lock:
            cursor = self._run(query, args)
            try:
                return cursor.fetchone()
            except sqlite3.Error as err:
                raise DatabaseError(str(err)) from err

    def _run(self, query: str, args: tuple[Any, ...]) -> sqlite3.Cursor:
        sql = _PLACEHOLDER.sub(r"?\1", query)
        params = tuple(_adapt(arg) for arg in args)
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as err:
            raise DatabaseError(str(err)) from err


def connect(config: DatabaseConfig) -> Database:
    """Open the database file named by ``config.name`` and check that it answers."""
    try:
        connection = sqlite3.connect(
            config.name, check_same_thread=False, isolation_level=None
        )
    except sqlite3.Error as err:
        raise DatabaseError(f"failed to open database: {err}") from err

    database = Database(connection)
    try:
        database.health()
    except DatabaseError as err:
        database.close()
        raise DatabaseError(f"failed to ping database: {err}") from err
    return database