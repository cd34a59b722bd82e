"""Embedded SQLite store shared by the catalog and the circulation ledger.

One connection, statements executed one after the other. The connection runs
in autocommit mode; `transaction()` opens an explicit `BEGIN IMMEDIATE` for
the few read-then-write sequences that must not interleave.
"""

from __future__ import annotations

import contextlib
import logging
import sqlite3
from datetime import datetime

from bookcheckout.const import TIMESTAMP_FORMAT
from bookcheckout.errors import StoreUnavailableError
from bookcheckout.models import Actor

_log = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    username TEXT NOT NULL,
    user_type TEXT DEFAULT 'student'
);
CREATE TABLE IF NOT EXISTS books (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    isbn TEXT UNIQUE NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    author TEXT NOT NULL DEFAULT '',
    cover_url TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    categories TEXT NOT NULL DEFAULT '[]',
    copies_total INTEGER NOT NULL DEFAULT 1 CHECK (copies_total >= 1),
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS checkouts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    isbn TEXT NOT NULL,
    title TEXT NOT NULL,
    author TEXT NOT NULL,
    cover_url TEXT,
    checkout_date DATETIME NOT NULL,
    due_date DATETIME NOT NULL,
    returned BOOLEAN NOT NULL DEFAULT 0,
    return_date DATETIME
);
CREATE INDEX IF NOT EXISTS idx_checkouts_isbn ON checkouts (isbn, returned);
CREATE INDEX IF NOT EXISTS idx_checkouts_user ON checkouts (user_id);
"""


def to_db(dt: datetime | None) -> str | None:
    return dt.strftime(TIMESTAMP_FORMAT) if dt is not None else None


def from_db(value: str | None) -> datetime | None:
    return datetime.strptime(value, TIMESTAMP_FORMAT) if value else None


class Store:
    def __init__(self, path: str = ":memory:"):
        """Open (and create if needed) the database at `path`.

        Raises:
            StoreUnavailableError
        """
        _log.debug(f"Opening database '{path}' ... ")
        self.path = path
        try:
            self._conn = sqlite3.connect(path, isolation_level=None)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Can not open database '{path}' ({e!s})") from e
        try:
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            self._conn.close()
            raise StoreUnavailableError(f"Can not open database '{path}' ({e!s})") from e
        _log.debug("Database ready")

    def execute(self, sql: str, params: tuple | dict = ()) -> sqlite3.Cursor:
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Database statement failed ({e!s})") from e

    def query(self, sql: str, params: tuple | dict = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def query_one(self, sql: str, params: tuple | dict = ()) -> sqlite3.Row | None:
        return self.execute(sql, params).fetchone()

    @contextlib.contextmanager
    def transaction(self):
        """Run the enclosed statements atomically, holding the write lock."""
        self.execute("BEGIN IMMEDIATE")
        try:
            yield self
        except BaseException:
            self.execute("ROLLBACK")
            raise
        else:
            self.execute("COMMIT")

    def remember_user(self, actor: Actor) -> None:
        """Record the actor's display name, used in admin listings."""
        if not actor.username:
            return
        self.execute(
            "INSERT INTO users (id, username, user_type) VALUES (?, ?, ?) "
            "ON CONFLICT(id) DO UPDATE SET username = excluded.username, "
            "user_type = excluded.user_type",
            (actor.id, actor.username, actor.role.value),
        )

    def close(self) -> None:
        _log.debug(f"Closing database '{self.path}'")
        self._conn.close()
