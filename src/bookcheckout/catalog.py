from __future__ import annotations

import json
import logging
import re
import sqlite3
from datetime import datetime

from bookcheckout.const import NO_ISBN
from bookcheckout.models import Actor, Title
from bookcheckout.store import Store, from_db, to_db

_log = logging.getLogger(__name__)

_ISBN10_RE = re.compile(r"^\d{9}[\dXx]$")
_ISBN13_RE = re.compile(r"^\d{13}$")


def clean_isbn(isbn: str) -> str:
    """Return isbn without dashes and spaces.

    >>> clean_isbn("978-0-14-241037 0")
    '9780142410370'
    """
    return re.sub(r"[-\s]", "", isbn or "")


def is_valid_isbn(isbn: str) -> bool:
    """Return True for an ISBN-10 or ISBN-13 shaped identifier.

    >>> is_valid_isbn("0-14-241037-3"), is_valid_isbn("080442957X"), is_valid_isbn("12345")
    (True, True, False)
    """
    isbn = clean_isbn(isbn)
    return bool(_ISBN10_RE.match(isbn) or _ISBN13_RE.match(isbn))


def has_isbn(isbn: str | None) -> bool:
    return bool(isbn and isbn.strip() not in ("", NO_ISBN))


class Catalog:
    """Local record of known titles, keyed on isbn."""

    def __init__(self, store: Store):
        self.store = store

    def upsert_title(self, title: Title, now: datetime | None = None) -> bool:
        """Merge an observed title into the catalog. Return False if ignored.

        Title, author and cover always take the observed value. Description and
        categories only do so when the observed value is non-empty; otherwise the
        stored value is kept. The number of copies of a known title is never
        touched here. A stored title is only written (and its `updated_at`
        moved) when the observed values actually change it.

        Titles without isbn (empty, or the "No ISBN" placeholder) are ignored.
        """
        if not has_isbn(title.isbn):
            _log.debug(f"Ignoring title without isbn: '{title.title}'")
            return False
        now = now or datetime.now()
        isbn = clean_isbn(title.isbn)
        cursor = self.store.execute(
            """
            INSERT INTO books
                (isbn, title, author, cover_url, description, categories, copies_total, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(isbn) DO UPDATE SET
                title = excluded.title,
                author = excluded.author,
                cover_url = excluded.cover_url,
                description = CASE WHEN excluded.description != ''
                              THEN excluded.description ELSE books.description END,
                categories = CASE WHEN excluded.categories != '[]'
                             THEN excluded.categories ELSE books.categories END,
                updated_at = excluded.updated_at
            WHERE excluded.title != books.title
                OR excluded.author != books.author
                OR excluded.cover_url != books.cover_url
                OR (excluded.description != '' AND excluded.description != books.description)
                OR (excluded.categories != '[]' AND excluded.categories != books.categories)
            """,
            (
                isbn,
                title.title,
                title.author,
                title.cover_url or "",
                title.description or "",
                json.dumps(title.categories or []),
                max(title.copies_total, 1),
                to_db(now),
            ),
        )
        if cursor.rowcount == 0:
            _log.debug(f"Title '{title.title}' ({isbn}) unchanged")
        else:
            _log.debug(f"Observed title '{title.title}' ({isbn})")
        return True

    def get_title(self, isbn: str) -> Title | None:
        row = self.store.query_one("SELECT * FROM books WHERE isbn = ?", (clean_isbn(isbn),))
        return _row_to_title(row) if row is not None else None

    def list_titles(self) -> list[Title]:
        rows = self.store.query("SELECT * FROM books ORDER BY updated_at DESC, id DESC")
        return [_row_to_title(row) for row in rows]

    def set_copies_total(self, actor: Actor, isbn: str, copies: int) -> Title:
        """Set number of copies the library owns of a title. Admin only.

        Raises:
            PermissionDeniedError
            ValueError: copies below 1, or title unknown
        """
        actor.require_admin("change the number of copies")
        if copies < 1:
            raise ValueError(f"A title needs at least 1 copy, got {copies}")
        cursor = self.store.execute(
            "UPDATE books SET copies_total = ? WHERE isbn = ?", (copies, isbn)
        )
        if cursor.rowcount == 0:
            raise ValueError(f"Unknown title with isbn '{isbn}'")
        _log.info(f"Copies of '{isbn}' set to {copies} by user {actor.id}")
        return self.get_title(isbn)  # type: ignore


def _row_to_title(row: sqlite3.Row) -> Title:
    return Title(
        isbn=row["isbn"],
        title=row["title"],
        author=row["author"],
        cover_url=row["cover_url"] or "",
        description=row["description"] or "",
        categories=json.loads(row["categories"] or "[]"),
        copies_total=row["copies_total"],
        updated_at=from_db(row["updated_at"]),
    )
