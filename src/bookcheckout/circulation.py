from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta

from bookcheckout.availability import get_availability
from bookcheckout.catalog import Catalog, clean_isbn, has_isbn
from bookcheckout.const import LOAN_PERIOD_DAYS, MAX_ACTIVE_LOANS
from bookcheckout.errors import CheckoutLimitError, LoanAccessError, NotAvailableError
from bookcheckout.models import Actor, Loan, Title
from bookcheckout.store import Store, from_db, to_db

_log = logging.getLogger(__name__)

_LOAN_COLUMNS = (
    "c.id, c.user_id, c.isbn, c.title, c.author, c.cover_url, c.checkout_date, "
    "c.due_date, c.returned, c.return_date"
)


class Ledger:
    """Checkout events per user and title.

    Returning a loan only flags it as returned, so loan history stays available
    (e.g. for recommendations). Deleting a loan removes it for good, and is meant
    for administrators correcting mistakes.
    """

    def __init__(
        self,
        store: Store,
        catalog: Catalog,
        loan_period_days: int = LOAN_PERIOD_DAYS,
        max_active_loans: int = MAX_ACTIVE_LOANS,
    ):
        self.store = store
        self.catalog = catalog
        self.loan_period = timedelta(days=loan_period_days)
        self.max_active_loans = max_active_loans

    def checkout(self, actor: Actor, title: Title, now: datetime | None = None) -> Loan:
        """Check out a copy of `title` for `actor`.

        The title is first observed into the catalog. Limit and availability
        are verified and the loan is written within a single transaction, so the
        last copy can not be handed out twice.

        Raises:
            ValueError: title has no isbn
            CheckoutLimitError
            NotAvailableError
            StoreUnavailableError
        """
        if not has_isbn(title.isbn):
            raise ValueError(f"Can not check out '{title.title}': no isbn")
        now = (now or datetime.now()).replace(microsecond=0)
        isbn = clean_isbn(title.isbn)
        _log.info(f"Checking out '{title.title}' ({isbn}) for user {actor.id}")

        self.catalog.upsert_title(title, now)
        self.store.remember_user(actor)

        with self.store.transaction():
            active = self._active_count_for_user(actor.id)
            if active >= self.max_active_loans:
                raise CheckoutLimitError(
                    f"You cannot check out more than {self.max_active_loans} book(s) at a "
                    "time. Please return some books first."
                )
            if get_availability(self.store, isbn) <= 0:
                raise NotAvailableError(f"No copies of '{title.title}' ({isbn}) available")
            cursor = self.store.execute(
                "INSERT INTO checkouts "
                "(user_id, isbn, title, author, cover_url, checkout_date, due_date) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    actor.id,
                    isbn,
                    title.title,
                    title.author,
                    title.cover_url,
                    to_db(now),
                    to_db(now + self.loan_period),
                ),
            )

        loan_id = cursor.lastrowid
        _log.info(f"Book checked out: '{title.title}' by user {actor.id} (loan {loan_id})")
        return self.get_loan(loan_id)  # type: ignore

    def return_loan(self, actor: Actor, loan_id: int, now: datetime | None = None) -> Loan:
        """Flag a loan as returned. Owner or administrator only.

        Raises:
            LoanAccessError: loan not found, already returned, or not yours
        """
        now = (now or datetime.now()).replace(microsecond=0)
        _log.info(f"Returning book with loan id: {loan_id}")
        loan = self.get_loan(loan_id)
        if loan is None or (loan.user_id != actor.id and not actor.is_admin):
            raise LoanAccessError(f"Loan {loan_id} not found")
        cursor = self.store.execute(
            "UPDATE checkouts SET returned = 1, return_date = ? WHERE id = ? AND returned = 0",
            (to_db(now), loan_id),
        )
        if cursor.rowcount == 0:
            raise LoanAccessError(f"Loan {loan_id} not found or already returned")
        _log.info(f"Book returned for loan id: {loan_id}")
        return self.get_loan(loan_id)  # type: ignore

    def delete_loan(self, actor: Actor, loan_id: int) -> None:
        """Remove a loan record completely. Administrator only.

        Raises:
            PermissionDeniedError
            LoanAccessError: loan not found
        """
        actor.require_admin("delete checkouts")
        _log.info(f"Deleting loan record: {loan_id}")
        cursor = self.store.execute("DELETE FROM checkouts WHERE id = ?", (loan_id,))
        if cursor.rowcount == 0:
            raise LoanAccessError(f"Loan {loan_id} not found")

    def get_loan(self, loan_id: int) -> Loan | None:
        row = self.store.query_one(
            f"SELECT {_LOAN_COLUMNS} FROM checkouts c WHERE c.id = ?", (loan_id,)
        )
        return _row_to_loan(row) if row is not None else None

    def user_loans(self, user_id: int) -> list[Loan]:
        """Return the latest loan per title for a user, most recent first."""
        rows = self.store.query(
            f"""
            SELECT {_LOAN_COLUMNS} FROM checkouts c
            WHERE c.user_id = :user_id
            AND c.id IN (
                SELECT MAX(id) FROM checkouts WHERE user_id = :user_id GROUP BY isbn
            )
            ORDER BY c.checkout_date DESC, c.id DESC
            """,
            {"user_id": user_id},
        )
        _log.debug(f"Found {len(rows)} unique books for user {user_id}")
        return [_row_to_loan(row) for row in rows]

    def user_history(self, user_id: int) -> list[Loan]:
        """Return all loans of a user, returned or not, oldest first."""
        rows = self.store.query(
            f"SELECT {_LOAN_COLUMNS} FROM checkouts c WHERE c.user_id = ? ORDER BY c.id",
            (user_id,),
        )
        return [_row_to_loan(row) for row in rows]

    def all_loans(self, actor: Actor, search: str = "") -> list[Loan]:
        """Return all loans, most recent first. Administrator only.

        Args:
            search: Optional. Only keep loans where username, title or author
                    contain this text (case-insensitive).
        Raises:
            PermissionDeniedError
        """
        actor.require_admin("list all checkouts")
        sql = (
            f"SELECT {_LOAN_COLUMNS}, COALESCE(u.username, '') AS username "
            "FROM checkouts c LEFT JOIN users u ON c.user_id = u.id"
        )
        params: tuple = ()
        if search and search.strip():
            sql += " WHERE u.username LIKE ? OR c.title LIKE ? OR c.author LIKE ?"
            term = f"%{search.strip()}%"
            params = (term, term, term)
        sql += " ORDER BY c.checkout_date DESC, c.id DESC"
        rows = self.store.query(sql, params)
        _log.debug(f"Found {len(rows)} checkouts for search: '{search}'")
        return [_row_to_loan(row) for row in rows]

    def active_loan_count(self, isbn: str) -> int:
        row = self.store.query_one(
            "SELECT COUNT(*) FROM checkouts WHERE isbn = ? AND returned = 0", (isbn,)
        )
        return row[0]  # type: ignore

    def checkout_counts(self) -> dict[str, int]:
        """Return number of checkouts per isbn, across all users and all time."""
        rows = self.store.query("SELECT isbn, COUNT(*) AS n FROM checkouts GROUP BY isbn")
        return {row["isbn"]: row["n"] for row in rows}

    def _active_count_for_user(self, user_id: int) -> int:
        row = self.store.query_one(
            "SELECT COUNT(*) FROM checkouts WHERE user_id = ? AND returned = 0", (user_id,)
        )
        return row[0]  # type: ignore


def _row_to_loan(row: sqlite3.Row) -> Loan:
    return Loan(
        id=row["id"],
        user_id=row["user_id"],
        isbn=row["isbn"],
        title=row["title"],
        author=row["author"],
        cover_url=row["cover_url"] or "",
        checkout_date=from_db(row["checkout_date"]),
        due_date=from_db(row["due_date"]),
        returned=bool(row["returned"]),
        return_date=from_db(row["return_date"]),
        username=row["username"] if "username" in row.keys() else "",
    )
