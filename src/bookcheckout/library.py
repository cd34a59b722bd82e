"""Facade for the book checkout system.

For usage of this module, see the examples folder and the docstrings
in the Library class and its public methods.
"""

from __future__ import annotations

import logging
from datetime import datetime

from bookcheckout.availability import get_availability
from bookcheckout.catalog import Catalog, clean_isbn
from bookcheckout.circulation import Ledger
from bookcheckout.const import LOAN_PERIOD_DAYS, MAX_ACTIVE_LOANS
from bookcheckout.google_books import GoogleBooks
from bookcheckout.models import Actor, Loan, Recommendations, Title
from bookcheckout.recommendations import recommend
from bookcheckout.store import Store

_log = logging.getLogger(__name__)


class Library:
    def __init__(
        self,
        db_path: str = ":memory:",
        enrichment: GoogleBooks | None = None,
        loan_period_days: int = LOAN_PERIOD_DAYS,
        max_active_loans: int = MAX_ACTIVE_LOANS,
    ):
        """Local catalog, checkouts and recommendations.

        Args:
            db_path   : Path of the SQLite database file; created if missing.
            enrichment: Optional. Client to look up book metadata; a default
                        `GoogleBooks` client is used if not given.
            loan_period_days: Optional. Days until a loan is due.
            max_active_loans: Optional. Loans a user can hold at the same time.
        Raises:
            StoreUnavailableError
        """
        _log.debug(f"Initializing library with database '{db_path}'")
        self.store = Store(db_path)
        self.catalog = Catalog(self.store)
        self.ledger = Ledger(self.store, self.catalog, loan_period_days, max_active_loans)
        self.enrichment = enrichment if enrichment is not None else GoogleBooks()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # *** PUBLIC METHODS ***

    def get_availability(self, isbn: str) -> int:
        """Return number of copies of a title that can be checked out."""
        return get_availability(self.store, clean_isbn(isbn))

    def get_recommendations(self, user: Actor | int) -> Recommendations:
        """Return up to 10 titles for the user.

        The `mode` of the result tells if titles are based on the user's loan
        history ("personalized") or on overall checkouts ("popular").
        """
        user_id = user.id if isinstance(user, Actor) else user
        _log.info(f"Retrieving recommendations for user: {user_id}")
        return recommend(self.catalog, self.ledger, user_id)

    def upsert_title(self, title: Title, now: datetime | None = None) -> None:
        """Merge title into the catalog; titles without isbn are ignored."""
        self.catalog.upsert_title(title, now)

    def search(self, query: str) -> list[tuple[Title, int]]:
        """Search enrichment source, and return (title, available copies) pairs.

        Every result with an isbn is observed into the local catalog. When the
        enrichment source can not be reached, the result is empty.

        Raises:
            StoreUnavailableError
        """
        results = []
        for title in self.enrichment.search(query):
            self.catalog.upsert_title(title)
            results.append((title, self.get_availability(title.isbn)))
        return results

    def lookup(self, isbn: str) -> Title | None:
        """Look up title by isbn via the enrichment source, observing it if found.

        Returns the stored catalog entry, so copies and `updated_at` are filled in.
        Falls back to the local catalog entry when the source has no data.
        """
        title = self.enrichment.lookup(isbn)
        if title is None:
            return self.catalog.get_title(isbn)
        if not self.catalog.upsert_title(title):
            return title
        return self.catalog.get_title(title.isbn)

    def checkout(self, actor: Actor, title: Title | str, now: datetime | None = None) -> Loan:
        """Check out a title for actor. A plain isbn is looked up first.

        Raises:
            ValueError: unknown isbn, or title without isbn
            CheckoutLimitError
            NotAvailableError
            StoreUnavailableError
        """
        if isinstance(title, str):
            found = self.lookup(title)
            if found is None:
                raise ValueError(f"No title found for isbn '{title}'")
            title = found
        return self.ledger.checkout(actor, title, now)

    def return_loan(self, actor: Actor, loan_id: int, now: datetime | None = None) -> Loan:
        """Mark loan as returned.

        Raises:
            LoanAccessError
        """
        return self.ledger.return_loan(actor, loan_id, now)

    def delete_loan(self, actor: Actor, loan_id: int) -> None:
        """Delete loan record. Administrator only.

        Raises:
            PermissionDeniedError
            LoanAccessError
        """
        self.ledger.delete_loan(actor, loan_id)

    def my_loans(self, actor: Actor) -> list[Loan]:
        return self.ledger.user_loans(actor.id)

    def all_loans(self, actor: Actor, search: str = "") -> list[Loan]:
        """Return all loans, optionally filtered. Administrator only.

        Raises:
            PermissionDeniedError
        """
        return self.ledger.all_loans(actor, search)

    def set_copies_total(self, actor: Actor, isbn: str, copies: int) -> Title:
        """Set number of copies of a title. Administrator only.

        Raises:
            PermissionDeniedError
            ValueError
        """
        return self.catalog.set_copies_total(actor, isbn, copies)

    def close(self) -> None:
        self.store.close()
