"""Available copies per title, derived from the checkouts on every read.

Nothing here is cached: loans change too often for that.
"""

from __future__ import annotations

import logging

from bookcheckout.store import Store

_log = logging.getLogger(__name__)


def available_copies(copies_total: int, active_loans: int) -> int:
    """Return copies left on the shelf, between 0 and `copies_total`.

    >>> available_copies(2, 1), available_copies(2, 2), available_copies(2, 5)
    (1, 0, 0)
    """
    return max(copies_total - max(active_loans, 0), 0)


def get_availability(store: Store, isbn: str) -> int:
    """Return number of available copies for the title with given isbn.

    A title that is not in the catalog has no copies.
    """
    row = store.query_one(
        """
        SELECT
            (SELECT copies_total FROM books WHERE isbn = :isbn) AS copies_total,
            (SELECT COUNT(*) FROM checkouts WHERE isbn = :isbn AND returned = 0) AS active
        """,
        {"isbn": isbn},
    )
    if row["copies_total"] is None:
        _log.debug(f"No title with isbn '{isbn}' in catalog")
        return 0
    copies_total = row["copies_total"]
    available = available_copies(copies_total, row["active"])
    _log.debug(f"Availability of '{isbn}': {available} of {copies_total}")
    return available


def availability_map(store: Store) -> dict[str, int]:
    """Return available copies for all catalog titles, keyed on isbn."""
    rows = store.query(
        """
        SELECT b.isbn, b.copies_total, COUNT(c.id) AS active
        FROM books b
        LEFT JOIN checkouts c ON c.isbn = b.isbn AND c.returned = 0
        GROUP BY b.isbn
        """
    )
    return {row["isbn"]: available_copies(row["copies_total"], row["active"]) for row in rows}
