"""Main dataclasses.

The properties of the classes mirror the columns of the local database,
rather than the (much richer) volume information of the enrichment api."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from bookcheckout.errors import PermissionDeniedError


class Role(Enum):
    STUDENT = "student"
    ADMIN = "admin"


@dataclass
class Actor:
    """The user on whose behalf an operation is performed.

    Passed explicitly to every operation that depends on who is asking.
    """

    id: int
    role: Role = Role.STUDENT
    username: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require_admin(self, action: str) -> None:
        """Raise PermissionDeniedError if actor is not an administrator."""
        if not self.is_admin:
            raise PermissionDeniedError(f"Only administrators can {action} (user {self.id})")


@dataclass
class Title:
    """A Title object represents a catalog entry, identified by its isbn.

    The `isbn` is the only identity; the same title observed again (via search
    or checkout) is merged into the existing entry.
    """

    isbn: str
    title: str = ""
    author: str = ""
    cover_url: str = ""
    description: str = ""
    categories: list[str] = field(default_factory=list)
    copies_total: int = 1
    updated_at: datetime | None = None
    # only known when freshly retrieved from the enrichment api, not persisted
    publisher: str = ""
    published_date: str = ""
    page_count: int = 0
    language: str = ""


@dataclass
class Loan:
    """A Loan object represents one user borrowing one title.

    Title, author and cover are a snapshot taken at checkout, so the loan still
    displays fine after the catalog entry changes. The `due_date` is fixed at
    checkout and never recomputed.
    """

    id: int
    user_id: int
    isbn: str
    title: str = ""
    author: str = ""
    cover_url: str = ""
    checkout_date: datetime | None = None
    due_date: datetime | None = None
    returned: bool = False
    return_date: datetime | None = None  # only set when returned
    username: str = ""  # only filled in for admin listings

    def days_until_due(self, now: datetime | None = None) -> int:
        """Return days until due date; negative if overdue."""
        if self.due_date is None:
            raise ValueError(f"Loan {self.id} has no due date")
        now = now or datetime.now()
        return math.ceil((self.due_date - now).total_seconds() / 86400)

    def status_text(self, now: datetime | None = None) -> str:
        if self.returned:
            return "Returned"
        days = self.days_until_due(now)
        if days < 0:
            return f"Overdue by {abs(days)} days!"
        elif days == 0:
            return "Due today!"
        elif days == 1:
            return "Due tomorrow"
        else:
            return f"Due in {days} days"


@dataclass
class ScoreSignals:
    author_match: bool = False
    topic_overlap: bool = False
    available: bool = False
    popularity: int = 0  # checkouts of the title, across all users


@dataclass
class ScoreWeights:
    author_match: int = 30
    topic_overlap: int = 15
    available: int = 10


@dataclass
class Recommendations:
    """Ranked titles for a user.

    `mode` is "personalized" when the ranking is based on the user's loan
    history, or "popular" for the fallback ranking on checkout counts.
    """

    mode: str
    titles: list[Title] = field(default_factory=list)
