"""Title recommendations for a user.

Candidates are catalog titles the user never borrowed. Each candidate gets a
score from a few signals:

    author match       +30  an earlier loan has the same author
    topic overlap      +15  an earlier loan's title occurs in the candidate's
                            title or description (only if no author match)
    available          +10  at least one copy on the shelf
    popularity         +n   number of checkouts of the candidate, all users

Users without history (or who borrowed everything) get the popular titles
instead, still without the titles they borrowed before.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from bookcheckout.availability import availability_map
from bookcheckout.catalog import Catalog
from bookcheckout.circulation import Ledger
from bookcheckout.const import RECOMMENDATION_LIMIT
from bookcheckout.models import Loan, Recommendations, ScoreSignals, ScoreWeights, Title

_log = logging.getLogger(__name__)

DEFAULT_WEIGHTS = ScoreWeights()

PERSONALIZED = "personalized"
POPULAR = "popular"


def score(signals: ScoreSignals, weights: ScoreWeights = DEFAULT_WEIGHTS) -> int:
    """Return total score for a candidate title.

    >>> score(ScoreSignals(author_match=True, topic_overlap=True, available=True, popularity=2))
    42
    >>> score(ScoreSignals(topic_overlap=True))
    15
    """
    total = signals.popularity
    if signals.author_match:
        total += weights.author_match
    elif signals.topic_overlap:
        total += weights.topic_overlap
    if signals.available:
        total += weights.available
    return total


def signals_for(
    candidate: Title, history: list[Loan], available: int, popularity: int
) -> ScoreSignals:
    author = candidate.author.strip().lower()
    title = candidate.title.strip().lower()
    description = candidate.description.lower()

    author_match = bool(author) and any(
        loan.author.strip().lower() == author for loan in history
    )
    topic_overlap = False
    for loan in history:
        loan_title = loan.title.strip().lower()
        if not loan_title or loan_title == title:
            continue
        if loan_title in title or loan_title in description:
            topic_overlap = True
            break

    return ScoreSignals(
        author_match=author_match,
        topic_overlap=topic_overlap,
        available=available > 0,
        popularity=popularity,
    )


def recommend(
    catalog: Catalog,
    ledger: Ledger,
    user_id: int,
    limit: int = RECOMMENDATION_LIMIT,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> Recommendations:
    """Return up to `limit` titles for the user, best first.

    Falls back to `popular_titles()` (with mode "popular") when the user has
    no loans, or when no candidate titles remain. Titles the user borrowed are
    never returned, in either mode. Unknown users simply have no loans.
    """
    history = ledger.user_history(user_id)
    borrowed = {loan.isbn for loan in history}
    _log.debug(f"User {user_id} has {len(history)} loans of {len(borrowed)} titles")

    scored: list[tuple[int, datetime, Title]] = []
    if history:
        popularity = ledger.checkout_counts()
        available = availability_map(catalog.store)
        for candidate in catalog.list_titles():
            if candidate.isbn in borrowed:
                continue
            signals = signals_for(
                candidate,
                history,
                available.get(candidate.isbn, 0),
                popularity.get(candidate.isbn, 0),
            )
            scored.append((score(signals, weights), _updated(candidate), candidate))

    if not scored:
        _log.info(f"No personalized recommendations for user {user_id}, using popular titles")
        return Recommendations(
            mode=POPULAR, titles=popular_titles(catalog, ledger, limit, exclude=borrowed)
        )

    scored.sort(key=lambda item: (item[0], item[1]), reverse=True)
    return Recommendations(mode=PERSONALIZED, titles=[t for _s, _u, t in scored[:limit]])


def popular_titles(
    catalog: Catalog,
    ledger: Ledger,
    limit: int = RECOMMENDATION_LIMIT,
    exclude: Iterable[str] = (),
) -> list[Title]:
    """Return titles with most checkouts first, newest catalog entry first on ties.

    Titles with an isbn in `exclude` are left out.
    """
    counts = ledger.checkout_counts()
    excluded = set(exclude)
    titles = [t for t in catalog.list_titles() if t.isbn not in excluded]
    titles.sort(key=lambda t: (counts.get(t.isbn, 0), _updated(t)), reverse=True)
    return titles[:limit]


def _updated(title: Title) -> datetime:
    return title.updated_at or datetime.min
