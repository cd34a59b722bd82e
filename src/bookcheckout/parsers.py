from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from bs4 import BeautifulSoup

from bookcheckout.const import NO_ISBN
from bookcheckout.models import Title

_log = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown Author"


class Parser(ABC):
    @abstractmethod
    def parse(self, data: Any, *args, **kwargs) -> Any:
        pass


class VolumesParser(Parser):
    def parse(self, data: dict) -> list[Title]:
        """Return titles from a Google Books `volumes` response.

        >>> data = {"totalItems": 2, "items": [
        ...   {"volumeInfo": {
        ...     "title": "Matilda",
        ...     "authors": ["Roald Dahl", "Quentin Blake"],
        ...     "industryIdentifiers": [
        ...       {"type": "ISBN_10", "identifier": "0142410373"},
        ...       {"type": "ISBN_13", "identifier": "9780142410370"}],
        ...     "description": "<p>A <b>brilliant</b> girl.</p>",
        ...     "imageLinks": {"smallThumbnail": "http://books.google.com/s.jpg"}}},
        ...   {"volumeInfo": {"subtitle": "no title, so skipped"}}]}
        >>> VolumesParser().parse(data) # doctest: +NORMALIZE_WHITESPACE
        [Title(isbn='9780142410370', title='Matilda', author='Roald Dahl, Quentin Blake',
            cover_url='http://books.google.com/s.jpg', description='A brilliant girl.',
            categories=[], copies_total=1, updated_at=None, publisher='',
            published_date='', page_count=0, language='')]
        """
        titles = []
        items = data.get("items") or []
        if not isinstance(items, list):
            raise TypeError(f"Expected list of items, got {type(items).__name__}")

        for item in items:
            info = item.get("volumeInfo") or {}
            if not info.get("title"):
                continue  # skip items without basic info

            image_links = info.get("imageLinks") or {}
            cover_url = image_links.get("thumbnail") or image_links.get("smallThumbnail") or ""

            title = Title(
                isbn=_pick_isbn(info.get("industryIdentifiers") or []),
                title=info["title"],
                author=", ".join(info.get("authors") or [UNKNOWN_AUTHOR]),
                cover_url=cover_url,
                description=_strip_html(info.get("description") or ""),
                categories=list(info.get("categories") or []),
                publisher=info.get("publisher", ""),
                published_date=info.get("publishedDate", ""),
                page_count=info.get("pageCount", 0),
                language=info.get("language", ""),
            )
            _log.debug(f"Parsed: '{title.title}' by {title.author}")
            titles.append(title)

        _log.debug("Number of volumes found: %s", len(titles))
        return titles


def _pick_isbn(identifiers: list[dict]) -> str:
    """Return ISBN-13 if present, else ISBN-10, else the first identifier.

    >>> _pick_isbn([{"type": "OTHER", "identifier": "UOM:39015"}])
    'UOM:39015'
    >>> _pick_isbn([])
    'No ISBN'
    """
    by_type = {i.get("type"): i.get("identifier") for i in identifiers}
    for isbn_type in ("ISBN_13", "ISBN_10"):
        if by_type.get(isbn_type):
            return by_type[isbn_type]
    if identifiers and identifiers[0].get("identifier"):
        return identifiers[0]["identifier"]
    return NO_ISBN


def _strip_html(text: str) -> str:
    # descriptions occasionally carry markup, e.g. <p>, <br> and <b>
    if "<" not in text:
        return text.strip()
    return BeautifulSoup(text, "html.parser").get_text().strip()
