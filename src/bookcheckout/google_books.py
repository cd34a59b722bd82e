"""Client for the Google Books volumes api, used to enrich the local catalog.

Enrichment is best effort: when the api can not be reached, answers with an
error, or returns something unexpected, the public methods log a warning and
return no data (an empty list or None).
"""

from __future__ import annotations

import dataclasses
import functools
import json
import logging

import requests

from bookcheckout.catalog import clean_isbn
from bookcheckout.const import GOOGLE_BOOKS_URL, TIMEOUT, USER_AGENT
from bookcheckout.errors import IncompatibleSourceError
from bookcheckout.models import Title
from bookcheckout.parsers import VolumesParser

_log = logging.getLogger(__name__)


class GoogleBooks:
    def __init__(self, api_key: str | None = None, url: str = GOOGLE_BOOKS_URL):
        """API for looking up book metadata.

        Args:
            api_key:    Optional. Google api key; anonymous use works, but
                        with a lower quota.
            url     :   Optional. Volumes endpoint.
        """
        self._api_key = api_key
        self.url = url

        self._ses = requests.Session()
        self._ses.request = functools.partial(self._ses.request, timeout=TIMEOUT)  # type: ignore
        self._ses.headers.update({"User-Agent": USER_AGENT})

        self._volumes_parser = VolumesParser()

    # *** PUBLIC METHODS ***

    def search(self, query: str, max_results: int = 15) -> list[Title]:
        """Return titles matching free-text query. Empty list on any failure."""
        query = (query or "").strip()
        if not query:
            _log.debug("Empty search query")
            return []

        _log.info(f"Searching books for: '{query}'")
        params = {"q": query, "maxResults": max_results, "printType": "books"}
        try:
            titles = self._get_volumes(params)
        except (requests.RequestException, IncompatibleSourceError) as e:
            _log.warning(f"Book search failed, continuing without enrichment: {e}")
            return []
        _log.info(f"Found {len(titles)} books for: '{query}'")
        return titles

    def lookup(self, isbn: str) -> Title | None:
        """Return title for given isbn, or None if not found or on any failure."""
        isbn = clean_isbn(isbn)
        if not isbn:
            return None

        _log.info(f"Looking up book with isbn: {isbn}")
        try:
            titles = self._get_volumes({"q": f"isbn:{isbn}"})
        except (requests.RequestException, IncompatibleSourceError) as e:
            _log.warning(f"Book lookup failed, continuing without enrichment: {e}")
            return None
        if not titles:
            _log.info(f"No book found for isbn: {isbn}")
            return None
        # keep the identifier we asked for, the volume might list another edition first
        return dataclasses.replace(titles[0], isbn=isbn)

    # *** INTERNAL METHODS ***

    def _get_volumes(self, params: dict) -> list[Title]:
        _log.debug(f"Fetching volumes (json) from '{self.url}' with {params} ... ")
        if self._api_key:
            params = {**params, "key": self._api_key}
        response = self._ses.get(self.url, params=params)
        response.raise_for_status()
        try:
            data = json.loads(response.text)
            return self._volumes_parser.parse(data)
        except Exception as e:
            raise IncompatibleSourceError(
                f"Problem parsing volumes: '{type(e).__name__}: {e!s}'", body=response.text
            ) from e
