"""Most-recent-first list of submitted search queries."""
import json
import logging
from typing import List
from github_browser.domain.storage_interface import IKeyValueStore


logger = logging.getLogger(__name__)

RECENT_SEARCHES_KEY = "kRecentSearchesKey"
MAX_RECENT_SEARCHES = 10


class RecentSearches:
    """Recent queries, de-duplicated by exact match and capped in size."""

    def __init__(self, store: IKeyValueStore, limit: int = MAX_RECENT_SEARCHES):
        self._store = store
        self._limit = limit
        self._searches: List[str] = self._read()

    def _read(self) -> List[str]:
        raw = self._store.load(RECENT_SEARCHES_KEY)
        if not raw:
            return []
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable recent searches")
            return []
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)][:self._limit]

    def all(self) -> List[str]:
        return list(self._searches)

    def add(self, query: str) -> None:
        if not query or not query.strip():
            return
        if query in self._searches:
            self._searches.remove(query)
        self._searches.insert(0, query)
        del self._searches[self._limit:]
        self._store.save(RECENT_SEARCHES_KEY, json.dumps(self._searches))

    def clear(self) -> None:
        self._searches = []
        self._store.delete(RECENT_SEARCHES_KEY)
