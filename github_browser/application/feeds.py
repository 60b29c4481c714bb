"""The three paged lists of the browser, each backed by one feed controller."""
import logging
from typing import Callable, Dict, Optional
from github_browser.application.feed_controller import (
    DEFAULT_PAGE_SIZE,
    ErrorCallback,
    PaginatedFeedController,
    RenderCallback,
)
from github_browser.application.recent_searches import RecentSearches
from github_browser.domain.github_interface import IPageSource, IRepositorySource
from github_browser.domain.models import SearchType


logger = logging.getLogger(__name__)


class HomeFeed:
    """Recently updated popular repositories.

    The query is rebuilt on every load because its pushed-since bound is
    relative to the current time.
    """

    def __init__(
        self,
        source: IRepositorySource,
        query_factory: Callable[[], str],
        page_size: int = DEFAULT_PAGE_SIZE,
        render: Optional[RenderCallback] = None,
        on_transient_error: Optional[ErrorCallback] = None
    ):
        self._query_factory = query_factory
        self.controller: PaginatedFeedController = PaginatedFeedController(
            source.fetch_page,
            page_size=page_size,
            render=render,
            on_transient_error=on_transient_error,
            name="home"
        )

    def load(self) -> None:
        self.controller.start(self._query_factory())

    def refresh(self) -> None:
        self.load()

    def dispose(self) -> None:
        self.controller.dispose()


class UserRepositoryFeed:
    """Public repositories of one user."""

    def __init__(
        self,
        source: IRepositorySource,
        username: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        render: Optional[RenderCallback] = None,
        on_transient_error: Optional[ErrorCallback] = None
    ):
        if not username:
            raise ValueError("username is required")
        self._username = username
        self.controller: PaginatedFeedController = PaginatedFeedController(
            source.fetch_page,
            page_size=page_size,
            render=render,
            on_transient_error=on_transient_error,
            name=f"repos:{username}"
        )

    @property
    def username(self) -> str:
        return self._username

    def load(self) -> None:
        self.controller.start(self._username)

    def refresh(self) -> None:
        self.load()

    def dispose(self) -> None:
        self.controller.dispose()


class SearchSession:
    """User or repository search with a switchable search type.

    Each search type gets a fresh controller: switching type disposes the
    active one and, if a query was submitted, searches it again.
    """

    def __init__(
        self,
        sources: Dict[SearchType, IPageSource],
        recent_searches: RecentSearches,
        search_type: SearchType = SearchType.USER,
        page_size: int = DEFAULT_PAGE_SIZE,
        render: Optional[RenderCallback] = None,
        on_transient_error: Optional[ErrorCallback] = None
    ):
        missing = [t for t in SearchType if t not in sources]
        if missing:
            raise ValueError(f"No source for search types: {missing}")
        self._sources = sources
        self._recent_searches = recent_searches
        self._search_type = search_type
        self._page_size = page_size
        self._render = render
        self._on_transient_error = on_transient_error
        self._query = ""
        self._controller = self._create_controller()

    def _create_controller(self) -> PaginatedFeedController:
        return PaginatedFeedController(
            self._sources[self._search_type].fetch_page,
            page_size=self._page_size,
            render=self._render,
            on_transient_error=self._on_transient_error,
            name=f"search:{self._search_type.value}"
        )

    @property
    def controller(self) -> PaginatedFeedController:
        return self._controller

    @property
    def search_type(self) -> SearchType:
        return self._search_type

    @property
    def query(self) -> str:
        return self._query

    @property
    def recent_searches(self) -> RecentSearches:
        return self._recent_searches

    def submit(self, query: str) -> bool:
        """Search for ``query`` from page 1. Blank queries are ignored."""
        if not query or not query.strip():
            return False
        self._recent_searches.add(query)
        self._query = query
        self._controller.start(query)
        return True

    def set_search_type(self, search_type: SearchType) -> None:
        if search_type is self._search_type:
            return
        logger.info(f"Search type changed to {search_type.value}")
        self._controller.dispose()
        self._search_type = search_type
        self._controller = self._create_controller()
        if self._query:
            self._controller.start(self._query)

    def clear(self) -> None:
        """Drop the query and results, cancelling any search in flight."""
        self._controller.dispose()
        self._query = ""
        self._controller = self._create_controller()
        if self._render is not None:
            self._render(self._controller.snapshot)

    def load_next_page_if_needed(self, visible_index: int) -> bool:
        return self._controller.load_next_page_if_needed(visible_index)

    def cancel(self) -> None:
        self._controller.cancel()

    def retry(self) -> bool:
        return self._controller.retry()

    def dispose(self) -> None:
        self._controller.dispose()
