"""Paginated feed controller driving incremental loading from a remote paged source.

One controller owns one accumulated list of items. Every fetch it issues runs as
its own asyncio task identified by a FetchHandle; a completion is applied only
while its handle is still the controller's in-flight handle, so a superseded or
cancelled request can never touch the items.
"""
import asyncio
import functools
import itertools
import logging
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar
from github_browser.domain.errors import FeedError, TransportError
from github_browser.domain.models import (
    FeedPhase,
    FeedSnapshot,
    LoadingIndicator,
    PageRequest,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

FetchPage = Callable[[Optional[str], int, int], Awaitable[List[T]]]
RenderCallback = Callable[[FeedSnapshot[T]], None]
ErrorCallback = Callable[[FeedError], None]

DEFAULT_PAGE_SIZE = 20
NEAR_END_THRESHOLD = 3

_handle_ids = itertools.count(1)


class FetchHandle:
    """Opaque token identifying one issued fetch."""

    def __init__(self, request: PageRequest):
        self.id = next(_handle_ids)
        self.request = request
        self.task: Optional[asyncio.Task] = None

    def cancel(self) -> None:
        """Ask the transport to stop. The result is discarded either way."""
        if self.task is not None and not self.task.done():
            self.task.cancel()

    def __repr__(self) -> str:
        return f"FetchHandle(id={self.id}, page={self.request.page})"


class PaginatedFeedController(Generic[T]):
    """Generic stateful controller for a paged remote collection.

    State is mutated only on the event loop thread, by the public methods and by
    the completion of the task behind the current FetchHandle.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        page_size: int = DEFAULT_PAGE_SIZE,
        render: Optional[RenderCallback] = None,
        on_transient_error: Optional[ErrorCallback] = None,
        name: str = "feed"
    ):
        """Initialize the controller.

        Args:
            fetch_page: Coroutine function ``(query, page, page_size) -> items``
            page_size: Fixed number of items requested per page
            render: Called with a FeedSnapshot on every state transition
            on_transient_error: Called when a page > 1 fetch fails
            name: Label used in log messages
        """
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self._fetch_page = fetch_page
        self._page_size = page_size
        self._render_callback = render
        self._on_transient_error = on_transient_error
        self._name = name

        self._items: List[T] = []
        self._query: Optional[str] = None
        self._current_page = 1
        self._has_more = True
        self._phase = FeedPhase.IDLE
        self._phase_before_fetch = FeedPhase.IDLE
        self._in_flight: Optional[FetchHandle] = None
        self._failed_request: Optional[PageRequest] = None
        self._error: Optional[FeedError] = None
        self._loading_indicator = LoadingIndicator.NONE
        self._first_run = True
        self._started = False
        self._disposed = False

    @property
    def items(self) -> List[T]:
        return list(self._items)

    @property
    def query(self) -> Optional[str]:
        return self._query

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def is_fetching(self) -> bool:
        return self._in_flight is not None

    @property
    def phase(self) -> FeedPhase:
        return self._phase

    @property
    def error(self) -> Optional[FeedError]:
        return self._error

    @property
    def failed_request(self) -> Optional[PageRequest]:
        return self._failed_request

    @property
    def in_flight(self) -> Optional[FetchHandle]:
        return self._in_flight

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def snapshot(self) -> FeedSnapshot:
        return FeedSnapshot(
            items=tuple(self._items),
            phase=self._phase,
            has_more=self._has_more,
            is_fetching=self.is_fetching,
            loading_indicator=self._loading_indicator,
            error=self._error
        )

    def start(self, query: Optional[str] = None) -> None:
        """Reset the feed and fetch page 1 for ``query``.

        Any in-flight fetch is cancelled first. Must be called from a running
        event loop.
        """
        if self._disposed:
            logger.debug(f"[{self._name}] start() ignored on disposed controller")
            return
        loop = asyncio.get_running_loop()
        self._discard_in_flight()

        self._query = query
        self._items = []
        self._current_page = 1
        self._has_more = True
        self._error = None
        self._failed_request = None
        self._phase = FeedPhase.IDLE
        self._started = True

        self._issue(loop, PageRequest(query=query, page=1, page_size=self._page_size))

    def refresh(self) -> None:
        """Pull-to-refresh: restart with the current query."""
        self.start(self._query)

    def load_next_page_if_needed(self, visible_index: int) -> bool:
        """Fetch the next page when ``visible_index`` is near the end of the items.

        Safe to call on every rendered row; returns True only when a fetch was
        actually issued.
        """
        if self._disposed or not self._started:
            return False
        if self.is_fetching or not self._has_more:
            return False
        if self._phase is not FeedPhase.READY:
            return False
        if visible_index < len(self._items) - NEAR_END_THRESHOLD:
            return False

        loop = asyncio.get_running_loop()
        request = PageRequest(
            query=self._query, page=self._current_page, page_size=self._page_size
        ).next()
        self._current_page = request.page
        logger.debug(
            f"[{self._name}] Row {visible_index} of {len(self._items)} visible, "
            f"loading page {request.page}"
        )
        self._issue(loop, request)
        return True

    def cancel(self) -> None:
        """Cancel the in-flight fetch and return to the phase held before it."""
        handle = self._discard_in_flight()
        if handle is None:
            return
        logger.info(f"[{self._name}] Cancelled fetch of page {handle.request.page}")
        self._restore_after_cancel(handle.request)
        self._render()

    def retry(self) -> bool:
        """Re-issue the most recently failed request.

        A failed page 1 gets a full reset; a failed later page is fetched again
        on top of the items already loaded.

        Returns:
            True if a request was issued
        """
        request = self._failed_request
        if self._disposed or request is None or self.is_fetching:
            return False

        logger.info(f"[{self._name}] Retrying page {request.page}")
        if request.page == 1:
            self.start(request.query)
            return True

        loop = asyncio.get_running_loop()
        self._current_page = request.page
        self._error = None
        self._issue(loop, request)
        return True

    def dispose(self) -> None:
        """Cancel in-flight work and release the render hooks. Idempotent."""
        if self._disposed:
            return
        self._render_callback = None
        self._on_transient_error = None
        self.cancel()
        self._disposed = True
        logger.debug(f"[{self._name}] Disposed")

    async def wait_until_idle(self) -> None:
        """Wait until no fetch is in flight."""
        while self._in_flight is not None and self._in_flight.task is not None:
            await asyncio.wait({self._in_flight.task})
            # let done callbacks of an externally cancelled task run
            await asyncio.sleep(0)

    def _issue(self, loop: asyncio.AbstractEventLoop, request: PageRequest) -> None:
        self._phase_before_fetch = self._phase
        if request.page == 1:
            self._phase = FeedPhase.LOADING_INITIAL
            self._loading_indicator = (
                LoadingIndicator.BLOCKING if self._first_run else LoadingIndicator.REFRESH
            )
        else:
            self._phase = FeedPhase.LOADING_MORE
            self._loading_indicator = LoadingIndicator.NONE

        handle = FetchHandle(request)
        self._in_flight = handle
        handle.task = loop.create_task(self._run(handle))
        handle.task.add_done_callback(functools.partial(self._on_task_done, handle))
        self._render()

    def _discard_in_flight(self) -> Optional[FetchHandle]:
        handle = self._in_flight
        if handle is not None:
            self._in_flight = None
            handle.cancel()
        return handle

    async def _run(self, handle: FetchHandle) -> None:
        request = handle.request
        logger.info(
            f"[{self._name}] Fetching page {request.page} "
            f"(size={request.page_size}, query={request.query!r})"
        )
        try:
            results = await self._fetch_page(request.query, request.page, request.page_size)
        except FeedError as e:
            self._apply_failure(handle, e)
        except Exception as e:
            logger.error(f"[{self._name}] Unexpected error fetching page {request.page}: {e}", exc_info=True)
            error = TransportError(str(e))
            error.__cause__ = e
            self._apply_failure(handle, error)
        else:
            self._apply_success(handle, list(results))

    def _on_task_done(self, handle: FetchHandle, task: asyncio.Task) -> None:
        # Only reached for cancellations that did not come through this controller.
        if task.cancelled() and handle is self._in_flight:
            logger.info(f"[{self._name}] Fetch of page {handle.request.page} cancelled externally")
            self._in_flight = None
            self._restore_after_cancel(handle.request)
            self._render()

    def _apply_success(self, handle: FetchHandle, results: List[T]) -> None:
        if handle is not self._in_flight:
            logger.debug(f"[{self._name}] Dropping stale result of {handle!r}")
            return
        self._in_flight = None
        request = handle.request

        if request.page == 1:
            self._items = results
            self._first_run = False
        else:
            self._items.extend(results)

        self._has_more = len(results) >= request.page_size
        self._error = None
        self._failed_request = None
        self._loading_indicator = LoadingIndicator.NONE
        if request.page == 1 and not self._items:
            self._phase = FeedPhase.EMPTY
        else:
            self._phase = FeedPhase.READY

        logger.info(
            f"[{self._name}] Page {request.page} returned {len(results)} items. "
            f"Total: {len(self._items)}, has_more={self._has_more}"
        )
        self._render()

    def _apply_failure(self, handle: FetchHandle, error: FeedError) -> None:
        if handle is not self._in_flight:
            logger.debug(f"[{self._name}] Dropping stale failure of {handle!r}: {error}")
            return
        self._in_flight = None
        request = handle.request

        self._has_more = False
        self._failed_request = request
        self._loading_indicator = LoadingIndicator.NONE
        logger.error(f"[{self._name}] Failed to load page {request.page}: {error}")

        if request.page == 1:
            self._first_run = False
            self._error = error
            self._phase = FeedPhase.ERROR
            self._render()
            return

        self._phase = FeedPhase.READY
        self._render()
        if self._on_transient_error is not None:
            try:
                self._on_transient_error(error)
            except Exception as e:
                logger.error(f"[{self._name}] Transient error callback failed: {e}", exc_info=True)

    def _restore_after_cancel(self, request: PageRequest) -> None:
        if request.page > 1:
            self._current_page = request.page - 1
        self._phase = self._phase_before_fetch
        self._loading_indicator = LoadingIndicator.NONE

    def _render(self) -> None:
        # State is already applied; callback errors are logged, not propagated.
        if self._render_callback is None:
            return
        try:
            self._render_callback(self.snapshot)
        except Exception as e:
            logger.error(f"[{self._name}] Render callback failed: {e}", exc_info=True)
