"""GitHub REST API client implementation with rate limiting and retry logic."""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import aiohttp
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)
from github_browser.domain.errors import DecodeError, RateLimitException, TransportError
from github_browser.domain.github_interface import IRepositorySource, IUserSource
from github_browser.domain.models import Repository, RepositoryOwner, SearchUser


logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def decode_repository(node: Dict[str, Any]) -> Repository:
    """Transform a REST repository payload into a domain entity.

    Raises:
        DecodeError: When a required field is missing or has the wrong type
    """
    try:
        owner = node["owner"]
        return Repository(
            id=int(node["id"]),
            name=node["name"],
            full_name=node["full_name"],
            owner=RepositoryOwner(login=owner["login"], avatar_url=owner["avatar_url"]),
            html_url=node["html_url"],
            stargazers_count=int(node["stargazers_count"]),
            forks_count=int(node["forks_count"]),
            created_at=_parse_timestamp(node["created_at"]),
            updated_at=_parse_timestamp(node["updated_at"]),
            description=node.get("description"),
            language=node.get("language")
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise DecodeError(f"Malformed repository payload: {e!r}") from e


def decode_search_user(node: Dict[str, Any]) -> SearchUser:
    """Transform a user search item into a domain entity."""
    try:
        return SearchUser(
            id=int(node["id"]),
            login=node["login"],
            avatar_url=node["avatar_url"],
            html_url=node.get("html_url") or ""
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise DecodeError(f"Malformed user payload: {e!r}") from e


def _search_items(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
        raise DecodeError("Search response has no 'items' list")
    return payload["items"]


def popular_repositories_query(
    now: Optional[datetime] = None,
    min_stars: int = 10000,
    pushed_within_days: int = 3
) -> str:
    """Search query for popular repositories pushed recently.

    The pushed-since bound moves with the clock, so consecutive pages of the
    same query may see a slightly different result set.
    """
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=pushed_within_days)
    return f"stars:>{min_stars} pushed:>{since.strftime('%Y-%m-%dT%H:%M:%SZ')}"


class GitHubRESTClient:
    """GitHub REST API client with rate limiting and retry mechanisms.

    Errors are mapped onto the feed error taxonomy: TransportError for
    connectivity and HTTP failures, DecodeError for unexpected payloads.
    Cancellation propagates as asyncio.CancelledError.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30
    ):
        """Initialize GitHub client.

        Args:
            access_token: GitHub personal access token, optional for REST
            base_url: API root URL
            timeout: Total request timeout in seconds
        """
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None
        self._rate_limit_remaining: Optional[int] = None
        self._rate_limit_reset_at: Optional[datetime] = None

    @property
    def rate_limit_remaining(self) -> Optional[int]:
        return self._rate_limit_remaining

    async def _init_session(self) -> aiohttp.ClientSession:
        """Initialize the HTTP session (lazy initialization)."""
        if self._session is None or self._session.closed:
            headers = {
                "Accept": "application/vnd.github+json",
                "User-Agent": "github-browser"
            }
            if self._access_token:
                headers["Authorization"] = f"Bearer {self._access_token}"
            self._session = aiohttp.ClientSession(
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session

    async def _check_rate_limit(self) -> None:
        """Check and handle rate limiting."""
        if self._rate_limit_remaining is not None and self._rate_limit_remaining <= 0:
            if self._rate_limit_reset_at:
                wait_time = (self._rate_limit_reset_at - datetime.now(timezone.utc)).total_seconds()
                if wait_time > 0:
                    logger.warning(
                        f"Rate limit exhausted. Waiting {wait_time:.0f} seconds "
                        f"until reset at {self._rate_limit_reset_at}"
                    )
                    await asyncio.sleep(wait_time + 1)

    def _update_rate_limit(self, headers: Any) -> None:
        remaining = headers.get("X-RateLimit-Remaining")
        reset = headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self._rate_limit_remaining = int(remaining)
        if reset is not None:
            self._rate_limit_reset_at = datetime.fromtimestamp(int(reset), tz=timezone.utc)
        logger.debug(
            f"Rate limit remaining: {self._rate_limit_remaining}, "
            f"resets at: {self._rate_limit_reset_at}"
        )

    @retry(
        retry=retry_if_exception_type((RateLimitException, asyncio.TimeoutError)),
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=1, min=4, max=60),
        reraise=True
    )
    async def _execute_request(self, path: str, params: Dict[str, Any]) -> Any:
        """Execute a GET request with retry logic.

        Raises:
            RateLimitException: When rate limit is hit
            TransportError: On connection errors and other HTTP failures
            DecodeError: When the body is not JSON
        """
        session = await self._init_session()
        await self._check_rate_limit()

        try:
            async with session.get(f"{self._base_url}{path}", params=params) as response:
                self._update_rate_limit(response.headers)

                if response.status in (403, 429):
                    text = await response.text()
                    if "rate limit" in text.lower():
                        raise RateLimitException(
                            f"HTTP {response.status}: rate limit exceeded",
                            status_code=response.status
                        )
                    raise TransportError(f"HTTP {response.status}: {text[:200]}", status_code=response.status)

                if response.status >= 400:
                    text = await response.text()
                    raise TransportError(f"HTTP {response.status}: {text[:200]}", status_code=response.status)

                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise DecodeError(f"Response from {path} is not valid JSON: {e}") from e

        except asyncio.TimeoutError:
            logger.warning(f"Request to {path} timed out")
            raise
        except aiohttp.ClientError as e:
            logger.error(f"Error requesting {path}: {e}")
            raise TransportError(f"Request to {path} failed: {e}") from e

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a JSON document, mapping exhausted timeouts to TransportError."""
        try:
            return await self._execute_request(path, params or {})
        except asyncio.TimeoutError as e:
            raise TransportError(f"Request to {path} timed out") from e

    async def search_repositories(
        self,
        query: str,
        page: int = 1,
        per_page: int = 20,
        sort: Optional[str] = None,
        order: Optional[str] = None
    ) -> List[Repository]:
        """Search repositories.

        Args:
            query: GitHub search qualifier string
            page: Page number, starting at 1
            per_page: Page size (max 100)
            sort: Optional sort field such as "updated" or "stars"
            order: "asc" or "desc"
        """
        params: Dict[str, Any] = {"q": query, "page": page, "per_page": per_page}
        if sort:
            params["sort"] = sort
        if order:
            params["order"] = order
        payload = await self.get_json("/search/repositories", params)
        return [decode_repository(node) for node in _search_items(payload)]

    async def search_users(self, query: str, page: int = 1, per_page: int = 10) -> List[SearchUser]:
        """Search users."""
        payload = await self.get_json(
            "/search/users",
            {"q": query, "page": page, "per_page": per_page}
        )
        return [decode_search_user(node) for node in _search_items(payload)]

    async def list_user_repositories(
        self,
        username: str,
        page: int = 1,
        per_page: int = 20
    ) -> List[Repository]:
        """List the public repositories of a user."""
        payload = await self.get_json(
            f"/users/{username}/repos",
            {"page": page, "per_page": per_page}
        )
        if not isinstance(payload, list):
            raise DecodeError("User repositories response is not a list")
        return [decode_repository(node) for node in payload]

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None:
            await self._session.close()
            self._session = None


class RepositorySearchSource(IRepositorySource):
    """Repository search exposed as a page source."""

    def __init__(self, client: GitHubRESTClient, sort: Optional[str] = None, order: Optional[str] = None):
        self._client = client
        self._sort = sort
        self._order = order

    async def fetch_page(self, query: Optional[str], page: int, page_size: int) -> List[Repository]:
        return await self._client.search_repositories(
            query or "",
            page=page,
            per_page=page_size,
            sort=self._sort,
            order=self._order
        )


class PopularRepositorySource(RepositorySearchSource):
    """Repository search sorted by most recent update, for popular-repository queries."""

    def __init__(self, client: GitHubRESTClient):
        super().__init__(client, sort="updated", order="desc")

    @staticmethod
    def build_query(now: Optional[datetime] = None) -> str:
        return popular_repositories_query(now)


class UserSearchSource(IUserSource):
    """User search exposed as a page source."""

    def __init__(self, client: GitHubRESTClient):
        self._client = client

    async def fetch_page(self, query: Optional[str], page: int, page_size: int) -> List[SearchUser]:
        return await self._client.search_users(query or "", page=page, per_page=page_size)


class UserRepositorySource(IRepositorySource):
    """Repositories of one user; the query is the username."""

    def __init__(self, client: GitHubRESTClient):
        self._client = client

    async def fetch_page(self, query: Optional[str], page: int, page_size: int) -> List[Repository]:
        if not query:
            raise ValueError("A username is required to list repositories")
        return await self._client.list_user_repositories(query, page=page, per_page=page_size)
