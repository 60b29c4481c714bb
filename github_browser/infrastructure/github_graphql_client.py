"""GitHub GraphQL API client for user profiles."""
import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from gql import gql, Client
from gql.transport.aiohttp import AIOHTTPTransport
from gql.transport.exceptions import TransportError as GQLTransportError, TransportQueryError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)
from github_browser.domain.errors import (
    DecodeError,
    NotFoundError,
    RateLimitException,
    TransportError,
)
from github_browser.domain.github_interface import IProfileSource
from github_browser.domain.models import User


logger = logging.getLogger(__name__)


def _is_not_found(error: TransportQueryError) -> bool:
    return any(
        isinstance(entry, dict) and entry.get("type") == "NOT_FOUND"
        for entry in error.errors or []
    )


def decode_profile(node: Optional[Dict[str, Any]], login: str) -> User:
    """Transform the GraphQL ``user`` node into a domain entity."""
    try:
        return User(
            id=int(node["databaseId"]),
            login=node["login"],
            avatar_url=node["avatarUrl"],
            name=node.get("name"),
            bio=node.get("bio"),
            public_repos=int(node["repositories"]["totalCount"]),
            followers=int(node["followers"]["totalCount"]),
            following=int(node["following"]["totalCount"]),
            email=node.get("email") or None,
            location=node.get("location")
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeError(f"Malformed profile payload: {e!r}") from e


class GitHubGraphQLProfileClient(IProfileSource):
    """GitHub GraphQL client for profile lookups.

    GraphQL requires a token, so this source is only wired when GITHUB_TOKEN is set.
    """

    PROFILE_QUERY = gql("""
        query UserProfile($login: String!) {
            user(login: $login) {
                databaseId
                login
                avatarUrl
                name
                bio
                email
                location
                repositories(privacy: PUBLIC) {
                    totalCount
                }
                followers {
                    totalCount
                }
                following {
                    totalCount
                }
            }
            rateLimit {
                remaining
                resetAt
            }
        }
    """)

    def __init__(self, access_token: str, url: str = "https://api.github.com/graphql"):
        """Initialize GitHub client.

        Args:
            access_token: GitHub personal access token
            url: GraphQL endpoint
        """
        self._access_token = access_token
        self._url = url
        self._transport: Optional[AIOHTTPTransport] = None
        self._client: Optional[Client] = None
        self._rate_limit_remaining: int = 5000
        self._rate_limit_reset_at: Optional[datetime] = None

    async def _init_client(self) -> None:
        """Initialize the GraphQL client (lazy initialization)."""
        if self._client is None:
            headers = {"Authorization": f"Bearer {self._access_token}"}
            self._transport = AIOHTTPTransport(url=self._url, headers=headers)
            self._client = Client(
                transport=self._transport,
                fetch_schema_from_transport=False
            )

    @retry(
        retry=retry_if_exception_type((RateLimitException, asyncio.TimeoutError)),
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=1, min=4, max=60),
        reraise=True
    )
    async def _execute_query(self, login: str) -> dict:
        """Execute the profile query with retry logic.

        Raises:
            NotFoundError: When no user has the login
            RateLimitException: When rate limit is hit
            TransportError: On any other transport failure
        """
        await self._init_client()

        try:
            async with self._client as session:
                result = await session.execute(
                    self.PROFILE_QUERY,
                    variable_values={"login": login}
                )
        except asyncio.TimeoutError:
            raise
        except Exception as e:
            logger.error(f"Error executing GraphQL query: {e}")
            if isinstance(e, TransportQueryError) and _is_not_found(e):
                raise NotFoundError(f"No GitHub user named {login!r}") from e
            if "rate limit" in str(e).lower():
                raise RateLimitException(str(e))
            if isinstance(e, (GQLTransportError, OSError)):
                raise TransportError(f"GraphQL request failed: {e}") from e
            raise

        rate_limit = result.get("rateLimit") or {}
        self._rate_limit_remaining = rate_limit.get("remaining", self._rate_limit_remaining)
        reset_at_str = rate_limit.get("resetAt")
        if reset_at_str:
            self._rate_limit_reset_at = datetime.fromisoformat(reset_at_str.replace("Z", "+00:00"))
        logger.info(
            f"Rate limit remaining: {self._rate_limit_remaining}, "
            f"resets at: {self._rate_limit_reset_at}"
        )
        return result

    async def fetch_user(self, login: str) -> User:
        """Fetch the profile for a login."""
        try:
            result = await self._execute_query(login)
        except asyncio.TimeoutError as e:
            raise TransportError(f"Profile request for {login} timed out") from e
        return decode_profile(result.get("user"), login)

    async def close(self) -> None:
        """Close the GraphQL client and transport."""
        if self._transport:
            await self._transport.close()
            self._transport = None
            self._client = None
