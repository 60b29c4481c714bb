"""GitHub API interfaces (ports) for fetching paged data and profiles.

This is the anti-corruption layer that shields the domain from GitHub API specifics.
"""
from abc import ABC, abstractmethod
from typing import Generic, List, Optional, TypeVar
from github_browser.domain.models import Repository, SearchUser, User


T = TypeVar("T")


class IPageSource(ABC, Generic[T]):
    """Abstract interface for a remote source of numbered pages."""

    @abstractmethod
    async def fetch_page(self, query: Optional[str], page: int, page_size: int) -> List[T]:
        """Fetch one page of results.

        Args:
            query: Opaque query string, passed through unmodified
            page: Page number, starting at 1
            page_size: Maximum number of items in the page

        Returns:
            Items of the page, possibly fewer than page_size

        Raises:
            TransportError: On connectivity, timeout or HTTP failures
            DecodeError: On malformed payloads
            asyncio.CancelledError: When the fetch is cancelled
        """
        pass


class IRepositorySource(IPageSource[Repository]):
    """Page source yielding repositories."""
    pass


class IUserSource(IPageSource[SearchUser]):
    """Page source yielding users."""
    pass


class IProfileSource(ABC):
    """Abstract interface for user profile lookups."""

    @abstractmethod
    async def fetch_user(self, login: str) -> User:
        """Fetch the profile for a login."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        pass
