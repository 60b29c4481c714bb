"""Domain models representing core business entities."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, Optional, Tuple, TypeVar


T = TypeVar("T")


@dataclass(frozen=True)
class RepositoryOwner:
    """Owner summary embedded in repository payloads."""
    login: str
    avatar_url: str


@dataclass(frozen=True)
class Repository:
    """Immutable domain entity representing a GitHub repository.

    Field names follow the GitHub REST payload so decoding stays a plain mapping.
    """
    id: int
    name: str
    full_name: str
    owner: RepositoryOwner
    html_url: str
    stargazers_count: int
    forks_count: int
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    language: Optional[str] = None


@dataclass(frozen=True)
class SearchUser:
    """A user entry returned by the user search endpoint."""
    id: int
    login: str
    avatar_url: str
    html_url: str = ""


@dataclass(frozen=True)
class User:
    """Full user profile."""
    id: int
    login: str
    avatar_url: str
    name: Optional[str] = None
    bio: Optional[str] = None
    public_repos: int = 0
    followers: int = 0
    following: int = 0
    email: Optional[str] = None
    location: Optional[str] = None

    @property
    def display_name(self) -> str:
        """Returns the name if set, otherwise the login."""
        return self.name or self.login

    @classmethod
    def local(cls, login: str) -> 'User':
        """Builds a profile from the login alone, without calling GitHub."""
        return cls(id=0, login=login, avatar_url="", name=login, bio="")


@dataclass(frozen=True)
class Credentials:
    """Stored login credentials. The password field holds a hash."""
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class PageRequest:
    """One page of a paged query. Pages are numbered from 1."""
    query: Optional[str]
    page: int
    page_size: int

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {self.page_size}")

    def next(self) -> 'PageRequest':
        """Returns the request for the following page."""
        return PageRequest(query=self.query, page=self.page + 1, page_size=self.page_size)


class FeedPhase(Enum):
    """Coarse-grained state of a feed controller surfaced to the UI."""
    IDLE = "idle"
    LOADING_INITIAL = "loading_initial"
    READY = "ready"
    LOADING_MORE = "loading_more"
    EMPTY = "empty"
    ERROR = "error"


class LoadingIndicator(Enum):
    """Which loading visual a renderer should show."""
    NONE = "none"
    BLOCKING = "blocking"
    REFRESH = "refresh"


class SearchType(Enum):
    USER = "user"
    REPOSITORY = "repository"


@dataclass(frozen=True)
class FeedSnapshot(Generic[T]):
    """Full view of a feed handed to the render callback on every transition."""
    items: Tuple[T, ...]
    phase: FeedPhase
    has_more: bool
    is_fetching: bool = False
    loading_indicator: LoadingIndicator = LoadingIndicator.NONE
    error: Optional[Exception] = field(default=None, compare=False)

    @property
    def show_load_more_row(self) -> bool:
        """True when a trailing "loading" row belongs under the items."""
        return bool(self.items) and self.has_more
