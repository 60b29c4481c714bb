"""Shared fixtures."""
import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
import pytest
from github_browser.domain.models import Repository, RepositoryOwner
from github_browser.infrastructure.memory_store import InMemoryKeyValueStore


@dataclass
class FetchCall:
    query: Optional[str]
    page: int
    page_size: int
    future: asyncio.Future


class ControlledSource:
    """Page source whose fetches complete only when the test resolves them.

    With ``ignore_cancel`` the fake behaves like a transport that keeps going
    after being asked to stop, so late results still reach the controller.
    """

    def __init__(self, ignore_cancel: bool = False):
        self.calls: List[FetchCall] = []
        self.ignore_cancel = ignore_cancel
        self.cancel_requests = 0

    async def fetch_page(self, query, page, page_size):
        future = asyncio.get_running_loop().create_future()
        self.calls.append(FetchCall(query, page, page_size, future))
        if not self.ignore_cancel:
            return await future
        while True:
            try:
                return await asyncio.shield(future)
            except asyncio.CancelledError:
                self.cancel_requests += 1

    @property
    def last(self) -> FetchCall:
        return self.calls[-1]

    def resolve(self, call: FetchCall, items) -> None:
        call.future.set_result(list(items))

    def fail(self, call: FetchCall, error: Exception) -> None:
        call.future.set_exception(error)


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_repository(index: int, owner: str = "octocat") -> Repository:
    return Repository(
        id=index,
        name=f"repo-{index}",
        full_name=f"{owner}/repo-{index}",
        owner=RepositoryOwner(login=owner, avatar_url=f"https://avatars.example/{owner}"),
        html_url=f"https://github.com/{owner}/repo-{index}",
        stargazers_count=10000 + index,
        forks_count=index,
        created_at=datetime(2024, 1, 1, 12, 0, 0),
        updated_at=datetime(2024, 1, 2, 12, 0, 0),
    )


def make_page(start: int, count: int) -> List[Repository]:
    return [make_repository(i) for i in range(start, start + count)]


@pytest.fixture
def source() -> ControlledSource:
    return ControlledSource()


@pytest.fixture
def lazy_source() -> ControlledSource:
    return ControlledSource(ignore_cancel=True)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()
