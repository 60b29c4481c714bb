"""Tests for the GitHub REST client and page sources."""
import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock
import pytest
from github_browser.domain.errors import DecodeError, TransportError
from github_browser.infrastructure.github_client import (
    GitHubRESTClient,
    PopularRepositorySource,
    RepositorySearchSource,
    UserRepositorySource,
    UserSearchSource,
    decode_repository,
    decode_search_user,
    popular_repositories_query,
)


def repository_payload(**overrides):
    payload = {
        "id": 10270250,
        "name": "react",
        "full_name": "facebook/react",
        "owner": {"login": "facebook", "avatar_url": "https://avatars.githubusercontent.com/u/69631"},
        "description": "The library for web and native user interfaces.",
        "html_url": "https://github.com/facebook/react",
        "stargazers_count": 228000,
        "forks_count": 46600,
        "language": "JavaScript",
        "created_at": "2013-05-24T16:15:54Z",
        "updated_at": "2024-01-01T12:00:00Z",
    }
    payload.update(overrides)
    return payload


def user_payload(login="octocat"):
    return {
        "id": 583231,
        "login": login,
        "avatar_url": f"https://avatars.githubusercontent.com/{login}",
        "html_url": f"https://github.com/{login}",
    }


def test_decode_repository():
    repo = decode_repository(repository_payload())

    assert repo.full_name == "facebook/react"
    assert repo.owner.login == "facebook"
    assert repo.stargazers_count == 228000
    assert repo.language == "JavaScript"
    assert repo.created_at == datetime(2013, 5, 24, 16, 15, 54, tzinfo=timezone.utc)


def test_decode_repository_optional_fields():
    repo = decode_repository(repository_payload(description=None, language=None))

    assert repo.description is None
    assert repo.language is None


@pytest.mark.parametrize("payload", [
    {"id": 1},
    repository_payload(owner=None),
    repository_payload(created_at="yesterday"),
    repository_payload(stargazers_count="many"),
])
def test_decode_repository_malformed(payload):
    with pytest.raises(DecodeError):
        decode_repository(payload)


def test_decode_search_user():
    user = decode_search_user(user_payload())

    assert user.login == "octocat"
    assert user.html_url == "https://github.com/octocat"

    with pytest.raises(DecodeError):
        decode_search_user({"login": "octocat"})


def test_popular_repositories_query():
    """Test the popular query filters on stars and a three-day push window."""
    now = datetime(2024, 1, 10, 12, 0, 0, tzinfo=timezone.utc)

    assert popular_repositories_query(now) == "stars:>10000 pushed:>2024-01-07T12:00:00Z"
    assert PopularRepositorySource.build_query(now) == popular_repositories_query(now)


@pytest.fixture
def client():
    client = GitHubRESTClient(access_token="ghp_test")
    client.get_json = AsyncMock()
    return client


async def test_search_repositories(client):
    client.get_json.return_value = {"total_count": 1, "items": [repository_payload()]}

    repos = await client.search_repositories("react", page=2, per_page=20, sort="updated", order="desc")

    assert [repo.name for repo in repos] == ["react"]
    client.get_json.assert_awaited_once_with(
        "/search/repositories",
        {"q": "react", "page": 2, "per_page": 20, "sort": "updated", "order": "desc"}
    )


async def test_search_without_items_is_decode_error(client):
    client.get_json.return_value = {"message": "Validation Failed"}

    with pytest.raises(DecodeError):
        await client.search_repositories("react")


async def test_search_users(client):
    client.get_json.return_value = {"total_count": 2, "items": [user_payload("a"), user_payload("b")]}

    users = await client.search_users("a", page=1, per_page=20)

    assert [user.login for user in users] == ["a", "b"]
    client.get_json.assert_awaited_once_with("/search/users", {"q": "a", "page": 1, "per_page": 20})


async def test_list_user_repositories(client):
    client.get_json.return_value = [repository_payload(), repository_payload(id=2, name="docs")]

    repos = await client.list_user_repositories("facebook", page=3, per_page=20)

    assert len(repos) == 2
    client.get_json.assert_awaited_once_with("/users/facebook/repos", {"page": 3, "per_page": 20})


async def test_list_user_repositories_not_a_list(client):
    client.get_json.return_value = {"message": "Not Found"}

    with pytest.raises(DecodeError):
        await client.list_user_repositories("nobody")


async def test_popular_source_sorts_by_update(client):
    """Test the popular source passes the query through and sorts by update time."""
    client.get_json.return_value = {"items": []}
    source = PopularRepositorySource(client)

    await source.fetch_page("stars:>10000 pushed:>2024-01-07T12:00:00Z", 1, 20)

    client.get_json.assert_awaited_once_with(
        "/search/repositories",
        {
            "q": "stars:>10000 pushed:>2024-01-07T12:00:00Z",
            "page": 1,
            "per_page": 20,
            "sort": "updated",
            "order": "desc",
        }
    )


async def test_search_sources(client):
    client.get_json.return_value = {"items": []}

    assert await RepositorySearchSource(client).fetch_page("flask", 2, 20) == []
    assert await UserSearchSource(client).fetch_page("guido", 1, 20) == []
    assert client.get_json.await_count == 2


async def test_user_repository_source_requires_username(client):
    with pytest.raises(ValueError):
        await UserRepositorySource(client).fetch_page(None, 1, 20)


async def test_exhausted_timeouts_become_transport_error():
    """Test a timeout that survives the retries surfaces as a transport error."""
    client = GitHubRESTClient()
    client._execute_request = AsyncMock(side_effect=asyncio.TimeoutError())

    with pytest.raises(TransportError):
        await client.get_json("/search/users", {"q": "x"})


async def test_close_without_session():
    client = GitHubRESTClient()

    await client.close()
    assert client.rate_limit_remaining is None
