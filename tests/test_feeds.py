"""Tests for the home, user repository and search feeds."""
from unittest.mock import MagicMock
import pytest
from conftest import ControlledSource, make_page, settle
from github_browser.application.feeds import HomeFeed, SearchSession, UserRepositoryFeed
from github_browser.application.recent_searches import RecentSearches
from github_browser.domain.models import FeedPhase, SearchType


async def test_home_feed_rebuilds_query_on_refresh(source):
    """Test the popular query is recomputed for every load."""
    query_factory = MagicMock(side_effect=["stars:>10000 pushed:>day1", "stars:>10000 pushed:>day2"])
    feed = HomeFeed(source, query_factory)

    feed.load()
    await settle()
    source.resolve(source.last, make_page(0, 20))
    await feed.controller.wait_until_idle()

    feed.refresh()
    await settle()

    assert [call.query for call in source.calls] == [
        "stars:>10000 pushed:>day1",
        "stars:>10000 pushed:>day2",
    ]
    assert feed.controller.phase is FeedPhase.LOADING_INITIAL
    feed.dispose()
    assert feed.controller.is_disposed


async def test_user_repository_feed_queries_by_username(source):
    """Test the username is the query of the user repository feed."""
    feed = UserRepositoryFeed(source, "octocat", page_size=5)

    feed.load()
    await settle()

    assert source.last.query == "octocat"
    assert source.last.page_size == 5
    feed.dispose()


def test_user_repository_feed_requires_username(source):
    with pytest.raises(ValueError):
        UserRepositoryFeed(source, "")


@pytest.fixture
def sources():
    return {SearchType.USER: ControlledSource(), SearchType.REPOSITORY: ControlledSource()}


@pytest.fixture
def session(sources, store):
    return SearchSession(sources, RecentSearches(store))


async def test_submit_searches_and_remembers_query(session, sources):
    """Test a submitted query is searched and saved as a recent search."""
    assert session.submit("linus") is True
    await settle()

    assert sources[SearchType.USER].last.query == "linus"
    assert sources[SearchType.REPOSITORY].calls == []
    assert session.recent_searches.all() == ["linus"]
    assert session.query == "linus"


async def test_blank_submit_is_ignored(session, sources):
    """Test blank queries neither search nor get remembered."""
    assert session.submit("") is False
    assert session.submit("   ") is False
    await settle()

    assert sources[SearchType.USER].calls == []
    assert session.recent_searches.all() == []


async def test_switching_type_restarts_current_query(session, sources):
    """Test changing the search type disposes the old controller and searches again."""
    session.submit("django")
    await settle()
    old_controller = session.controller
    user_call = sources[SearchType.USER].last

    session.set_search_type(SearchType.REPOSITORY)
    await settle()

    assert old_controller.is_disposed
    assert user_call.future.cancelled()
    assert session.search_type is SearchType.REPOSITORY
    assert sources[SearchType.REPOSITORY].last.query == "django"
    assert sources[SearchType.REPOSITORY].last.page == 1


async def test_switching_type_without_query_does_not_search(session, sources):
    session.set_search_type(SearchType.REPOSITORY)
    await settle()

    assert sources[SearchType.REPOSITORY].calls == []
    assert session.controller.phase is FeedPhase.IDLE


async def test_search_pagination_delegates_to_controller(session, sources):
    """Test the near-end trigger fetches the next page of the active search."""
    session.submit("rust")
    await settle()
    user_source = sources[SearchType.USER]
    user_source.resolve(user_source.last, make_page(0, 20))
    await session.controller.wait_until_idle()

    assert session.load_next_page_if_needed(19) is True
    await settle()

    assert user_source.last.page == 2
    assert user_source.last.query == "rust"


async def test_clear_cancels_and_renders_empty_results(sources, store):
    """Test clearing the search drops results and the query."""
    renders = []
    session = SearchSession(sources, RecentSearches(store), render=renders.append)
    session.submit("go")
    await settle()
    call = sources[SearchType.USER].last

    session.clear()
    await settle()

    assert call.future.cancelled()
    assert session.query == ""
    assert session.controller.items == []
    assert renders[-1].phase is FeedPhase.IDLE
    assert renders[-1].items == ()


def test_session_requires_source_for_every_type(store):
    with pytest.raises(ValueError):
        SearchSession({SearchType.USER: ControlledSource()}, RecentSearches(store))
