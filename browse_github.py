"""Main entry point for the GitHub browser.

Wires the infrastructure into the application services and renders feeds to
the terminal.
"""
import argparse
import asyncio
import getpass
import logging
import sys
from typing import List, Optional
from dotenv import load_dotenv
from github_browser.application.auth_service import AuthService, CredentialStore
from github_browser.application.feed_controller import PaginatedFeedController
from github_browser.application.feeds import HomeFeed, SearchSession, UserRepositoryFeed
from github_browser.application.profile_service import ProfileService
from github_browser.application.recent_searches import RecentSearches
from github_browser.config import Settings
from github_browser.domain.errors import AuthError, FeedError, GitHubBrowserError, NotFoundError
from github_browser.domain.models import (
    FeedPhase,
    FeedSnapshot,
    LoadingIndicator,
    Repository,
    SearchType,
    SearchUser,
)
from github_browser.domain.storage_interface import IKeyValueStore
from github_browser.infrastructure.biometric import UnavailableBiometricAuthenticator
from github_browser.infrastructure.github_client import (
    GitHubRESTClient,
    PopularRepositorySource,
    RepositorySearchSource,
    UserRepositorySource,
    UserSearchSource,
)
from github_browser.infrastructure.github_graphql_client import GitHubGraphQLProfileClient
from github_browser.infrastructure.memory_store import InMemoryKeyValueStore
from github_browser.infrastructure.postgres_store import PostgresKeyValueStore

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def format_item(item) -> str:
    if isinstance(item, Repository):
        language = item.language or "-"
        return f"{item.full_name}  ★ {item.stargazers_count}  forks {item.forks_count}  [{language}]"
    if isinstance(item, SearchUser):
        return f"@{item.login}  {item.html_url}"
    return str(item)


class TerminalRenderer:
    """Prints feed transitions and the items that arrived since the last render."""

    def __init__(self, title: str):
        self._title = title
        self._printed = 0

    def __call__(self, snapshot: FeedSnapshot) -> None:
        if snapshot.phase is FeedPhase.LOADING_INITIAL:
            self._printed = 0
            if snapshot.loading_indicator is LoadingIndicator.BLOCKING:
                print(f"{self._title}: loading...")
            else:
                print(f"{self._title}: refreshing...")
        elif snapshot.phase is FeedPhase.EMPTY:
            print(f"{self._title}: no results")
        elif snapshot.phase is FeedPhase.ERROR:
            print(f"{self._title}: failed to load ({snapshot.error})")
        elif snapshot.phase is FeedPhase.READY:
            for index, item in enumerate(snapshot.items[self._printed:], start=self._printed + 1):
                print(f"{index:4d}. {format_item(item)}")
            self._printed = len(snapshot.items)

    def transient_error(self, error: FeedError) -> None:
        print(f"{self._title}: could not load more ({error})")


async def drive_feed(controller: PaginatedFeedController, pages: int, retries: int) -> bool:
    """Wait for page 1, then scroll to the end until ``pages`` pages are loaded.

    A failed page, first or later, is retried up to ``retries`` times in total.

    Returns:
        False if a page still failed after the retries ran out, True otherwise.
        A feed with fewer than ``pages`` pages counts as fully loaded.
    """
    await controller.wait_until_idle()
    while True:
        if controller.failed_request is not None:
            if retries <= 0:
                return False
            retries -= 1
            controller.retry()
            await controller.wait_until_idle()
            continue

        if controller.current_page >= pages or not controller.has_more:
            return True
        if not controller.load_next_page_if_needed(len(controller.items) - 1):
            return True
        await controller.wait_until_idle()


def create_store(settings: Settings) -> IKeyValueStore:
    if settings.store_backend == "memory":
        logger.info("Using in-memory store, credentials will not persist")
        return InMemoryKeyValueStore()
    return PostgresKeyValueStore(settings.connection_string)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse GitHub repositories and users.")
    sub = parser.add_subparsers(dest="command", required=True)

    home = sub.add_parser("home", help="Recently updated popular repositories")
    home.add_argument("--pages", type=int, default=1)
    home.add_argument("--retries", type=int, default=0)

    search = sub.add_parser("search", help="Search users or repositories")
    search.add_argument("query")
    search.add_argument("--type", choices=[t.value for t in SearchType], default=SearchType.USER.value)
    search.add_argument("--pages", type=int, default=1)
    search.add_argument("--retries", type=int, default=0)

    recent = sub.add_parser("recent", help="Show recent searches")
    recent.add_argument("--clear", action="store_true")

    repos = sub.add_parser("repos", help="Repositories of a user")
    repos.add_argument("username")
    repos.add_argument("--pages", type=int, default=1)
    repos.add_argument("--retries", type=int, default=0)

    register = sub.add_parser("register", help="Create local credentials")
    register.add_argument("username")

    login = sub.add_parser("login", help="Check local credentials")
    login.add_argument("username", nargs="?")
    login.add_argument("--biometric", action="store_true")

    logout = sub.add_parser("logout", help="Log out")
    logout.add_argument("--forget", action="store_true", help="Also delete stored credentials")

    profile = sub.add_parser("profile", help="Show a profile, your own by default")
    profile.add_argument("username", nargs="?")

    return parser


async def run(args: argparse.Namespace, settings: Settings, store: IKeyValueStore) -> int:
    auth = AuthService(CredentialStore(store), UnavailableBiometricAuthenticator())
    client = GitHubRESTClient(
        settings.github_token,
        base_url=settings.github_api_url,
        timeout=settings.request_timeout
    )

    try:
        if args.command == "home":
            renderer = TerminalRenderer("Recently updated popular repositories")
            feed = HomeFeed(
                PopularRepositorySource(client),
                PopularRepositorySource.build_query,
                page_size=settings.page_size,
                render=renderer,
                on_transient_error=renderer.transient_error
            )
            try:
                feed.load()
                return 0 if await drive_feed(feed.controller, args.pages, args.retries) else 1
            finally:
                feed.dispose()

        if args.command == "search":
            renderer = TerminalRenderer(f"Search '{args.query}'")
            session = SearchSession(
                {
                    SearchType.USER: UserSearchSource(client),
                    SearchType.REPOSITORY: RepositorySearchSource(client),
                },
                RecentSearches(store),
                search_type=SearchType(args.type),
                page_size=settings.page_size,
                render=renderer,
                on_transient_error=renderer.transient_error
            )
            try:
                if not session.submit(args.query):
                    print("Enter a search query")
                    return 1
                return 0 if await drive_feed(session.controller, args.pages, args.retries) else 1
            finally:
                session.dispose()

        if args.command == "recent":
            recent = RecentSearches(store)
            if args.clear:
                recent.clear()
                print("Recent searches cleared")
            for query in recent.all():
                print(query)
            return 0

        if args.command == "repos":
            renderer = TerminalRenderer(f"Repositories of {args.username}")
            feed = UserRepositoryFeed(
                UserRepositorySource(client),
                args.username,
                page_size=settings.page_size,
                render=renderer,
                on_transient_error=renderer.transient_error
            )
            try:
                feed.load()
                return 0 if await drive_feed(feed.controller, args.pages, args.retries) else 1
            finally:
                feed.dispose()

        if args.command == "register":
            password = getpass.getpass("Password: ")
            confirm = getpass.getpass("Confirm password: ")
            auth.register(args.username, password, confirm)
            print(f"Registered {args.username}")
            return 0

        if args.command == "login":
            if args.biometric:
                username = await auth.biometric_login("Log in to GitHub Browser")
                if username is None:
                    return 1
            else:
                username = auth.login(args.username or "", getpass.getpass("Password: "))
            print(f"Logged in as {username}")
            return 0

        if args.command == "logout":
            auth.logout(forget=args.forget)
            print("Logged out")
            return 0

        if args.command == "profile":
            profile_source = None
            if settings.github_token:
                profile_source = GitHubGraphQLProfileClient(settings.github_token)
            profiles = ProfileService(auth, profile_source)
            try:
                user = await profiles.load_profile(args.username)
            finally:
                await profiles.close()
            print(f"{user.display_name} (@{user.login})")
            if user.bio:
                print(user.bio)
            print(f"Followers: {user.followers}  Following: {user.following}  Repositories: {user.public_repos}")
            return 0

        return 2
    finally:
        await client.close()


async def main(argv: Optional[List[str]] = None) -> int:
    """Execute one browser command."""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_env()
        store = create_store(settings)
    except (ValueError, GitHubBrowserError) as e:
        logger.error(f"Configuration error: {e}")
        return 1

    try:
        return await run(args, settings, store)
    except (AuthError, NotFoundError) as e:
        print(str(e))
        return 1
    except GitHubBrowserError as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        return 1
    finally:
        store.close()


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
