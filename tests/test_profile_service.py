"""Tests for profile loading."""
from unittest.mock import AsyncMock, MagicMock
import pytest
from github_browser.application.auth_service import AuthService, CredentialStore
from github_browser.application.profile_service import ProfileService
from github_browser.domain.errors import NotAuthenticatedError
from github_browser.domain.models import User
from github_browser.infrastructure.biometric import UnavailableBiometricAuthenticator


@pytest.fixture
def auth(store):
    return AuthService(CredentialStore(store), UnavailableBiometricAuthenticator())


async def test_local_profile_for_logged_in_user(auth):
    """Test the stored username is used when no profile source is configured."""
    auth.register("octocat", "hunter22", "hunter22")

    user = await ProfileService(auth).load_profile()

    assert user == User.local("octocat")


async def test_profile_source_is_used(auth):
    remote = User(id=1, login="torvalds", avatar_url="", followers=200000)
    source = MagicMock()
    source.fetch_user = AsyncMock(return_value=remote)
    source.close = AsyncMock()
    profiles = ProfileService(auth, source)

    assert await profiles.load_profile("torvalds") == remote
    source.fetch_user.assert_awaited_once_with("torvalds")

    await profiles.close()
    source.close.assert_awaited_once()


async def test_profile_requires_login(auth):
    with pytest.raises(NotAuthenticatedError):
        await ProfileService(auth).load_profile()
