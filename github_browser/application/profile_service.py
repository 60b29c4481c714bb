"""Profile lookup for the logged-in user or any login."""
import logging
from typing import Optional
from github_browser.application.auth_service import AuthService
from github_browser.domain.errors import NotAuthenticatedError
from github_browser.domain.github_interface import IProfileSource
from github_browser.domain.models import User


logger = logging.getLogger(__name__)


class ProfileService:
    """Resolves and loads user profiles.

    Without a profile source the profile is built from the login alone.
    """

    def __init__(self, auth: AuthService, profile_source: Optional[IProfileSource] = None):
        self._auth = auth
        self._profile_source = profile_source

    async def load_profile(self, username: Optional[str] = None) -> User:
        """Load the profile of ``username``, or of the logged-in user.

        Raises:
            NotAuthenticatedError: No username given and nobody logged in
            TransportError: The profile source could not be reached
            DecodeError: The profile source returned an unexpected payload
        """
        login = username or self._auth.current_username()
        if not login:
            raise NotAuthenticatedError("Log in to view your profile")

        if self._profile_source is None:
            logger.info(f"No profile source configured, using local profile for {login}")
            return User.local(login)

        user = await self._profile_source.fetch_user(login)
        logger.info(f"Loaded profile for {user.login}")
        return user

    async def close(self) -> None:
        if self._profile_source is not None:
            await self._profile_source.close()
