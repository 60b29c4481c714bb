"""Credential storage and local authentication."""
import logging
from typing import Optional
from passlib.context import CryptContext
from github_browser.domain.biometric_interface import BiometricOutcome, IBiometricAuthenticator
from github_browser.domain.errors import (
    BiometricAuthenticationError,
    BiometricUnavailableError,
    InvalidCredentialsError,
    RegistrationError,
)
from github_browser.domain.models import Credentials
from github_browser.domain.storage_interface import IKeyValueStore


logger = logging.getLogger(__name__)

USERNAME_KEY = "kUsernameKey"
PASSWORD_KEY = "kPasswordKey"

MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password in the modular crypt format (``$pbkdf2-sha256$...``)."""
    return pwd_context.hash(password)


def verify_password(password: str, encoded: str) -> bool:
    try:
        return pwd_context.verify(password, encoded)
    except ValueError:
        # Not a hash this context can identify
        return False


class CredentialStore:
    """Username and password hash kept in a key-value store."""

    def __init__(self, store: IKeyValueStore):
        self._store = store

    def load(self) -> Credentials:
        return Credentials(
            username=self._store.load(USERNAME_KEY),
            password=self._store.load(PASSWORD_KEY)
        )

    def save(self, username: str, password: str) -> bool:
        """Store the username and a hash of the password."""
        saved_username = self._store.save(USERNAME_KEY, username)
        saved_password = self._store.save(PASSWORD_KEY, hash_password(password))
        return saved_username and saved_password

    def clear(self) -> bool:
        deleted_username = self._store.delete(USERNAME_KEY)
        deleted_password = self._store.delete(PASSWORD_KEY)
        return deleted_username and deleted_password

    def matches(self, username: str, password: str) -> bool:
        credentials = self.load()
        if credentials.username is None or credentials.password is None:
            return False
        return credentials.username == username and verify_password(password, credentials.password)


class AuthService:
    """Login, registration and the logged-in gate.

    A user is considered logged in exactly when a username is stored; nothing
    is validated against GitHub.
    """

    def __init__(self, credentials: CredentialStore, biometrics: IBiometricAuthenticator):
        self._credentials = credentials
        self._biometrics = biometrics

    def is_authenticated(self) -> bool:
        return bool(self._credentials.load().username)

    def current_username(self) -> Optional[str]:
        """The stored username, or None when it is missing or empty."""
        return self._credentials.load().username or None

    def login(self, username: str, password: str) -> str:
        """Check the credentials against the stored ones.

        Returns:
            The logged-in username

        Raises:
            InvalidCredentialsError: On empty fields or a mismatch
        """
        if not username or not password:
            raise InvalidCredentialsError("Username and password are required")
        if not self._credentials.matches(username, password):
            logger.info(f"Rejected login for {username}")
            raise InvalidCredentialsError("Invalid username or password")
        logger.info(f"User {username} logged in")
        return username

    def register(self, username: str, password: str, confirm_password: str) -> None:
        """Validate the form and store the credentials.

        Raises:
            RegistrationError: With the reason of the first failed check
        """
        if not username:
            raise RegistrationError(RegistrationError.USERNAME_EMPTY)
        if not password:
            raise RegistrationError(RegistrationError.PASSWORD_EMPTY)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise RegistrationError(RegistrationError.PASSWORD_TOO_SHORT)
        if not confirm_password:
            raise RegistrationError(RegistrationError.CONFIRM_PASSWORD_EMPTY)
        if password != confirm_password:
            raise RegistrationError(RegistrationError.PASSWORD_MISMATCH)
        if self._credentials.load().username == username:
            raise RegistrationError(RegistrationError.USERNAME_EXISTS)

        if not self._credentials.save(username, password):
            logger.error(f"Could not store credentials for {username}")
            raise RegistrationError(RegistrationError.FAILED)
        logger.info(f"Registered user {username}")

    def biometric_label(self) -> str:
        return self._biometrics.biometric_type.value

    def can_use_biometrics(self) -> bool:
        return self._biometrics.is_available() and self._biometrics.is_enrolled()

    async def biometric_login(self, reason: str) -> Optional[str]:
        """Log in as the stored user after a biometric prompt.

        Returns:
            The username, or None if the user dismissed the prompt

        Raises:
            BiometricUnavailableError: No usable biometric hardware
            BiometricAuthenticationError: The prompt failed or is locked out
            InvalidCredentialsError: No stored credentials to log in with
        """
        if not self.can_use_biometrics():
            raise BiometricUnavailableError("Biometric authentication is not available")

        outcome = await self._biometrics.authenticate(reason)
        if outcome is BiometricOutcome.USER_CANCEL:
            return None
        if outcome is not BiometricOutcome.SUCCESS:
            raise BiometricAuthenticationError(f"Biometric authentication failed: {outcome.value}")

        credentials = self._credentials.load()
        if not credentials.username or credentials.password is None:
            raise InvalidCredentialsError("No stored credentials")
        logger.info(f"User {credentials.username} logged in with {self.biometric_label()}")
        return credentials.username

    def logout(self, forget: bool = False) -> None:
        """End the session. Stored credentials are kept unless ``forget`` is set."""
        if forget:
            self._credentials.clear()
            logger.info("Logged out and cleared stored credentials")
        else:
            logger.info("Logged out")
