"""Biometric prompt interface (port)."""
from abc import ABC, abstractmethod
from enum import Enum


class BiometricType(Enum):
    NONE = "None"
    TOUCH_ID = "Touch ID"
    FACE_ID = "Face ID"


class BiometricOutcome(Enum):
    SUCCESS = "success"
    USER_CANCEL = "user_cancel"
    LOCKOUT = "lockout"
    FAILED = "failed"


class IBiometricAuthenticator(ABC):
    """Abstract interface for a device biometric prompt."""

    @property
    @abstractmethod
    def biometric_type(self) -> BiometricType:
        pass

    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def is_enrolled(self) -> bool:
        """True if biometrics are enrolled, including when locked out."""
        pass

    @abstractmethod
    async def authenticate(self, reason: str) -> BiometricOutcome:
        """Show the prompt and report how it ended."""
        pass
