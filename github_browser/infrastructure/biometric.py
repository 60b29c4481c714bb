"""Biometric authenticator for hosts without a biometric device."""
from github_browser.domain.biometric_interface import (
    BiometricOutcome,
    BiometricType,
    IBiometricAuthenticator,
)


class UnavailableBiometricAuthenticator(IBiometricAuthenticator):
    """Reports no biometric hardware. Terminal sessions have none."""

    @property
    def biometric_type(self) -> BiometricType:
        return BiometricType.NONE

    def is_available(self) -> bool:
        return False

    def is_enrolled(self) -> bool:
        return False

    async def authenticate(self, reason: str) -> BiometricOutcome:
        return BiometricOutcome.FAILED
