"""Storage interfaces (ports) for local state.

This is the port in hexagonal architecture that the infrastructure layer implements.
"""
from abc import ABC, abstractmethod
from typing import Optional


class IKeyValueStore(ABC):
    """Abstract interface for a secure string key-value store."""

    @abstractmethod
    def save(self, key: str, value: str) -> bool:
        """Store a value, replacing any existing one.

        Returns:
            True if the value was written
        """
        pass

    @abstractmethod
    def load(self, key: str) -> Optional[str]:
        """Return the stored value or None."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete a key. Returns True if something was deleted."""
        pass

    @abstractmethod
    def clear_all(self) -> bool:
        """Delete every key owned by this store."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close any open connections."""
        pass
