"""In-process key-value store, used for ephemeral sessions and tests."""
from typing import Dict, Optional
from github_browser.domain.storage_interface import IKeyValueStore


class InMemoryKeyValueStore(IKeyValueStore):
    """Dictionary-backed store. Contents are lost on exit."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def save(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    def load(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def clear_all(self) -> bool:
        had_data = bool(self._data)
        self._data.clear()
        return had_data

    def close(self) -> None:
        pass
