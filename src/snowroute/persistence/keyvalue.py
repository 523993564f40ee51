"""Key-value persistence used for device-local state such as check-in sessions."""

from __future__ import annotations

from typing import Optional, Protocol


class KeyValueStore(Protocol):
    """String key to string value storage, synchronous from the caller's view."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    """In-process store; state does not outlive the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def keys(self) -> list[str]:
        return list(self._values)
