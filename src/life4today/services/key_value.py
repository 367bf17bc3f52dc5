"""Key/value slot abstractions for client-side persistence."""

from dataclasses import dataclass, field
from typing import Protocol


class KeyValueStore(Protocol):
    """Durable string slots keyed by name."""

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""

    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""

    def remove(self, key: str) -> None:
        """Remove a value if present."""


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Process-local key/value store."""

    values: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)
