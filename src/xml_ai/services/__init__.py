"""Service interfaces for dependency injection."""

from pathlib import Path
from typing import Any, Protocol, Sequence

from ..domain import Message, Settings
from ..snapshot import ConversationSnapshot


class ICompletionService(Protocol):
    """Interface for the text-generation backend."""

    async def complete(self, messages: Sequence[Message], settings: Settings) -> str:
        """Return the text of choice 0 for the given conversation so far."""
        ...

    async def aclose(self) -> None:
        """Close connections and cleanup resources."""
        ...


class IConfigurationManager(Protocol):
    """Interface for configuration management."""

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        ...

    def reload(self) -> None:
        """Reload configuration from source."""
        ...


class IFileSystemService(Protocol):
    """Interface for file system operations."""

    def write_json(self, path: Path, data: Any) -> None:
        """Write data as JSON to path, creating directories as needed."""
        ...

    def write_yaml(self, path: Path, data: Any) -> None:
        """Write data as YAML to path, creating directories as needed."""
        ...


class ISnapshotRepository(Protocol):
    """Interface for persisting conversation snapshots."""

    def save(self, snapshot: ConversationSnapshot, path: Path) -> Path:
        """Save a snapshot and return the written path."""
        ...


__all__ = [
    "ICompletionService",
    "IConfigurationManager",
    "IFileSystemService",
    "ISnapshotRepository",
]
