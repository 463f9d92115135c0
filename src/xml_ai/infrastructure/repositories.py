"""Repository implementations for snapshot persistence."""

import logging
from pathlib import Path
from typing import Optional

from ..exceptions import SnapshotSaveError
from ..services import IFileSystemService, ISnapshotRepository
from ..snapshot import ConversationSnapshot
from .utility_services import FileSystemService

SUPPORTED_SUFFIXES = (".json", ".yaml", ".yml")


class SnapshotRepository(ISnapshotRepository):
    """Writes conversation snapshots, choosing the format from the file suffix."""

    def __init__(self, fs_service: Optional[IFileSystemService] = None, logger: Optional[logging.Logger] = None):
        """Initialize snapshot repository.

        Args:
            fs_service: File system service for JSON and YAML output
            logger: Optional logger override
        """
        self._fs_service = fs_service or FileSystemService()
        self._logger = logger or logging.getLogger(__name__)

    def save(self, snapshot: ConversationSnapshot, path: Path) -> Path:
        """Save a snapshot to ``path`` and return it.

        Raises:
            SnapshotSaveError: If the suffix is unsupported or the write fails
        """
        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            raise SnapshotSaveError(
                f"unsupported snapshot format {suffix or '(none)'!r}",
                file_path=str(path),
                context={"supported": ", ".join(SUPPORTED_SUFFIXES)},
            )

        data = snapshot.to_dict()
        try:
            if suffix == ".json":
                self._fs_service.write_json(path, data)
            else:
                self._fs_service.write_yaml(path, data)
        except OSError as exc:
            raise SnapshotSaveError(f"failed to write snapshot: {exc}", file_path=str(path)) from exc

        self._logger.debug("Saved snapshot with %d messages to %s", len(snapshot), path)
        return path


__all__ = ["SUPPORTED_SUFFIXES", "SnapshotRepository"]
