"""Infrastructure implementations."""

from .completion_client import OpenAICompletionClient
from .config_manager import ConfigurationManager
from .repositories import SnapshotRepository
from .utility_services import FileSystemService, ResponseParser

__all__ = [
    "OpenAICompletionClient",
    "ConfigurationManager",
    "SnapshotRepository",
    "FileSystemService",
    "ResponseParser",
]
