"""Custom exception hierarchy for xml-ai."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

if TYPE_CHECKING:
    from .diagnostics import ScriptErrorList
    from .snapshot import ConversationSnapshot


class XmlAiException(Exception):
    """Base exception for all xml-ai errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        """Initialize exception with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigurationError(XmlAiException):
    """Raised when configuration is invalid or missing."""

    pass


class ScriptCompileError(XmlAiException):
    """Raised when a markup tree does not describe a valid conversation script.

    Carries every error found in the compiled subtree, in source order.
    """

    def __init__(self, errors: "ScriptErrorList", context: Optional[Dict[str, Any]] = None):
        super().__init__(f"invalid conversation script: {errors}", context)
        self.errors = errors


class PromptNotFoundError(XmlAiException):
    """Raised when an invocation targets a prompt the document does not define."""

    def __init__(self, name: str, available: Sequence[str] = ()):
        super().__init__(f"prompt not found: {name!r}", {"available": ", ".join(available) or "-"})
        self.name = name
        self.available = list(available)


class ConversationError(XmlAiException):
    """Raised when a conversation is driven outside its state machine."""

    pass


class CompletionError(XmlAiException):
    """Raised when the completion backend fails to produce a turn.

    The runtime never retries. ``partial_snapshot`` holds the messages that
    were appended before the failing call so the caller can decide what to do.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.status_code = status_code
        self.partial_snapshot: Optional["ConversationSnapshot"] = None
        self.completed_calls = 0


class SnapshotSaveError(XmlAiException):
    """Raised when a conversation snapshot cannot be persisted."""

    def __init__(self, message: str, file_path: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        """Initialize with file information.

        Args:
            message: Error message
            file_path: Path where save failed
            context: Additional context
        """
        super().__init__(message, context)
        self.file_path = file_path


__all__ = [
    "XmlAiException",
    "ConfigurationError",
    "ScriptCompileError",
    "PromptNotFoundError",
    "ConversationError",
    "CompletionError",
    "SnapshotSaveError",
]
