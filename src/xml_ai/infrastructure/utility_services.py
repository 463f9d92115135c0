"""Utility service implementations."""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, cast

import yaml

from ..services import IFileSystemService


class ResponseParser:
    """Extracts message text from chat-completion payloads."""

    def has_choice(self, payload: Dict[str, Any], index: int = 0) -> bool:
        choices = payload.get("choices")
        return isinstance(choices, list) and len(cast(List[Any], choices)) > index

    def extract_text(self, payload: Dict[str, Any], index: int = 0) -> str:
        """Extract the text content of choice ``index``."""
        message = self._extract_message(payload, index)
        if message is None:
            return ""
        content: Any = message.get("content")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return self._collect_content_segments(cast(Iterable[Any], content))
        return ""

    @staticmethod
    def _extract_message(payload: Dict[str, Any], index: int) -> Optional[Dict[str, Any]]:
        """Extract message from payload."""
        try:
            message = payload["choices"][index]["message"]
        except (KeyError, IndexError, TypeError):
            return None
        if isinstance(message, dict):
            return cast(Dict[str, Any], message)
        return None

    @staticmethod
    def _collect_content_segments(segments: Iterable[Any]) -> str:
        """Combine structured content segments into a single string."""
        texts: List[str] = []
        for segment_any in list(segments):
            if isinstance(segment_any, str):
                texts.append(segment_any)
            elif isinstance(segment_any, dict):
                segment_dict = cast(Dict[str, Any], segment_any)
                text_value: Any = segment_dict.get("text")
                if isinstance(text_value, str):
                    texts.append(text_value)
        return "".join(texts)


class FileSystemService(IFileSystemService):
    """Service for file system operations."""

    def write_json(self, path: Path, data: Any) -> None:
        """Persist JSON data, creating parent directories on demand."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=2)

    def write_yaml(self, path: Path, data: Any) -> None:
        """Persist YAML data, creating parent directories on demand."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(data, handle, allow_unicode=True, sort_keys=False)


__all__ = [
    "ResponseParser",
    "FileSystemService",
]
