"""Domain models for xml-ai."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    """Author of a conversation message."""

    SYSTEM = "system"
    ASSISTANT = "assistant"
    USER = "user"

    @classmethod
    def parse(cls, value: str) -> "Role":
        """Parse a role token, trimmed and case-insensitive.

        Raises:
            ValueError: If the token is not one of the three known roles
        """
        normalized = value.strip().lower()
        for role in cls:
            if role.value == normalized:
                return role
        raise ValueError(f"unrecognized role {value!r}")


class ResponseFormat(str, Enum):
    """Response format requested from the completion backend."""

    JSON_OBJECT = "json_object"
    TEXT = "text"

    @classmethod
    def parse(cls, value: str) -> "ResponseFormat":
        """Parse a response format ignoring case, ``-`` and ``_``."""
        cleaned = value.strip().replace("-", "").replace("_", "").lower()
        if cleaned == "jsonobject":
            return cls.JSON_OBJECT
        if cleaned == "text":
            return cls.TEXT
        raise ValueError(f"invalid response format {value!r}")


@dataclass(frozen=True)
class Settings:
    """Generation settings; ``None`` means inherit from the enclosing scope."""

    name: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    n: Optional[int] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    logprobs: Optional[bool] = None
    top_logprobs: Optional[int] = None
    response_format: Optional[ResponseFormat] = None

    def merge(self, override: "Settings") -> "Settings":
        """Right-biased merge: fields set on ``override`` win."""
        changes = {
            item.name: getattr(override, item.name)
            for item in fields(override)
            if getattr(override, item.name) is not None
        }
        return replace(self, **changes)

    def is_empty(self) -> bool:
        return all(getattr(self, item.name) is None for item in fields(self))

    def to_dict(self) -> Dict[str, Any]:
        """Return only the fields that are set, with enums as plain values."""
        data: Dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if value is None:
                continue
            data[item.name] = value.value if isinstance(value, Enum) else value
        return data


@dataclass(frozen=True)
class Message:
    """One turn of a conversation."""

    role: Role
    text: str
    evaluated: bool = False

    def to_payload(self) -> Dict[str, str]:
        """Return the chat-completion wire shape of this message."""
        return {"role": self.role.value, "content": self.text}


@dataclass(frozen=True)
class RuntimeEnvironment:
    """Credentials and endpoint for the completion backend."""

    api_key: str
    base_url: Optional[str] = None

    def __repr__(self) -> str:
        return f"RuntimeEnvironment(api_key='***', base_url={self.base_url!r})"


@dataclass(frozen=True)
class DocumentInvocation:
    """Request to run one named prompt of a document."""

    target_prompt: str
    environment: Optional[RuntimeEnvironment] = None


__all__ = [
    "Role",
    "ResponseFormat",
    "Settings",
    "Message",
    "RuntimeEnvironment",
    "DocumentInvocation",
]
