"""Persistence-ready snapshots of finished conversations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Tuple

from .domain import Message, Role

if TYPE_CHECKING:
    from .runtime import Conversation


@dataclass(frozen=True)
class MessageSnapshot:
    """One message and whether the completion backend produced it."""

    message_payload: Dict[str, str]
    evaluated: bool

    @classmethod
    def from_message(cls, message: Message) -> "MessageSnapshot":
        return cls(message_payload=message.to_payload(), evaluated=message.evaluated)

    @property
    def role(self) -> Role:
        return Role(self.message_payload["role"])

    @property
    def text(self) -> str:
        return self.message_payload["content"]

    def to_dict(self) -> Dict[str, Any]:
        return {"message_payload": dict(self.message_payload), "evaluated": self.evaluated}


@dataclass(frozen=True)
class ConversationSnapshot:
    """Ordered record of a conversation, independent of any file format."""

    messages: Tuple[MessageSnapshot, ...]
    prompt: Optional[str] = None

    @classmethod
    def from_messages(cls, messages: Iterable[Message], prompt: Optional[str] = None) -> "ConversationSnapshot":
        return cls(messages=tuple(MessageSnapshot.from_message(message) for message in messages), prompt=prompt)

    def __len__(self) -> int:
        return len(self.messages)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"messages": [message.to_dict() for message in self.messages]}
        if self.prompt is not None:
            data["prompt"] = self.prompt
        return data


def to_snapshot(conversation: "Conversation") -> ConversationSnapshot:
    """Export a conversation's messages in order, evaluation flags included."""
    return ConversationSnapshot.from_messages(conversation.messages, prompt=conversation.prompt_name)


__all__ = ["MessageSnapshot", "ConversationSnapshot", "to_snapshot"]
