"""Typed conversation-script nodes produced by :mod:`xml_ai.compiler`."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple, Union

from .domain import Role, Settings
from .markup import Fragment, MarkupTextError, text_content

PROMPT_TAG = "prompt"
MSG_TAG = "msg"
BREAKPOINT_TAG = "breakpoint"
SET_TAG = "set"


@dataclass(frozen=True)
class MsgNode:
    """A message authored directly in the script.

    The body stays as markup until the runtime renders it.
    """

    role: Role
    body: Fragment = field(default_factory=Fragment)

    def text_content(self) -> str:
        """Render the body to message text.

        Pure-text bodies are concatenated as-is. Bodies with nested elements
        render each top-level element's text and join them with newlines;
        loose text between those elements is dropped.
        """
        try:
            return "".join(self.body.extract_text_strict())
        except MarkupTextError:
            pass
        return "\n".join(text_content(element) for element in self.body.extract_elements())


@dataclass(frozen=True)
class BreakpointNode:
    """Forces a completion call whose result is appended under ``role``."""

    role: Role


@dataclass(frozen=True)
class SetNode:
    """Overrides effective settings for the rest of the conversation."""

    settings: Settings


ScriptNode = Union[MsgNode, BreakpointNode, SetNode]


@dataclass(frozen=True)
class PromptNode:
    """A named conversation script."""

    settings: Settings
    children: Tuple[ScriptNode, ...] = ()

    @property
    def name(self) -> str:
        return self.settings.name or ""

    def breakpoints(self) -> List[BreakpointNode]:
        return [child for child in self.children if isinstance(child, BreakpointNode)]


@dataclass(frozen=True)
class DocumentNode:
    """Every prompt defined by one source, in declaration order."""

    prompts: Tuple[PromptNode, ...] = ()

    def __iter__(self) -> Iterator[PromptNode]:
        return iter(self.prompts)

    def __len__(self) -> int:
        return len(self.prompts)

    def prompt_names(self) -> List[str]:
        return [prompt.name for prompt in self.prompts]

    def find_prompt(self, name: str) -> Optional[PromptNode]:
        """Return the prompt called ``name`` (exact match), if any."""
        for prompt in self.prompts:
            if prompt.name == name:
                return prompt
        return None


__all__ = [
    "PROMPT_TAG",
    "MSG_TAG",
    "BREAKPOINT_TAG",
    "SET_TAG",
    "MsgNode",
    "BreakpointNode",
    "SetNode",
    "ScriptNode",
    "PromptNode",
    "DocumentNode",
]
