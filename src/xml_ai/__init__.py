"""Public API for the xml-ai package."""

from __future__ import annotations

from .ast import BreakpointNode, DocumentNode, MsgNode, PromptNode, ScriptNode, SetNode
from .compiler import compile_document, compile_prompt, compile_script_node
from .diagnostics import ScriptError, ScriptErrorKind, ScriptErrorList
from .domain import DocumentInvocation, Message, ResponseFormat, Role, RuntimeEnvironment, Settings
from .exceptions import (
    CompletionError,
    ConfigurationError,
    ConversationError,
    PromptNotFoundError,
    ScriptCompileError,
    SnapshotSaveError,
    XmlAiException,
)
from .markup import Element, Fragment, Text, parse_markup
from .runtime import Conversation, ConversationRuntime, RuntimeState, invoke_document, run_document
from .settings import MergeOutcome, MergeResult, SettingsBuilder
from .snapshot import ConversationSnapshot, MessageSnapshot, to_snapshot

__all__ = [
    "BreakpointNode",
    "DocumentNode",
    "MsgNode",
    "PromptNode",
    "ScriptNode",
    "SetNode",
    "compile_document",
    "compile_prompt",
    "compile_script_node",
    "ScriptError",
    "ScriptErrorKind",
    "ScriptErrorList",
    "DocumentInvocation",
    "Message",
    "ResponseFormat",
    "Role",
    "RuntimeEnvironment",
    "Settings",
    "CompletionError",
    "ConfigurationError",
    "ConversationError",
    "PromptNotFoundError",
    "ScriptCompileError",
    "SnapshotSaveError",
    "XmlAiException",
    "Element",
    "Fragment",
    "Text",
    "parse_markup",
    "Conversation",
    "ConversationRuntime",
    "RuntimeState",
    "invoke_document",
    "run_document",
    "MergeOutcome",
    "MergeResult",
    "SettingsBuilder",
    "ConversationSnapshot",
    "MessageSnapshot",
    "to_snapshot",
]
