"""Conversation runtime: executes one compiled prompt turn by turn."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import List, Optional, Tuple

from .ast import BreakpointNode, DocumentNode, MsgNode, PromptNode, ScriptNode, SetNode
from .domain import DocumentInvocation, Message, Role, Settings
from .exceptions import CompletionError, ConfigurationError, ConversationError, PromptNotFoundError
from .services import ICompletionService
from .snapshot import ConversationSnapshot, to_snapshot

LOGGER = logging.getLogger(__name__)


class RuntimeState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    DONE = "done"
    FAILED = "failed"


class Conversation:
    """Append-only message log plus the settings in effect.

    A conversation is frozen once :meth:`finish` has been called.
    """

    def __init__(self, settings: Optional[Settings] = None, prompt_name: Optional[str] = None) -> None:
        self._messages: List[Message] = []
        self._settings = settings or Settings()
        self._prompt_name = prompt_name
        self._finished = False

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def prompt_name(self) -> Optional[str]:
        return self._prompt_name

    @property
    def finished(self) -> bool:
        return self._finished

    def already_evaluated(self) -> bool:
        """True when the last message came from the completion backend."""
        return bool(self._messages) and self._messages[-1].evaluated

    def _ensure_open(self) -> None:
        if self._finished:
            raise ConversationError("conversation is finished", {"prompt": self._prompt_name})

    def append(self, message: Message) -> None:
        self._ensure_open()
        self._messages.append(message)

    def apply(self, settings: Settings) -> None:
        """Merge ``settings`` over the effective settings for later calls."""
        self._ensure_open()
        self._settings = self._settings.merge(settings)

    def finish(self) -> None:
        self._finished = True

    def to_snapshot(self) -> ConversationSnapshot:
        return to_snapshot(self)


class ConversationRuntime:
    """State machine driving a single invocation of a prompt.

    Children are processed strictly in order. A breakpoint, and the implicit
    trailing evaluation, wait for the completion service before the script
    advances, so every call sees all ``<set>`` nodes that precede it and only
    the messages appended before it.
    """

    def __init__(
        self,
        prompt: PromptNode,
        completion_service: ICompletionService,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._prompt = prompt
        self._service = completion_service
        self._logger = logger or LOGGER
        self._state = RuntimeState.IDLE
        self._conversation: Optional[Conversation] = None
        self._calls = 0

    @property
    def state(self) -> RuntimeState:
        return self._state

    @property
    def conversation(self) -> Optional[Conversation]:
        return self._conversation

    @property
    def completion_calls(self) -> int:
        return self._calls

    async def run(self) -> Conversation:
        """Execute the prompt and return the finished conversation.

        Raises:
            ConversationError: If this runtime has already been used
            CompletionError: If the completion service fails; no retry is attempted
        """
        if self._state is not RuntimeState.IDLE:
            raise ConversationError("runtime already started", {"state": self._state.value})

        conversation = Conversation(self._prompt.settings, self._prompt.name)
        self._conversation = conversation
        self._state = RuntimeState.ACCUMULATING
        self._logger.debug(
            "Invoking prompt %r (%d children, %d breakpoints)",
            self._prompt.name,
            len(self._prompt.children),
            len(self._prompt.breakpoints()),
        )

        try:
            for child in self._prompt.children:
                await self._step(conversation, child)
            if not conversation.already_evaluated():
                await self._evaluate(conversation, Role.ASSISTANT)
        except CompletionError:
            self._state = RuntimeState.FAILED
            raise

        conversation.finish()
        self._state = RuntimeState.DONE
        self._logger.debug(
            "Prompt %r done: %d messages, %d completion calls",
            self._prompt.name,
            len(conversation.messages),
            self._calls,
        )
        return conversation

    async def _step(self, conversation: Conversation, child: ScriptNode) -> None:
        if isinstance(child, MsgNode):
            conversation.append(Message(role=child.role, text=child.text_content(), evaluated=False))
        elif isinstance(child, SetNode):
            conversation.apply(child.settings)
        elif isinstance(child, BreakpointNode):
            await self._evaluate(conversation, child.role)
        else:
            raise ConversationError(f"unsupported script node {type(child).__name__}")

    async def _evaluate(self, conversation: Conversation, role: Role) -> None:
        messages = conversation.messages
        settings = conversation.settings
        self._logger.debug(
            "Completion call %d for prompt %r with %d messages", self._calls + 1, self._prompt.name, len(messages)
        )
        try:
            text = await self._service.complete(messages, settings)
        except CompletionError as exc:
            self._attach_partial(exc, conversation)
            raise
        except Exception as exc:
            error = CompletionError(f"completion service failed: {exc}", context={"prompt": self._prompt.name})
            self._attach_partial(error, conversation)
            raise error from exc
        self._calls += 1
        conversation.append(Message(role=role, text=text, evaluated=True))

    def _attach_partial(self, error: CompletionError, conversation: Conversation) -> None:
        error.partial_snapshot = conversation.to_snapshot()
        error.completed_calls = self._calls
        self._logger.error(
            "Completion call failed for prompt %r after %d successful call(s): %s",
            self._prompt.name,
            self._calls,
            error.message,
        )


async def invoke_document(
    document: DocumentNode,
    invocation: DocumentInvocation,
    completion_service: Optional[ICompletionService] = None,
) -> Conversation:
    """Run the first prompt whose name equals ``invocation.target_prompt``.

    When no service is given, an OpenAI-compatible client is built from the
    invocation's runtime environment and closed afterwards.

    Raises:
        PromptNotFoundError: If no prompt has the requested name
        CompletionError: If the completion backend fails
    """
    prompt = document.find_prompt(invocation.target_prompt)
    if prompt is None:
        raise PromptNotFoundError(invocation.target_prompt, document.prompt_names())

    if completion_service is not None:
        return await ConversationRuntime(prompt, completion_service).run()

    if invocation.environment is None:
        raise ConfigurationError("no completion service and no runtime environment given")

    from .infrastructure.completion_client import OpenAICompletionClient

    kwargs = {"base_url": invocation.environment.base_url} if invocation.environment.base_url else {}
    async with OpenAICompletionClient(api_key=invocation.environment.api_key, **kwargs) as client:
        return await ConversationRuntime(prompt, client).run()


def run_document(
    document: DocumentNode,
    invocation: DocumentInvocation,
    completion_service: Optional[ICompletionService] = None,
) -> Conversation:
    """Synchronous wrapper around :func:`invoke_document`."""
    return asyncio.run(invoke_document(document, invocation, completion_service))


__all__ = [
    "RuntimeState",
    "Conversation",
    "ConversationRuntime",
    "invoke_document",
    "run_document",
]
