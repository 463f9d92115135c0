"""Compile a generic markup tree into a typed conversation script.

Compilation is fail-slow: every sibling is compiled even after one fails, and
a parent only succeeds when no error was found anywhere below it. Errors are
collected in source order so the joined diagnostic is reproducible.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set, Union

from .ast import (
    BREAKPOINT_TAG,
    MSG_TAG,
    PROMPT_TAG,
    SET_TAG,
    BreakpointNode,
    DocumentNode,
    MsgNode,
    PromptNode,
    ScriptNode,
    SetNode,
)
from .diagnostics import ScriptError, ScriptErrorKind, ScriptErrorList
from .domain import Role, Settings
from .exceptions import ScriptCompileError
from .markup import Element, Fragment, Node, flatten, parse_markup
from .settings import SettingsBuilder

LOGGER = logging.getLogger(__name__)


def _child_location(parent: str, element: Element, index: int) -> str:
    return f"{parent}/{element.tag}[{index}]" if parent else f"{element.tag}[{index}]"


def _parse_role(element: Element, location: str, errors: ScriptErrorList) -> Optional[Role]:
    raw = element.attributes.get("role")
    if raw is None:
        errors.push(ScriptError(ScriptErrorKind.MISSING_ATTRIBUTE, element.tag, location, attribute="role"))
        return None
    try:
        return Role.parse(raw)
    except ValueError:
        errors.push(ScriptError(ScriptErrorKind.INVALID_ATTRIBUTE, element.tag, location, "role", raw))
        return None


def _parse_settings(element: Element, location: str, errors: ScriptErrorList) -> Settings:
    builder = SettingsBuilder()
    for key, value in element.attributes.items():
        result = builder.try_merge(key, value)
        if result.failed:
            errors.push(ScriptError(ScriptErrorKind.INVALID_ATTRIBUTE, element.tag, location, key, value))
    return builder.build()


def _compile_msg(element: Element, location: str, errors: ScriptErrorList) -> Optional[MsgNode]:
    role = _parse_role(element, location, errors)
    if role is None:
        return None
    return MsgNode(role=role, body=element.children)


def _compile_breakpoint(element: Element, location: str, errors: ScriptErrorList) -> Optional[BreakpointNode]:
    role = _parse_role(element, location, errors)
    if role is None:
        return None
    return BreakpointNode(role=role)


def _compile_set(element: Element, location: str, errors: ScriptErrorList) -> Optional[SetNode]:
    local = ScriptErrorList()
    settings = _parse_settings(element, location, local)
    errors.extend(local)
    if local:
        return None
    return SetNode(settings=settings)


def _compile_script_node(element: Element, location: str, errors: ScriptErrorList) -> Optional[ScriptNode]:
    if element.matches(MSG_TAG):
        return _compile_msg(element, location, errors)
    if element.matches(BREAKPOINT_TAG):
        return _compile_breakpoint(element, location, errors)
    if element.matches(SET_TAG):
        return _compile_set(element, location, errors)
    errors.push(ScriptError(ScriptErrorKind.UNEXPECTED_TAG, element.tag, location))
    return None


def _compile_prompt(element: Element, location: str, errors: ScriptErrorList) -> Optional[PromptNode]:
    local = ScriptErrorList()
    settings = _parse_settings(element, location, local)
    if "name" not in element.attributes:
        local.push(ScriptError(ScriptErrorKind.MISSING_ATTRIBUTE, element.tag, location, attribute="name"))

    children: List[ScriptNode] = []
    for index, child in enumerate(element.child_elements()):
        node = _compile_script_node(child, _child_location(location, child, index), local)
        if node is not None:
            children.append(node)

    errors.extend(local)
    if local:
        return None
    return PromptNode(settings=settings, children=tuple(children))


def _compile_document(fragment: Fragment, errors: ScriptErrorList) -> Optional[DocumentNode]:
    prompts: List[PromptNode] = []
    seen_names: Set[str] = set()
    for index, element in enumerate(fragment.extract_elements()):
        location = _child_location("", element, index)
        if not element.matches(PROMPT_TAG):
            errors.push(ScriptError(ScriptErrorKind.INVALID_DOCUMENT_CHILD, element.tag, location))
            continue
        name = element.attributes.get("name")
        if name is not None and name in seen_names:
            errors.push(ScriptError(ScriptErrorKind.DUPLICATE_PROMPT, element.tag, location, "name", name))
        elif name is not None:
            seen_names.add(name)
        prompt = _compile_prompt(element, location, errors)
        if prompt is not None:
            prompts.append(prompt)
    if errors:
        return None
    return DocumentNode(prompts=tuple(prompts))


def compile_script_node(element: Element) -> ScriptNode:
    """Compile one prompt child element.

    Raises:
        ScriptCompileError: If the element is not a valid msg, breakpoint or set
    """
    errors = ScriptErrorList()
    node = _compile_script_node(element, _child_location("", element, 0), errors)
    if node is None:
        raise ScriptCompileError(errors)
    return node


def compile_prompt(element: Element) -> PromptNode:
    """Compile one ``<prompt>`` element and all of its children.

    Raises:
        ScriptCompileError: With every error found in the prompt
    """
    errors = ScriptErrorList()
    if not element.matches(PROMPT_TAG):
        errors.push(ScriptError(ScriptErrorKind.INVALID_DOCUMENT_CHILD, element.tag, _child_location("", element, 0)))
        raise ScriptCompileError(errors)
    prompt = _compile_prompt(element, _child_location("", element, 0), errors)
    if prompt is None:
        raise ScriptCompileError(errors, {"prompt": element.attributes.get("name", "?")})
    return prompt


def compile_document(tree: Union[Node, str]) -> DocumentNode:
    """Compile a whole document.

    Args:
        tree: A parsed markup node, or markup source text to parse first

    Raises:
        ScriptCompileError: With the union of every prompt's errors, in source order
    """
    if isinstance(tree, str):
        tree = parse_markup(tree)
    fragment = Fragment.from_nodes(flatten(tree))
    errors = ScriptErrorList()
    document = _compile_document(fragment, errors)
    if document is None:
        LOGGER.debug("Document compilation failed with %d error(s)", len(errors))
        raise ScriptCompileError(errors, {"errors": len(errors)})
    LOGGER.debug("Compiled document with prompts: %s", ", ".join(document.prompt_names()) or "(none)")
    return document


__all__ = ["compile_document", "compile_prompt", "compile_script_node"]
