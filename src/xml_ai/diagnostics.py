"""Compile-time diagnostics for conversation scripts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional

DEFAULT_SEPARATOR = " ∙ "


class ScriptErrorKind(str, Enum):
    """Closed set of things that can be wrong with a script."""

    UNEXPECTED_TAG = "unexpected_tag"
    INVALID_DOCUMENT_CHILD = "invalid_document_child"
    MISSING_ATTRIBUTE = "missing_attribute"
    INVALID_ATTRIBUTE = "invalid_attribute"
    DUPLICATE_PROMPT = "duplicate_prompt"


@dataclass(frozen=True)
class ScriptError:
    """A single diagnostic with the element and attribute it concerns."""

    kind: ScriptErrorKind
    tag: str
    location: str
    attribute: Optional[str] = None
    value: Optional[str] = None

    def __str__(self) -> str:
        if self.kind is ScriptErrorKind.UNEXPECTED_TAG:
            detail = f"unexpected <{self.tag}> element in prompt"
        elif self.kind is ScriptErrorKind.INVALID_DOCUMENT_CHILD:
            detail = f"unexpected <{self.tag}> element at document level, expected <prompt>"
        elif self.kind is ScriptErrorKind.MISSING_ATTRIBUTE:
            detail = f"<{self.tag}> is missing required attribute `{self.attribute}`"
        elif self.kind is ScriptErrorKind.INVALID_ATTRIBUTE:
            detail = f"<{self.tag}> has invalid `{self.attribute}` attribute {self.value!r}"
        else:
            detail = f"duplicate prompt name {self.value!r}"
        return f"{self.location}: {detail}"


class ScriptErrorList:
    """Ordered collection of diagnostics; empty means success."""

    def __init__(self, errors: Optional[Iterable[ScriptError]] = None) -> None:
        self._errors: List[ScriptError] = list(errors or ())

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[ScriptError]:
        return iter(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScriptErrorList):
            return NotImplemented
        return self._errors == other._errors

    def __repr__(self) -> str:
        return f"ScriptErrorList({self._errors!r})"

    def push(self, error: ScriptError) -> None:
        self._errors.append(error)

    def extend(self, other: Iterable[ScriptError]) -> None:
        self._errors.extend(other)

    def union(self, other: "ScriptErrorList") -> "ScriptErrorList":
        """Return a new list holding this list's errors followed by ``other``'s."""
        return ScriptErrorList([*self._errors, *other])

    def kinds(self) -> List[ScriptErrorKind]:
        return [error.kind for error in self._errors]

    def joined(self, separator: str = DEFAULT_SEPARATOR) -> str:
        return separator.join(str(error) for error in self._errors)

    def __str__(self) -> str:
        return self.joined(DEFAULT_SEPARATOR)


__all__ = ["DEFAULT_SEPARATOR", "ScriptErrorKind", "ScriptError", "ScriptErrorList"]
