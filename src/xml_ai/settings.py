"""Attribute-driven construction of generation settings.

Every recognized markup attribute maps to one :class:`~xml_ai.domain.Settings`
field through a declarative table of parsers. ``SettingsBuilder.try_merge``
reports one of three outcomes so callers can tell an unknown key (ignored)
from a known key with a bad value (an error).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .domain import ResponseFormat, Settings

_INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT_RE = re.compile(
    r"[+-]?(\d+\.?\d*([eE][+-]?\d+)?|\.\d+([eE][+-]?\d+)?|inf|infinity|nan)",
    re.IGNORECASE | re.ASCII,
)


def _parse_name(value: str) -> str:
    if not value.strip():
        raise ValueError("name must not be empty")
    return value


def _parse_string(value: str) -> str:
    return value


def _parse_float(value: str) -> float:
    if not _FLOAT_RE.fullmatch(value):
        raise ValueError(f"not a number: {value!r}")
    return float(value)


def _parse_int(value: str) -> int:
    if not _INTEGER_RE.fullmatch(value):
        raise ValueError(f"not an integer: {value!r}")
    return int(value)


def _parse_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    raise ValueError(f"not a boolean: {value!r}")


@dataclass(frozen=True)
class SettingSpec:
    """How one markup attribute becomes one settings field."""

    key: str
    field: str
    parser: Callable[[str], Any]


SETTINGS_TABLE: Dict[str, SettingSpec] = {
    entry.key: entry
    for entry in (
        SettingSpec("name", "name", _parse_name),
        SettingSpec("model", "model", _parse_string),
        SettingSpec("temperature", "temperature", _parse_float),
        SettingSpec("n", "n", _parse_int),
        SettingSpec("max-tokens", "max_tokens", _parse_int),
        SettingSpec("top-p", "top_p", _parse_float),
        SettingSpec("frequency-penalty", "frequency_penalty", _parse_float),
        SettingSpec("presence-penalty", "presence_penalty", _parse_float),
        SettingSpec("logprobs", "logprobs", _parse_bool),
        SettingSpec("top-logprobs", "top_logprobs", _parse_int),
        SettingSpec("response-format", "response_format", ResponseFormat.parse),
    )
}


class MergeOutcome(str, Enum):
    NOT_APPLICABLE = "not_applicable"
    APPLIED = "applied"
    ERROR = "error"


@dataclass(frozen=True)
class MergeResult:
    """Outcome of offering one attribute to a :class:`SettingsBuilder`."""

    outcome: MergeOutcome
    key: str
    reason: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.outcome is MergeOutcome.APPLIED

    @property
    def failed(self) -> bool:
        return self.outcome is MergeOutcome.ERROR


class SettingsBuilder:
    """Accumulates parsed attribute values into a :class:`Settings`."""

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}

    def try_merge(self, key: str, value: str) -> MergeResult:
        entry = SETTINGS_TABLE.get(key)
        if entry is None:
            return MergeResult(MergeOutcome.NOT_APPLICABLE, key)
        try:
            parsed = entry.parser(value)
        except ValueError as exc:
            return MergeResult(MergeOutcome.ERROR, key, str(exc))
        self._values[entry.field] = parsed
        return MergeResult(MergeOutcome.APPLIED, key)

    def build(self) -> Settings:
        return Settings(**self._values)


def merge_all(*layers: Settings) -> Settings:
    """Fold ``layers`` left to right with right-biased merge."""
    merged = Settings()
    for layer in layers:
        merged = merged.merge(layer)
    return merged


__all__ = [
    "SETTINGS_TABLE",
    "SettingSpec",
    "MergeOutcome",
    "MergeResult",
    "SettingsBuilder",
    "merge_all",
]
