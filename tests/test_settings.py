from __future__ import annotations

import math

import pytest

from xml_ai.domain import ResponseFormat, Role, Settings
from xml_ai.settings import SETTINGS_TABLE, MergeOutcome, SettingsBuilder, merge_all


def test_settings_table_covers_every_field() -> None:
    assert sorted(SETTINGS_TABLE) == sorted(
        [
            "name",
            "model",
            "temperature",
            "n",
            "max-tokens",
            "top-p",
            "frequency-penalty",
            "presence-penalty",
            "logprobs",
            "top-logprobs",
            "response-format",
        ]
    )


def test_try_merge_reports_three_outcomes() -> None:
    builder = SettingsBuilder()

    unknown = builder.try_merge("colour", "blue")
    assert unknown.outcome is MergeOutcome.NOT_APPLICABLE
    assert not unknown.applied and not unknown.failed

    applied = builder.try_merge("max-tokens", "256")
    assert applied.applied

    failed = builder.try_merge("temperature", "warm")
    assert failed.failed
    assert failed.reason is not None and "warm" in failed.reason

    assert builder.build() == Settings(max_tokens=256)


def test_builder_parses_every_value_type() -> None:
    builder = SettingsBuilder()
    for key, value in {
        "name": "q1",
        "model": "gpt-4o-mini",
        "temperature": "0.2",
        "n": "+2",
        "top-p": "1e-1",
        "frequency-penalty": "-0.5",
        "presence-penalty": ".5",
        "logprobs": " TRUE ",
        "top-logprobs": "3",
        "response-format": "json-object",
    }.items():
        assert builder.try_merge(key, value).applied, key

    settings = builder.build()
    assert settings.name == "q1"
    assert settings.model == "gpt-4o-mini"
    assert math.isclose(settings.temperature or 0.0, 0.2)
    assert settings.n == 2
    assert math.isclose(settings.top_p or 0.0, 0.1)
    assert settings.frequency_penalty == -0.5
    assert settings.presence_penalty == 0.5
    assert settings.logprobs is True
    assert settings.top_logprobs == 3
    assert settings.response_format is ResponseFormat.JSON_OBJECT


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("temperature", " 0.5"),
        ("temperature", "1_0"),
        ("n", "1.5"),
        ("max-tokens", "1_000"),
        ("max-tokens", ""),
        ("logprobs", "yes"),
        ("response-format", "xml"),
        ("name", "   "),
        ("n", "٣"),
        ("temperature", "٠.٥"),
    ],
)
def test_invalid_values_fail(key: str, value: str) -> None:
    assert SettingsBuilder().try_merge(key, value).failed


@pytest.mark.parametrize("token", ["json_object", "json-object", "JSONOBJECT", "Json_Object"])
def test_response_format_is_separator_and_case_insensitive(token: str) -> None:
    assert ResponseFormat.parse(token) is ResponseFormat.JSON_OBJECT


def test_role_parse_trims_and_ignores_case() -> None:
    assert Role.parse(" User ") is Role.USER
    assert Role.parse("ASSISTANT") is Role.ASSISTANT
    with pytest.raises(ValueError):
        Role.parse("robot")


def test_merge_is_right_biased() -> None:
    base = Settings(model="a", temperature=0.7, n=1)
    override = Settings(temperature=0.2, max_tokens=10)

    merged = base.merge(override)
    assert merged == Settings(model="a", temperature=0.2, n=1, max_tokens=10)
    assert base.merge(Settings()) == base
    assert Settings().merge(base) == base


def test_merge_all_folds_left_to_right() -> None:
    merged = merge_all(Settings(model="a"), Settings(model="b", n=2), Settings(n=3))
    assert merged == Settings(model="b", n=3)


def test_settings_to_dict_keeps_only_set_fields() -> None:
    assert Settings().is_empty()
    settings = Settings(model="m", response_format=ResponseFormat.TEXT)
    assert not settings.is_empty()
    assert settings.to_dict() == {"model": "m", "response_format": "text"}
