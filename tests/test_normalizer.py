from __future__ import annotations

import pytest

from codeduel.models import Evaluation
from codeduel.normalizer import (
    EMPTY_RESPONSE_EVALUATION,
    EVALUATION_FIELDS,
    MALFORMED_RESPONSE_EVALUATION,
    PROVIDER_FAILURE_EVALUATION,
    extract_json_object,
    normalize_evaluation,
    normalize_solution,
    strip_code_fences,
)

HUGE_INTEGER_EVALUATION = (
    '{"score": ' + "9" * 5000 + ', "critique": "a", "improvements": "b", "verdict": "c"}'
)
DEEPLY_NESTED_EVALUATION = '{"score":' + "[" * 5000 + "]" * 5000 + "}"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("```python\ndef solve(a,b): return a+b\n```", "def solve(a,b): return a+b"),
        ("```Python\nx = 1\n```\n", "x = 1"),
        ("```\nprint('hi')\n```", "print('hi')"),
        ("  def f():\n    return 1  ", "def f():\n    return 1"),
        ("```cpp\nint main() {}\n```", "int main() {}"),
        ("```python print(1)```", "print(1)"),
        ("```JSON {\"a\": 1}\n```", "{\"a\": 1}"),
        ("```python", ""),
        ("", ""),
    ],
)
def test_normalize_solution_strips_fences_and_whitespace(raw: str, expected: str) -> None:
    assert normalize_solution(raw) == expected


def test_normalize_solution_accepts_none() -> None:
    assert normalize_solution(None) == ""


def test_closing_fence_keeps_text_on_same_line() -> None:
    assert strip_code_fences("```python\nx = 1\n```Done") == "x = 1\nDone"


@pytest.mark.parametrize(
    "raw",
    [
        "```python\ncode\n```",
        "``````",
        "````python\n``",
        "``\n```\n```python\n`",
        "a```b```c```",
        "```python print(1)```",
        "```py\n```pyramid\n```",
        "```json\n{}\n```\n```\n```",
        "no fences at all",
        "`single` and ``double`` ticks",
        "   ",
    ],
)
def test_normalize_solution_is_idempotent(raw: str) -> None:
    once = normalize_solution(raw)
    assert normalize_solution(once) == once


def test_extract_json_object_spans_first_to_last_brace() -> None:
    text = 'Sure! {"a": {"b": 1}} and {"c": 2} bye'
    assert extract_json_object(text) == '{"a": {"b": 1}} and {"c": 2}'
    assert extract_json_object("no json here") is None


def test_normalize_evaluation_extracts_json_from_commentary() -> None:
    raw = (
        'Here you go: {"score":"8/10","critique":"ok","improvements":"none",'
        '"verdict":"good"} Thanks!'
    )

    result = normalize_evaluation(raw)

    assert result.model_dump() == {
        "score": "8/10",
        "critique": "ok",
        "improvements": "none",
        "verdict": "good",
    }


def test_normalize_evaluation_handles_json_fences_and_extra_fields() -> None:
    raw = (
        "```json\n"
        '{"score": "9/10", "critique": "Clean", "improvements": "Add tests",'
        ' "verdict": "Great", "confidence": 0.9}\n'
        "```"
    )

    result = normalize_evaluation(raw)

    assert result == Evaluation(
        score="9/10", critique="Clean", improvements="Add tests", verdict="Great"
    )


def test_normalize_evaluation_coerces_numbers_and_lists() -> None:
    raw = (
        '{"score": 7, "critique": "fine", '
        '"improvements": ["use a set", "early return"], "verdict": "good"}'
    )

    result = normalize_evaluation(raw)

    assert result.score == "7"
    assert result.improvements == "use a set\nearly return"


@pytest.mark.parametrize("raw", [None, "", "   \n\t "])
def test_empty_response_gets_empty_fallback(raw) -> None:
    assert normalize_evaluation(raw) == EMPTY_RESPONSE_EVALUATION


@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        "{broken json",
        '{"score": "8/10", "critique": "ok"}',
        '{"score": "8/10", "critique": "", "improvements": "x", "verdict": "y"}',
        '{"score": null, "critique": "a", "improvements": "b", "verdict": "c"}',
        '{"score": {"v": 1}, "critique": "a", "improvements": "b", "verdict": "c"}',
        '["score", "critique"]',
        "42",
    ],
)
def test_malformed_response_gets_malformed_fallback(raw: str) -> None:
    assert normalize_evaluation(raw) == MALFORMED_RESPONSE_EVALUATION


def test_fallbacks_are_distinct() -> None:
    fallbacks = {
        EMPTY_RESPONSE_EVALUATION.critique,
        MALFORMED_RESPONSE_EVALUATION.critique,
        PROVIDER_FAILURE_EVALUATION.critique,
    }
    assert len(fallbacks) == 3
    assert PROVIDER_FAILURE_EVALUATION.score == "5/10"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "}{",
        "{{{{",
        "```",
        '{"score": "1/10"}} trailing',
        "null",
        "\x00\x01",
        '{"score":"3/10","critique":"c","improvements":"i","verdict":"v"}',
        "prefix {\"score\": true, \"critique\": 1, \"improvements\": 2.5, \"verdict\": [1]}",
        HUGE_INTEGER_EVALUATION,
        DEEPLY_NESTED_EVALUATION,
    ],
)
def test_normalize_evaluation_is_total(raw: str) -> None:
    result = normalize_evaluation(raw)

    for field in EVALUATION_FIELDS:
        value = getattr(result, field)
        assert isinstance(value, str)
        assert value.strip()


def test_unknown_tag_followed_by_code_is_kept() -> None:
    assert strip_code_fences("```pyramid x```") == "pyramid x"


def test_deeply_nested_json_gets_malformed_fallback() -> None:
    assert normalize_evaluation(DEEPLY_NESTED_EVALUATION) == MALFORMED_RESPONSE_EVALUATION
