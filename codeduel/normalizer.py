"""
Turn free-text model output into solution text or a well-formed Evaluation.

Every function here is pure and total: bad input yields a fixed fallback
Evaluation instead of an exception.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from codeduel.logger import setup_logger
from codeduel.models import Evaluation
from codeduel.utils.helpers import preview

logger = setup_logger(__name__)

EVALUATION_FIELDS = ("score", "critique", "improvements", "verdict")

# Known tags (python, py, json) are dropped even when code follows on the same
# line. Any other tag only counts when the rest of its line is empty, so text
# following a closing fence on the same line is kept.
_FENCE_RE = re.compile(
    r"```(?:(?:python3?|py|json)\b[ \t]*\r?\n?|[\w+#.-]+[ \t]*\r?\n|[ \t]*\r?\n?)",
    re.IGNORECASE,
)
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

EMPTY_RESPONSE_EVALUATION = Evaluation(
    score="N/A",
    critique="The reviewing model returned an empty response.",
    improvements="No suggestions were produced for this solution.",
    verdict="Evaluation unavailable - please try again.",
)

MALFORMED_RESPONSE_EVALUATION = Evaluation(
    score="N/A",
    critique="Unable to parse evaluation response.",
    improvements="The evaluation could not be properly formatted.",
    verdict="Evaluation error - please try again.",
)

PROVIDER_FAILURE_EVALUATION = Evaluation(
    score="5/10",
    critique="Evaluation could not be completed due to technical issues.",
    improvements="Unable to provide specific improvements at this time.",
    verdict="Please retry evaluation for detailed analysis.",
)


def strip_code_fences(text: str) -> str:
    """
    Remove fenced-code-block markers and surrounding whitespace.

    Handles language-tagged (```python, ```JSON) and bare (```) markers
    anywhere in the text. Applying it twice gives the same result as once.
    """
    return _FENCE_RE.sub("", text).strip()


def normalize_solution(raw_text: Optional[str]) -> str:
    """Clean a model's code answer. An empty string is a valid result."""
    return strip_code_fences(raw_text or "")


def extract_json_object(text: str) -> Optional[str]:
    """
    Return the span from the first '{' to the last '}', if any.

    Tolerates commentary before and after the JSON object.
    """
    match = _JSON_OBJECT_RE.search(text)
    if match is None:
        return None
    return match.group(0)


def _coerce_field(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, str):
        text = value.strip()
    elif isinstance(value, (int, float)):
        text = str(value)
    elif isinstance(value, list) and all(
        isinstance(item, (str, int, float)) for item in value
    ):
        text = "\n".join(str(item).strip() for item in value).strip()
    else:
        return None
    return text or None


def normalize_evaluation(raw_text: Optional[str]) -> Evaluation:
    """
    Parse a model's evaluation answer into an Evaluation.

    Steps:
        1. Empty or whitespace-only text -> EMPTY_RESPONSE_EVALUATION
        2. Strip code fences
        3. Narrow to the embedded JSON object when one is present
        4. Parse; any failure or missing/blank field -> MALFORMED_RESPONSE_EVALUATION
        5. Keep exactly the four evaluation fields

    Never raises.
    """
    if raw_text is None or not raw_text.strip():
        logger.warning("⚠️ Empty evaluation response from provider")
        return EMPTY_RESPONSE_EVALUATION

    content = strip_code_fences(raw_text)
    embedded = extract_json_object(content)
    if embedded is not None:
        content = embedded

    try:
        parsed = json.loads(content)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, oversized integer literals and deep nesting
        logger.error(f"❌ Failed to parse evaluation JSON ({type(e).__name__}): {preview(content)}")
        return MALFORMED_RESPONSE_EVALUATION

    if not isinstance(parsed, dict):
        logger.error(f"❌ Evaluation is not a JSON object: {preview(content)}")
        return MALFORMED_RESPONSE_EVALUATION

    fields = {}
    for name in EVALUATION_FIELDS:
        value = _coerce_field(parsed.get(name))
        if value is None:
            logger.error(f"❌ Evaluation missing field '{name}': {preview(content)}")
            return MALFORMED_RESPONSE_EVALUATION
        fields[name] = value

    return Evaluation(**fields)
