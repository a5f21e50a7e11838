"""
Stage 1: JSON Parse Validation.

Recover the JSON array of questions from raw model text. Models wrap their
answer in ```json fences or add a sentence before or after it (sometimes
with brackets of its own), so the text is scanned for the first embedded
JSON value that looks like question data. A lone object is accepted as a
one-question array.
"""

import json
import re
from typing import Any

import structlog

from question_extractor.monitoring.metrics import malformed_responses_total
from question_extractor.validation.exceptions import JSONParseError

logger = structlog.get_logger(__name__)

_FENCE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)
_VALUE_START = re.compile(r"[\[{]")
_DECODER = json.JSONDecoder()


def strip_code_fences(content: str) -> str:
    """Return the body of the first fenced block, or the text unchanged."""
    match = _FENCE.search(content)
    if match:
        return match.group(1).strip()
    return content.strip()


def _is_object_payload(value: Any) -> bool:
    if isinstance(value, dict):
        return True
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


def find_json_payload(content: str) -> Any:
    """
    Decode the first embedded JSON object or array of objects.

    Every `[` or `{` is a candidate start, tried in order with
    JSONDecoder.raw_decode. Candidates inside text an earlier candidate
    already consumed are skipped, so a truncated array never yields one of
    its own elements. A decoded value that is not an object or an array of
    objects (e.g. "[1]" in chatter) is remembered and only returned when
    nothing better follows.

    Examples:
        >>> find_json_payload('Here you go [JSON]: [{"a": 1}] Enjoy!')
        [{'a': 1}]
        >>> find_json_payload('{"q": "x", "options": [1, 2]}')
        {'q': 'x', 'options': [1, 2]}

    Raises:
        json.JSONDecodeError: If no candidate decodes
    """
    first_error: json.JSONDecodeError | None = None
    fallback: list[Any] = []
    resume_at = 0

    for match in _VALUE_START.finditer(content):
        start = match.start()
        if start < resume_at:
            continue
        try:
            value, end = _DECODER.raw_decode(content, start)
        except json.JSONDecodeError as e:
            if first_error is None:
                first_error = e
            resume_at = max(resume_at, e.pos)
            continue

        if _is_object_payload(value):
            return value
        if not fallback:
            fallback.append(value)
        resume_at = end

    if fallback:
        return fallback[0]
    if first_error is not None:
        raise first_error
    return json.loads(content)


class Stage1JSONParse:
    """
    Stage 1 validator: model text to list of dicts.

    Raises JSONParseError on empty or undecodable content (hard fail).
    """

    def validate(self, content: str) -> list[Any]:
        """
        Parse the question array out of model text.

        Args:
            content: Raw text from the winning model

        Returns:
            Parsed list (items are checked by Stage 2)

        Raises:
            JSONParseError: If no JSON array can be recovered
        """
        if not content or not content.strip():
            malformed_responses_total.labels(stage="stage1", error_type="empty_content").inc()
            raise JSONParseError(
                "Model response content is empty or whitespace-only",
                raw_content=content,
                parse_error="Empty content"
            )

        try:
            parsed = find_json_payload(strip_code_fences(content))
        except json.JSONDecodeError as e:
            malformed_responses_total.labels(stage="stage1", error_type="json_decode_error").inc()
            raise JSONParseError(
                f"Failed to parse model response as JSON: {e.msg}",
                raw_content=content,
                parse_error=f"{e.msg} at line {e.lineno} col {e.colno}"
            ) from e

        if isinstance(parsed, dict):
            parsed = [parsed]

        if not isinstance(parsed, list):
            malformed_responses_total.labels(stage="stage1", error_type="not_json_array").inc()
            raise JSONParseError(
                f"Model response is not a JSON array (got {type(parsed).__name__})",
                raw_content=content,
                parse_error=f"Expected list, got {type(parsed).__name__}"
            )

        logger.debug("Stage 1: parsed JSON array", items=len(parsed))
        return parsed
