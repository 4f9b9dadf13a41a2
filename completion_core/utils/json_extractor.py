"""
JSON extraction from model output.
"""

import json
import re
from typing import Any, Dict

from completion_core.exceptions import ValidationError

_FENCE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


def extract_json_from_response(text: str) -> Dict[str, Any]:
    """
    Extract a JSON object from raw model text.

    Tolerates a surrounding code fence and prose before or after the object.

    Args:
        text: Raw model output

    Returns:
        Parsed JSON object

    Raises:
        ValidationError: If no JSON object can be parsed
    """
    for candidate in _candidates(text):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    raise ValidationError("No JSON object found in response")


def _candidates(text: str):
    stripped = text.strip()
    fenced = _FENCE.search(stripped)
    if fenced:
        yield fenced.group(1).strip()

    yield stripped

    start = stripped.find("{")
    end = stripped.rfind("}")
    if start != -1 and end > start:
        yield stripped[start : end + 1]
