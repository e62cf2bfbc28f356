"""Parse the JSON object a provider was asked to emit."""

from __future__ import annotations

import json
import re
from typing import Any

from tender_rag.llm.errors import MalformedOutputError

_FENCE_OPEN = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```\s*$")
_OBJECT_SPAN = re.compile(r"\{[\s\S]*\}")


def strip_code_fence(text: str) -> str:
    return _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text)).strip()


def parse_json_response(text: str | None) -> dict[str, Any]:
    """Decode a JSON object, tolerating code fences and surrounding prose.

    Raises:
        MalformedOutputError: If no JSON object can be recovered.
    """
    if not text or not text.strip():
        raise MalformedOutputError("Empty response")

    cleaned = strip_code_fence(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _OBJECT_SPAN.search(cleaned)
        if not match:
            raise MalformedOutputError("No JSON object found in response") from None
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise MalformedOutputError(f"Invalid JSON in response: {exc}") from exc

    if not isinstance(parsed, dict):
        raise MalformedOutputError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
