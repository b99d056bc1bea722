"""Turn raw model replies into structured data."""

from __future__ import annotations

import json
from typing import Any

from engines.llm_errors import ParseError

PREVIEW_LENGTH = 200


def strip_code_fences(text: str) -> str:
    """Remove an optional ```json / ``` wrapper around a reply."""

    cleaned = (text or "").strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    elif cleaned.startswith("```"):
        cleaned = cleaned[len("```"):]
    if cleaned.endswith("```"):
        cleaned = cleaned[: -len("```")]
    return cleaned.strip()


def parse_json_reply(text: str) -> Any:
    """Parse a reply as JSON, tolerating Markdown code fences.

    Raises :class:`ParseError` with a preview of the cleaned text when the
    payload is not valid JSON.
    """

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except (TypeError, ValueError) as exc:
        preview = cleaned[:PREVIEW_LENGTH]
        raise ParseError(
            f"Failed to parse JSON response: {exc}\nResponse preview: {preview}...",
            preview=preview,
        ) from exc


__all__ = ["PREVIEW_LENGTH", "parse_json_reply", "strip_code_fences"]
