"""Boundary between free-text model output and typed records."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Literal

from pydantic import ValidationError

from praxis_engine.core.errors import CognitionProtocolError
from praxis_engine.core.types import ScreenAnalysis, Thought

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)

_DELIMITERS = {"object": ("{", "}"), "array": ("[", "]")}


def extract_json(text: str, kind: Literal["object", "array"] = "object") -> Any:
    """Decode the first-to-last brace block of ``text``.

    Fenced code blocks are unwrapped first. Raises ``CognitionProtocolError``
    when no block is present or it does not decode.
    """

    if not text:
        raise CognitionProtocolError("Empty response from cognition service")
    fenced = _FENCE_RE.search(text)
    body = fenced.group(1) if fenced else text
    opener, closer = _DELIMITERS[kind]
    start = body.find(opener)
    end = body.rfind(closer)
    if start == -1 or end <= start:
        raise CognitionProtocolError(f"No JSON {kind} found in response")
    try:
        return json.loads(body[start : end + 1])
    except json.JSONDecodeError as exc:
        raise CognitionProtocolError(f"Invalid JSON {kind} in response: {exc}") from exc


def parse_thought(text: str) -> Thought:
    payload = extract_json(text, "object")
    try:
        return Thought.model_validate(payload)
    except ValidationError as exc:
        raise CognitionProtocolError(f"Malformed reasoning response: {exc}") from exc


def parse_screen_analysis(text: str) -> ScreenAnalysis:
    payload = extract_json(text, "object")
    try:
        return ScreenAnalysis.model_validate(payload)
    except ValidationError as exc:
        raise CognitionProtocolError(f"Malformed screen analysis: {exc}") from exc


def parse_subtasks(text: str) -> List[Dict[str, Any]]:
    """Return the raw subtask mappings of a decomposition response."""

    payload = extract_json(text, "array")
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise CognitionProtocolError("Decomposition response must be a JSON array of objects")
    return payload


__all__ = ["extract_json", "parse_thought", "parse_screen_analysis", "parse_subtasks"]
