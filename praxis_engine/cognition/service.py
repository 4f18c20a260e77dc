"""Cognition service interface and its OpenAI-backed implementation."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from openai import AsyncOpenAI
from pydantic import BaseModel, Field, ValidationError, field_validator

from praxis_engine.config_loader import CognitionSettings
from praxis_engine.core.errors import CognitionProtocolError
from praxis_engine.core.types import DetectedElement, ScreenAnalysis, Thought

from .parsing import extract_json, parse_screen_analysis, parse_thought
from .prompts import (
    EXTRACT_TEXT_PROMPT,
    FIND_ELEMENT_PROMPT,
    SCREEN_ANALYSIS_PROMPT,
    build_answer_prompt,
)

logger = logging.getLogger(__name__)


class GeneratedAnswer(BaseModel):
    answer: str = ""
    confidence: float = 0.0
    reasoning: str = ""

    @field_validator("answer", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        if isinstance(value, bool):
            return "Yes" if value else "No"
        return "" if value is None else str(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
        return max(0.0, min(number, 1.0))


@runtime_checkable
class CognitionService(Protocol):
    async def analyze_screen(self, screenshot: bytes) -> ScreenAnalysis: ...

    async def find_element(self, screenshot: bytes, description: str) -> Optional[DetectedElement]: ...

    async def extract_text(self, screenshot: bytes, area: str = "the whole page") -> str: ...

    async def reason(self, prompt: str) -> Thought: ...

    async def complete(self, prompt: str) -> str: ...

    async def answer_question(
        self,
        question: str,
        options: Optional[Sequence[str]] = None,
        kind: str = "text",
        context: str = "",
    ) -> GeneratedAnswer: ...


class OpenAICognitionService:
    """Vision and reasoning calls through the OpenAI chat completions API."""

    def __init__(
        self,
        settings: CognitionSettings | None = None,
        *,
        client: AsyncOpenAI | None = None,
        api_key: str | None = None,
    ) -> None:
        self.settings = settings or CognitionSettings()
        self._client = client or AsyncOpenAI(api_key=api_key, timeout=self.settings.timeout_secs)

    async def _chat(self, model: str, messages: List[Dict[str, Any]]) -> str:
        response = await self._client.chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=self.settings.max_tokens,
        )
        content = response.choices[0].message.content if response.choices else None
        logger.debug("Cognition response", extra={"model": model, "chars": len(content or "")})
        return content or ""

    @staticmethod
    def _vision_messages(prompt: str, screenshot: bytes) -> List[Dict[str, Any]]:
        encoded = base64.b64encode(screenshot).decode("ascii")
        return [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{encoded}"}},
                ],
            }
        ]

    async def analyze_screen(self, screenshot: bytes) -> ScreenAnalysis:
        text = await self._chat(self.settings.vision_model, self._vision_messages(SCREEN_ANALYSIS_PROMPT, screenshot))
        return parse_screen_analysis(text)

    async def find_element(self, screenshot: bytes, description: str) -> Optional[DetectedElement]:
        prompt = FIND_ELEMENT_PROMPT.format(description=description)
        text = await self._chat(self.settings.vision_model, self._vision_messages(prompt, screenshot))
        payload = extract_json(text, "object")
        if not payload.get("found"):
            return None
        try:
            return DetectedElement.model_validate(payload.get("element") or {"description": description})
        except ValidationError as exc:
            raise CognitionProtocolError(f"Malformed element response: {exc}") from exc

    async def extract_text(self, screenshot: bytes, area: str = "the whole page") -> str:
        prompt = EXTRACT_TEXT_PROMPT.format(area=area)
        return (await self._chat(self.settings.vision_model, self._vision_messages(prompt, screenshot))).strip()

    async def reason(self, prompt: str) -> Thought:
        text = await self._chat(self.settings.reasoning_model, [{"role": "user", "content": prompt}])
        return parse_thought(text)

    async def complete(self, prompt: str) -> str:
        return await self._chat(self.settings.reasoning_model, [{"role": "user", "content": prompt}])

    async def answer_question(
        self,
        question: str,
        options: Optional[Sequence[str]] = None,
        kind: str = "text",
        context: str = "",
    ) -> GeneratedAnswer:
        prompt = build_answer_prompt(question, options, kind, context)
        text = await self._chat(self.settings.reasoning_model, [{"role": "user", "content": prompt}])
        try:
            return GeneratedAnswer.model_validate(extract_json(text, "object"))
        except ValidationError as exc:
            raise CognitionProtocolError(f"Malformed answer response: {exc}") from exc


__all__ = ["CognitionService", "OpenAICognitionService", "GeneratedAnswer"]
