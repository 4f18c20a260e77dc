"""Built-in browser, human and answer tools."""

from __future__ import annotations

import logging
from typing import List

from praxis_engine.browser.actuator import to_pixels
from praxis_engine.core.types import ToolResult

from .context import ToolContext
from .params import (
    AnalyzeScreenParams,
    AnswerQuestionParams,
    AskHumanParams,
    ClickParams,
    ExtractTextParams,
    GetUserDataParams,
    NavigateParams,
    PressKeyParams,
    SaveQAPairParams,
    ScrollParams,
    SearchPastQAParams,
    TypeParams,
    WaitParams,
)
from .registry import ToolRegistry, ToolSpec

logger = logging.getLogger(__name__)

NAVIGATION_SETTLE_SECS = 2.0
CLICK_SETTLE_SECS = 1.0
KEY_SETTLE_SECS = 0.5


async def _locate(context: ToolContext, description: str):
    """Find ``description`` on the current screen and report the outcome to the selector cache.

    Entries are keyed by description alone, not by page, so a cached position
    is never clicked blind: every lookup takes a fresh screenshot. The cache
    records how reliably each description resolves and feeds that into the
    memory context shown to the reasoning step.
    """

    screenshot = await context.actuator.screenshot()
    element = await context.cognition.find_element(screenshot, description)
    if element is None or element.coordinates is None:
        if context.memory is not None:
            context.memory.mark_selector_failed(description)
        return None
    # fail before remembering a position we cannot act on
    to_pixels(element.coordinates.x, element.coordinates.y, await context.actuator.viewport_size())
    if context.memory is not None:
        context.memory.cache_selector(description, f"{element.coordinates.x:.1f},{element.coordinates.y:.1f}")
    return element


async def navigate(params: NavigateParams, context: ToolContext) -> ToolResult:
    await context.actuator.navigate(params.url)
    await context.sleep_fn(NAVIGATION_SETTLE_SECS)
    return ToolResult.ok({"url": params.url})


async def click(params: ClickParams, context: ToolContext) -> ToolResult:
    element = await _locate(context, params.description)
    if element is None:
        return ToolResult.failure(f"Element not found: {params.description}")
    await context.actuator.click(element.coordinates.x, element.coordinates.y)
    await context.sleep_fn(CLICK_SETTLE_SECS)
    return ToolResult.ok({"element": element.description})


async def type_text(params: TypeParams, context: ToolContext) -> ToolResult:
    element = await _locate(context, params.field_description)
    if element is None:
        return ToolResult.failure(f"Input field not found: {params.field_description}")
    await context.actuator.click(element.coordinates.x, element.coordinates.y)
    await context.sleep_fn(KEY_SETTLE_SECS)
    await context.actuator.type_text(params.text)
    return ToolResult.ok({"field": element.description})


async def extract_text(params: ExtractTextParams, context: ToolContext) -> ToolResult:
    screenshot = await context.actuator.screenshot()
    text = await context.cognition.extract_text(screenshot, params.area)
    return ToolResult.ok({"text": text})


async def wait(params: WaitParams, context: ToolContext) -> ToolResult:
    await context.sleep_fn(params.ms / 1000)
    return ToolResult.ok({"waited": params.ms})


async def analyze_screen(params: AnalyzeScreenParams, context: ToolContext) -> ToolResult:
    screenshot = await context.actuator.screenshot()
    analysis = await context.cognition.analyze_screen(screenshot)
    return ToolResult.ok({"analysis": analysis.model_dump(mode="json")})


async def scroll(params: ScrollParams, context: ToolContext) -> ToolResult:
    await context.actuator.scroll(params.direction, params.amount or 500)
    await context.sleep_fn(CLICK_SETTLE_SECS)
    return ToolResult.ok({"direction": params.direction})


async def press_key(params: PressKeyParams, context: ToolContext) -> ToolResult:
    await context.actuator.press_key(params.key)
    await context.sleep_fn(KEY_SETTLE_SECS)
    return ToolResult.ok({"key": params.key})


async def ask_human(params: AskHumanParams, context: ToolContext) -> ToolResult:
    if params.context:
        await context.human.notify(f"Context: {params.context}")
    answer = await context.human.ask(params.question)
    logger.info("Human provided answer", extra={"answer_length": len(answer)})
    return ToolResult.ok({"answer": answer})


async def get_user_data(params: GetUserDataParams, context: ToolContext) -> ToolResult:
    if context.profile is None:
        return ToolResult.failure("User profile is not available")
    value = await context.profile.get_or_ask(params.field, params.question)
    return ToolResult.ok({"value": value})


async def answer_question(params: AnswerQuestionParams, context: ToolContext) -> ToolResult:
    if context.resolver is None:
        return ToolResult.failure("Answer resolver is not available")
    result = await context.resolver.resolve(
        params.question,
        options=params.options,
        kind=params.kind,
        context=params.context,
    )
    return ToolResult.ok(result.to_dict())


async def search_past_qa(params: SearchPastQAParams, context: ToolContext) -> ToolResult:
    if context.reuse_store is None:
        return ToolResult.failure("Answer store is not available")
    matches = context.reuse_store.search_similar(params.question, limit=params.limit)
    if not matches:
        return ToolResult.ok({"found": False, "count": 0})
    payload = [{**record.to_dict(), "similarity": score} for record, score in matches]
    return ToolResult.ok({"found": True, "count": len(payload), "top_match": payload[0], "all_matches": payload})


async def save_qa_pair(params: SaveQAPairParams, context: ToolContext) -> ToolResult:
    if context.reuse_store is None:
        return ToolResult.failure("Answer store is not available")
    record = context.reuse_store.add_qa_pair(
        params.question,
        params.answer,
        category=params.context or "application_form",
    )
    return ToolResult.ok({"saved": True, "id": record.id})


BUILTIN_TOOLS: List[ToolSpec] = [
    ToolSpec("navigate", "Navigate the browser to a specific URL.", NavigateParams, navigate),
    ToolSpec("click", "Find an element by natural-language description and click it.", ClickParams, click),
    ToolSpec("type", "Find an input field by description and type text into it.", TypeParams, type_text),
    ToolSpec("extract_text", "Extract text content from an area of the page.", ExtractTextParams, extract_text),
    ToolSpec("wait", "Wait for a number of milliseconds (100-30000).", WaitParams, wait),
    ToolSpec("analyze_screen", "Get a detailed analysis of what is currently visible.", AnalyzeScreenParams, analyze_screen),
    ToolSpec("scroll", "Scroll the page up, down, to the top or to the bottom.", ScrollParams, scroll),
    ToolSpec("press_key", "Press a keyboard key such as Enter, Escape or Tab.", PressKeyParams, press_key),
    ToolSpec(
        "ask_human",
        "Ask the user when you lack information or need confirmation before acting.",
        AskHumanParams,
        ask_human,
    ),
    ToolSpec(
        "get_user_data",
        "Read a profile field such as personal_info.phone; asks the user and saves it when missing.",
        GetUserDataParams,
        get_user_data,
    ),
    ToolSpec(
        "answer_question",
        "Answer a form question using saved answers, the profile, a generated answer or the user.",
        AnswerQuestionParams,
        answer_question,
    ),
    ToolSpec(
        "search_past_qa",
        "Search previously answered questions. Use this before generating a new answer.",
        SearchPastQAParams,
        search_past_qa,
    ),
    ToolSpec("save_qa_pair", "Save a question and its answer for future reuse.", SaveQAPairParams, save_qa_pair),
]


def build_default_registry() -> ToolRegistry:
    registry = ToolRegistry()
    registry.extend(BUILTIN_TOOLS)
    return registry


__all__ = ["BUILTIN_TOOLS", "build_default_registry"]
