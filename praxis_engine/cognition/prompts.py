"""Prompt templates for the cognition service."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from praxis_engine.core.types import Observation

SCREEN_ANALYSIS_PROMPT = """Analyze this browser screenshot.
Respond with JSON only:
{
  "description": "what the page shows",
  "uiState": "unknown|login_page|challenge_page|search_page|listing_page|detail_page|form_page|submitted_page|error_page",
  "interactiveElements": [
    {"description": "...", "type": "button|input|link|text|dropdown|checkbox",
     "coordinates": {"x": 0-100, "y": 0-100}, "text": "..."}
  ],
  "pageType": "short label",
  "requiresAction": true,
  "suggestedActions": ["..."]
}
Coordinates are percentages of the viewport width and height."""

FIND_ELEMENT_PROMPT = """Locate the element described as: "{description}".
Respond with JSON only:
{{"found": true|false, "element": {{"description": "...", "type": "button|input|link|text|dropdown|checkbox",
"coordinates": {{"x": 0-100, "y": 0-100}}, "text": "..."}}}}"""

EXTRACT_TEXT_PROMPT = "Extract all readable text from {area}. Return the text only."

REASONING_PROMPT = """You are an autonomous browser agent.

GOAL: {goal}

CURRENT PAGE
URL: {url}
Title: {title}
State: {state}
Description: {description}
Elements:
{elements}

RECENT ACTIONS
{history}

MEMORY
{memory}

AVAILABLE TOOLS
{tools}

Decide the single next action. Respond with JSON only:
{{
  "analysis": "what you observe",
  "reasoning": "why the next action moves toward the goal",
  "nextAction": {{"tool": "tool_name", "params": {{}}, "reasoning": "..."}} or null,
  "goalAchieved": false,
  "confidence": 0.0-1.0
}}"""

ANSWER_PROMPT = """Answer the following {kind} question on behalf of the user.
Question: {question}
{options}{context}
Respond with JSON only: {{"answer": "...", "confidence": 0.0-1.0, "reasoning": "..."}}"""

DECOMPOSITION_PROMPT = """Break the goal below into ordered subtasks that a browser agent can execute one by one.

GOAL: {goal}
{examples}
Respond with a JSON array only:
[{{"id": "1", "description": "...", "goal": "concrete goal for this step",
   "dependencies": [], "estimatedComplexity": "low|medium|high"}}]"""

CONTINUATION_PROMPT = """A subtask failed while pursuing a larger goal. Should execution continue?

OVERALL GOAL: {goal}

FAILED SUBTASK:
- ID: {subtask_id}
- Description: {description}
- Goal: {subtask_goal}
- Error: {error}

COMPLETED SUBTASKS: {completed}
FAILED SUBTASKS: {failed}

Recommend stopping when the failure is critical to the goal or too many failures have occurred.
Recommend continuing when the goal can still be achieved without this subtask.
Respond with JSON only:
{{"continue": true|false, "reasoning": "..."}}"""


def _format_elements(observation: Observation) -> str:
    if not observation.elements:
        return "(none detected)"
    lines = []
    for element in observation.elements:
        position = ""
        if element.coordinates is not None:
            position = f" at ({element.coordinates.x:.0f}%, {element.coordinates.y:.0f}%)"
        text = f' "{element.text}"' if element.text else ""
        lines.append(f"- [{element.kind}] {element.description}{text}{position}")
    return "\n".join(lines)


def build_reasoning_prompt(
    goal: str,
    observation: Observation,
    history: Sequence[str],
    tool_catalogue: str,
    memory_context: str = "",
) -> str:
    return REASONING_PROMPT.format(
        goal=goal,
        url=observation.url,
        title=observation.title,
        state=observation.state.value,
        description=observation.description,
        elements=_format_elements(observation),
        history="\n".join(history) if history else "(no actions yet)",
        memory=memory_context or "(empty)",
        tools=tool_catalogue,
    )


def build_answer_prompt(
    question: str,
    options: Optional[Sequence[str]] = None,
    kind: str = "text",
    context: str = "",
) -> str:
    options_text = f"Options: {', '.join(options)}\nChoose exactly one option.\n" if options else ""
    context_text = f"Context about the user:\n{context}\n" if context else ""
    return ANSWER_PROMPT.format(kind=kind, question=question, options=options_text, context=context_text)


def build_decomposition_prompt(goal: str, examples: Iterable[str] = ()) -> str:
    example_list: List[str] = list(examples)
    examples_text = ""
    if example_list:
        examples_text = "\nSIMILAR TASKS THAT SUCCEEDED BEFORE:\n" + "\n".join(f"- {item}" for item in example_list) + "\n"
    return DECOMPOSITION_PROMPT.format(goal=goal, examples=examples_text)


def build_continuation_prompt(
    goal: str,
    subtask_id: str,
    description: str,
    subtask_goal: str,
    error: str,
    completed: int,
    failed: int,
) -> str:
    return CONTINUATION_PROMPT.format(
        goal=goal,
        subtask_id=subtask_id,
        description=description,
        subtask_goal=subtask_goal,
        error=error or "Unknown error",
        completed=completed,
        failed=failed,
    )


__all__ = [
    "SCREEN_ANALYSIS_PROMPT",
    "FIND_ELEMENT_PROMPT",
    "EXTRACT_TEXT_PROMPT",
    "build_reasoning_prompt",
    "build_answer_prompt",
    "build_decomposition_prompt",
    "build_continuation_prompt",
]
