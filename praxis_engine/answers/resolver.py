"""Tiered answer resolution: reuse cache, profile, generated answer, human."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal, Optional, Sequence, Tuple

from praxis_engine.cognition.service import CognitionService
from praxis_engine.config_loader import AnswerSettings
from praxis_engine.human.channel import HumanChannel
from praxis_engine.memory.reuse_store import ReuseStore

from .profile import ProfileStore

logger = logging.getLogger(__name__)

AnswerSource = Literal["cached", "profile", "generated", "human"]
ConfidenceTier = Literal["high", "medium", "low"]

# checked in order; the first keyword contained in the question with a stored value wins
PROFILE_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("phone", "personal_info.phone"),
    ("email", "personal_info.email"),
    ("address", "personal_info.address"),
    ("city", "personal_info.city"),
    ("state", "personal_info.state"),
    ("zip code", "personal_info.zip_code"),
    ("linkedin", "personal_info.linkedin"),
    ("github", "personal_info.github"),
    ("portfolio", "personal_info.portfolio"),
    ("authorized to work", "work_auth.authorized"),
    ("work authorization", "work_auth.authorized"),
    ("sponsorship", "work_auth.require_sponsorship"),
    ("veteran", "demographics.veteran"),
    ("disability", "demographics.disability"),
    ("gender", "demographics.gender"),
    ("ethnicity", "demographics.ethnicity"),
    ("remote preference", "preferences.remote_preference"),
    ("salary", "preferences.salary_expectation"),
    ("start date", "preferences.available_start_date"),
    ("relocate", "preferences.willing_to_relocate"),
)

USE_SUGGESTED = "Use suggested answer"
EDIT_SUGGESTED = "Edit suggested answer"
PROVIDE_OWN = "Provide my own answer"

_BANNER = "=" * 60


@dataclass
class AnswerResult:
    answer: str
    confidence: float
    source: AnswerSource
    saved: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def confidence_tier(confidence: float, high: float = 0.90, medium: float = 0.75) -> ConfidenceTier:
    if confidence >= high:
        return "high"
    if confidence >= medium:
        return "medium"
    return "low"


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class TieredAnswerResolver:
    """Resolves form questions with decreasing automation as confidence drops."""

    def __init__(
        self,
        reuse_store: ReuseStore,
        profile_store: ProfileStore,
        cognition: CognitionService,
        human: HumanChannel,
        settings: AnswerSettings | None = None,
    ) -> None:
        self.reuse_store = reuse_store
        self.profile_store = profile_store
        self.cognition = cognition
        self.human = human
        self.settings = settings or AnswerSettings()

    async def resolve(
        self,
        question: str,
        *,
        options: Optional[Sequence[str]] = None,
        kind: str = "text",
        context: str = "",
    ) -> AnswerResult:
        options = list(options or [])
        logger.info("Resolving question", extra={"question": question, "question_kind": kind})

        cached = await self._try_cached(question)
        if cached is not None:
            return cached

        profile_answer = self.lookup_profile(question)
        if profile_answer is not None:
            logger.info("Answer found in profile", extra={"question": question})
            return AnswerResult(answer=profile_answer, confidence=1.0, source="profile", saved=False)

        generated = await self.cognition.answer_question(question, options or None, kind, context)
        tier = confidence_tier(generated.confidence, self.settings.high_threshold, self.settings.medium_threshold)
        logger.info(
            "Generated answer",
            extra={"question": question, "confidence": generated.confidence, "tier": tier},
        )
        if tier == "high":
            return await self._handle_high(question, generated.answer, generated.confidence)
        if tier == "medium":
            return await self._handle_medium(question, generated.answer, generated.confidence, options)
        return await self._handle_low(question, kind, options)

    async def _try_cached(self, question: str) -> Optional[AnswerResult]:
        matches = self.reuse_store.search_similar(question, limit=1, min_score=self.settings.reuse_similarity)
        if not matches:
            return None
        record, score = matches[0]
        await self.human.notify(
            f"\n{_BANNER}\nCACHED ANSWER FOUND\n{_BANNER}\n"
            f"Question: {question}\nCached answer: {record.answer}\n"
            f"Used {record.usage_count} time(s) before (similarity {score:.0%})\n"
        )
        if not await self.human.confirm("Use this cached answer?", default=True):
            return None
        self.reuse_store.increment_usage(record.id)
        return AnswerResult(answer=record.answer, confidence=1.0, source="cached", saved=False)

    def lookup_profile(self, question: str) -> Optional[str]:
        lowered = question.lower()
        for keyword, path in PROFILE_KEYWORDS:
            if keyword not in lowered:
                continue
            value = self.profile_store.get(path)
            if value is not None and value != "":
                return _render(value)
        return None

    async def _handle_high(self, question: str, answer: str, confidence: float) -> AnswerResult:
        await self.human.notify(
            f"\n{_BANNER}\nHIGH CONFIDENCE ANSWER\n{_BANNER}\n"
            f"Question: {question}\nAnswer: {answer}\nConfidence: {confidence:.0%}\n"
            "This answer will be used automatically.\n"
        )
        saved = False
        if await self.human.confirm("Save this answer for future applications?", default=True):
            saved = self.save_answer(question, answer)
        return AnswerResult(answer=answer, confidence=confidence, source="generated", saved=saved)

    async def _handle_medium(
        self,
        question: str,
        suggested: str,
        confidence: float,
        options: Sequence[str],
    ) -> AnswerResult:
        lines = [f"\n{_BANNER}", "MEDIUM CONFIDENCE - REVIEW NEEDED", _BANNER]
        lines.append(f"Question: {question}\nSuggested answer: {suggested}\nConfidence: {confidence:.0%}")
        if options:
            lines.append("Available options:")
            for index, option in enumerate(options, start=1):
                marker = " <- suggested" if option == suggested else ""
                lines.append(f"  {index}. {option}{marker}")
        await self.human.notify("\n".join(lines))

        choice = await self.human.choose("What would you like to do?", [USE_SUGGESTED, EDIT_SUGGESTED, PROVIDE_OWN])
        answer = suggested
        if choice == EDIT_SUGGESTED:
            answer = await self.human.ask("Edit the answer", default=suggested)
        elif choice == PROVIDE_OWN:
            if options:
                answer = await self.human.choose("Select your answer", options)
            else:
                answer = await self.human.ask("Enter your answer")
        saved = self.save_answer(question, answer)
        source: AnswerSource = "generated" if choice == USE_SUGGESTED else "human"
        return AnswerResult(answer=answer, confidence=confidence, source=source, saved=saved)

    async def _handle_low(self, question: str, kind: str, options: Sequence[str]) -> AnswerResult:
        await self.human.notify(
            f"\n{_BANNER}\nLOW CONFIDENCE - HUMAN INPUT NEEDED\n{_BANNER}\nQuestion: {question}\n"
        )
        if options:
            answer = await self.human.choose("Please select an answer", options)
        elif kind == "checkbox":
            answer = "Yes" if await self.human.confirm("Should this be checked?", default=False) else "No"
        else:
            answer = await self.human.ask("Please provide your answer")
        saved = self.save_answer(question, answer)
        return AnswerResult(answer=answer, confidence=0.0, source="human", saved=saved)

    def save_answer(self, question: str, answer: str) -> bool:
        """Store the answer for reuse; a storage error is logged and the answer still stands."""

        try:
            self.reuse_store.add_qa_pair(question, answer)
        except OSError:
            logger.error("Failed to save answer for reuse", extra={"question": question}, exc_info=True)
            return False
        return True


__all__ = ["TieredAnswerResolver", "AnswerResult", "PROFILE_KEYWORDS", "confidence_tier"]
