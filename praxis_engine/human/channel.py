"""Human interaction channel used for escalation and answer confirmation."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Optional, Protocol, Sequence, Union, runtime_checkable

logger = logging.getLogger(__name__)

# returns True when valid, otherwise an error message
Validator = Callable[[str], Union[bool, str]]

_YES = {"y", "yes"}
_NO = {"n", "no"}


@runtime_checkable
class HumanChannel(Protocol):
    async def ask(self, question: str, default: Optional[str] = None, validate: Optional[Validator] = None) -> str: ...

    async def confirm(self, question: str, default: bool = False) -> bool: ...

    async def choose(self, question: str, options: Sequence[str]) -> str: ...

    async def ask_multiple(self, questions: Sequence[str]) -> Dict[str, str]: ...

    async def wait_for_ready(self, message: str = "Press Enter to continue") -> None: ...

    async def notify(self, message: str) -> None: ...


class ConsoleHumanChannel:
    """Terminal-backed channel; one prompt at a time, re-asking on invalid input."""

    def __init__(
        self,
        *,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ) -> None:
        self._input = input_fn
        self._output = output_fn
        self._lock = asyncio.Lock()

    async def _read(self, prompt: str) -> str:
        raw = await asyncio.to_thread(self._input, prompt)
        return (raw or "").strip()

    async def _ask(self, question: str, default: Optional[str], validate: Optional[Validator]) -> str:
        suffix = f" [{default}]" if default else ""
        while True:
            value = await self._read(f"{question}{suffix}: ")
            if not value and default is not None:
                value = default
            if validate is None:
                return value
            verdict = validate(value)
            if verdict is True:
                return value
            message = verdict if isinstance(verdict, str) else "Invalid input, please try again."
            self._output(message)

    async def ask(self, question: str, default: Optional[str] = None, validate: Optional[Validator] = None) -> str:
        async with self._lock:
            return await self._ask(question, default, validate)

    async def confirm(self, question: str, default: bool = False) -> bool:
        hint = "[Y/n]" if default else "[y/N]"
        async with self._lock:
            while True:
                value = (await self._read(f"{question} {hint}: ")).lower()
                if not value:
                    return default
                if value in _YES:
                    return True
                if value in _NO:
                    return False
                self._output("Please answer 'y' or 'n'.")

    async def choose(self, question: str, options: Sequence[str]) -> str:
        if not options:
            raise ValueError("choose() requires at least one option")
        async with self._lock:
            self._output(question)
            for index, option in enumerate(options, start=1):
                self._output(f"  {index}. {option}")
            lowered = {option.lower(): option for option in options}
            while True:
                value = await self._read(f"Select 1-{len(options)}: ")
                if value.isdigit() and 1 <= int(value) <= len(options):
                    return options[int(value) - 1]
                if value.lower() in lowered:
                    return lowered[value.lower()]
                self._output(f"Please enter a number between 1 and {len(options)}.")

    async def ask_multiple(self, questions: Sequence[str]) -> Dict[str, str]:
        answers: Dict[str, str] = {}
        async with self._lock:
            for question in questions:
                answers[question] = await self._ask(question, None, None)
        return answers

    async def wait_for_ready(self, message: str = "Press Enter to continue") -> None:
        async with self._lock:
            await self._read(f"{message}... ")

    async def notify(self, message: str) -> None:
        self._output(message)


__all__ = ["HumanChannel", "ConsoleHumanChannel", "Validator"]
