from __future__ import annotations

from typing import List

import pytest

from praxis_engine.human.channel import ConsoleHumanChannel, HumanChannel
from tests.fakes import FakeHuman


def _channel(replies: List[str]) -> tuple[ConsoleHumanChannel, List[str], List[str]]:
    pending = list(replies)
    prompts: List[str] = []
    output: List[str] = []

    def fake_input(prompt: str) -> str:
        prompts.append(prompt)
        return pending.pop(0)

    return ConsoleHumanChannel(input_fn=fake_input, output_fn=output.append), prompts, output


def test_channels_satisfy_protocol() -> None:
    assert isinstance(ConsoleHumanChannel(), HumanChannel)
    assert isinstance(FakeHuman(), HumanChannel)


@pytest.mark.asyncio
async def test_ask_uses_default_and_retries_invalid_input() -> None:
    channel, prompts, output = _channel(["", "abc", "42"])

    assert await channel.ask("Name", default="Ada") == "Ada"
    answer = await channel.ask("Age", validate=lambda value: value.isdigit() or "Digits only")

    assert answer == "42"
    assert prompts == ["Name [Ada]: ", "Age: ", "Age: "]
    assert output == ["Digits only"]


@pytest.mark.asyncio
async def test_confirm_defaults_and_reprompts() -> None:
    channel, prompts, output = _channel(["", "", "maybe", "YES"])

    assert await channel.confirm("Proceed?", default=True) is True
    assert await channel.confirm("Proceed?") is False
    assert await channel.confirm("Proceed?") is True
    assert prompts[0] == "Proceed? [Y/n]: "
    assert prompts[1] == "Proceed? [y/N]: "
    assert output == ["Please answer 'y' or 'n'."]


@pytest.mark.asyncio
async def test_choose_by_number_or_text() -> None:
    channel, _, output = _channel(["7", "2", "remote"])

    assert await channel.choose("Where?", ["Onsite", "Remote"]) == "Remote"
    assert await channel.choose("Where?", ["Onsite", "Remote"]) == "Remote"
    assert output[:3] == ["Where?", "  1. Onsite", "  2. Remote"]
    assert "Please enter a number between 1 and 2." in output


@pytest.mark.asyncio
async def test_choose_requires_options() -> None:
    channel, _, _ = _channel([])
    with pytest.raises(ValueError):
        await channel.choose("Where?", [])


@pytest.mark.asyncio
async def test_ask_multiple_and_wait_for_ready() -> None:
    channel, prompts, output = _channel(["Ada", "Lovelace", ""])

    answers = await channel.ask_multiple(["First name", "Last name"])
    await channel.wait_for_ready()
    await channel.notify("done")

    assert answers == {"First name": "Ada", "Last name": "Lovelace"}
    assert prompts[-1] == "Press Enter to continue... "
    assert output == ["done"]
