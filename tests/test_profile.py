from __future__ import annotations

import json
from pathlib import Path

import pytest

from praxis_engine.answers.profile import ProfileStore
from praxis_engine.core.errors import ProfilePathError
from tests.fakes import FakeHuman


def test_missing_profile_is_created_empty(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "profile.json"
    store = ProfileStore(path)

    assert store.get("personal_info.phone") is None
    assert path.exists()
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["custom_fields"] == {}
    assert set(payload) >= {"personal_info", "work_auth", "demographics", "preferences", "experience"}


def test_set_get_has_delete(tmp_path: Path) -> None:
    store = ProfileStore(tmp_path / "profile.json")

    store.set("personal_info.city", "Lisbon")
    store.set("experience.years_of_experience", "4.5")
    store.set("custom_fields.languages.spoken", "Portuguese")

    assert store.get("personal_info.city") == "Lisbon"
    assert store.get("experience.years_of_experience") == 4.5
    assert store.get("custom_fields.languages.spoken") == "Portuguese"
    assert store.has("personal_info.city") is True
    assert store.has("personal_info.zip_code") is False
    assert store.get("custom_fields.unknown.key") is None

    store.delete("personal_info.city")
    store.delete("custom_fields.languages")

    assert store.get("personal_info.city") is None
    assert store.profile.custom_fields == {}


def test_changes_are_persisted(tmp_path: Path) -> None:
    path = tmp_path / "profile.json"
    ProfileStore(path).set("work_auth.require_sponsorship", True)

    assert ProfileStore(path).get("work_auth.require_sponsorship") is True


def test_deleting_a_section_resets_it(tmp_path: Path) -> None:
    store = ProfileStore(tmp_path / "profile.json")
    store.set("preferences.remote_preference", "remote")

    store.delete("preferences")

    assert store.get("preferences.remote_preference") is None


@pytest.mark.parametrize(
    "path",
    ["", "personal_info.", "personal_info.shoe_size", "hobbies.chess", "personal_info.city.name"],
)
def test_invalid_paths_raise(tmp_path: Path, path: str) -> None:
    store = ProfileStore(tmp_path / "profile.json")
    store.set("personal_info.city", "Lisbon")

    with pytest.raises(ProfilePathError):
        store.get(path)


def test_schema_still_validates_values(tmp_path: Path) -> None:
    store = ProfileStore(tmp_path / "profile.json")

    with pytest.raises(ValueError):
        store.set("preferences.remote_preference", "on the moon")


@pytest.mark.asyncio
async def test_get_or_ask_prompts_once_and_saves(tmp_path: Path) -> None:
    human = FakeHuman(asks=["https://linkedin.com/in/ada"])
    store = ProfileStore(tmp_path / "profile.json", human=human)

    first = await store.get_or_ask("personal_info.linkedin", "LinkedIn URL?")
    second = await store.get_or_ask("personal_info.linkedin", "LinkedIn URL?")

    assert first == second == "https://linkedin.com/in/ada"
    assert human.questions == ["LinkedIn URL?"]


@pytest.mark.asyncio
async def test_get_or_ask_without_saving(tmp_path: Path) -> None:
    store = ProfileStore(tmp_path / "profile.json", human=FakeHuman(asks=["Ada"]))

    assert await store.get_or_ask("custom_fields.nickname", "Nickname?", save=False) == "Ada"
    assert store.has("custom_fields.nickname") is False


@pytest.mark.asyncio
async def test_get_or_ask_needs_a_human(tmp_path: Path) -> None:
    store = ProfileStore(tmp_path / "profile.json")

    with pytest.raises(ProfilePathError):
        await store.get_or_ask("personal_info.phone", "Phone?")


def test_stats_report_completeness(tmp_path: Path) -> None:
    store = ProfileStore(tmp_path / "profile.json")
    store.set("personal_info.email", "ada@example.com")
    store.set("personal_info.phone", "555-0100")
    store.set("custom_fields.pronouns", "they/them")

    stats = store.stats()

    assert stats["filled"] == 2
    assert stats["total"] == 24
    assert stats["completeness"] == pytest.approx(2 / 24)
    assert stats["sections"]["personal_info"] == {"filled": 2, "total": 9}
    assert stats["custom_fields"] == 1
