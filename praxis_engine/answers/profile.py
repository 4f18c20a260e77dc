"""User profile persisted as a single JSON document with dotted-path access."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from praxis_engine.core.errors import ProfilePathError
from praxis_engine.human.channel import HumanChannel, Validator
from praxis_engine.utils.file_ops import read_json_document, write_json_document

logger = logging.getLogger(__name__)


class _Section(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="ignore")


class PersonalInfo(_Section):
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    linkedin: Optional[str] = None
    portfolio: Optional[str] = None
    github: Optional[str] = None


class WorkAuth(_Section):
    authorized: Optional[bool] = None
    require_sponsorship: Optional[bool] = None
    citizenship: Optional[str] = None


class Demographics(_Section):
    veteran: Optional[bool] = None
    disability: Optional[bool] = None
    gender: Optional[str] = None
    ethnicity: Optional[str] = None


class Preferences(_Section):
    remote_preference: Optional[Literal["onsite", "hybrid", "remote"]] = None
    salary_expectation: Optional[str] = None
    available_start_date: Optional[str] = None
    willing_to_relocate: Optional[bool] = None


class Experience(_Section):
    years_of_experience: Optional[float] = None
    current_title: Optional[str] = None
    current_company: Optional[str] = None
    highest_education: Optional[str] = None


class UserProfile(_Section):
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    work_auth: WorkAuth = Field(default_factory=WorkAuth)
    demographics: Demographics = Field(default_factory=Demographics)
    preferences: Preferences = Field(default_factory=Preferences)
    experience: Experience = Field(default_factory=Experience)
    custom_fields: Dict[str, Any] = Field(default_factory=dict)


FIXED_SECTIONS = ("personal_info", "work_auth", "demographics", "preferences", "experience")


def _is_filled(value: Any) -> bool:
    return value is not None and value != ""


class ProfileStore:
    """Loads the profile lazily and writes it back after every change."""

    def __init__(self, path: Path | str = "data/user-profile.json", *, human: HumanChannel | None = None) -> None:
        self.path = Path(path)
        self.human = human
        self._profile: UserProfile | None = None

    @property
    def profile(self) -> UserProfile:
        return self.load()

    def load(self) -> UserProfile:
        if self._profile is not None:
            return self._profile
        payload = read_json_document(self.path)
        if payload is None:
            self._profile = UserProfile()
            self.save()
            logger.info("Created new user profile", extra={"profile_path": str(self.path)})
        else:
            self._profile = UserProfile.model_validate(payload)
            logger.info("User profile loaded", extra={"profile_path": str(self.path)})
        return self._profile

    def save(self) -> None:
        if self._profile is None:
            return
        write_json_document(self.path, self._profile.model_dump(mode="json"))

    # Dotted paths -------------------------------------------------------
    def _walk(self, path: str, *, create: bool = False) -> Tuple[Any, str]:
        parts = path.split(".") if path else []
        if not parts or not all(parts):
            raise ProfilePathError(f"Invalid profile path: {path!r}")
        node: Any = self.load()
        for part in parts[:-1]:
            node = self._child(node, part, path, create)
            if node is None:
                return None, parts[-1]
        leaf = parts[-1]
        if isinstance(node, BaseModel) and leaf not in type(node).model_fields:
            raise ProfilePathError(f"Unknown profile path: {path}")
        return node, leaf

    @staticmethod
    def _child(node: Any, part: str, path: str, create: bool) -> Any:
        if isinstance(node, BaseModel):
            if part not in type(node).model_fields:
                raise ProfilePathError(f"Unknown profile path: {path}")
            child = getattr(node, part)
        elif isinstance(node, dict):
            if part not in node:
                if not create:
                    return None
                node[part] = {}
            child = node[part]
        else:
            child = None
        if not isinstance(child, (BaseModel, dict)):
            raise ProfilePathError(f"Profile path {path} traverses a scalar value")
        return child

    def get(self, path: str) -> Any:
        node, leaf = self._walk(path)
        if node is None:
            return None
        if isinstance(node, BaseModel):
            return getattr(node, leaf)
        return node.get(leaf)

    def set(self, path: str, value: Any) -> None:
        node, leaf = self._walk(path, create=True)
        if isinstance(node, BaseModel):
            setattr(node, leaf, value)
        else:
            node[leaf] = value
        self.save()
        logger.info("User profile updated", extra={"profile_field": path})

    def has(self, path: str) -> bool:
        return _is_filled(self.get(path))

    def delete(self, path: str) -> None:
        node, leaf = self._walk(path)
        if node is None:
            return
        if isinstance(node, BaseModel):
            field_info = type(node).model_fields[leaf]
            if field_info.default_factory is not None:
                setattr(node, leaf, field_info.default_factory())
            else:
                setattr(node, leaf, None)
        else:
            node.pop(leaf, None)
        self.save()
        logger.info("Value deleted from user profile", extra={"profile_field": path})

    async def get_or_ask(
        self,
        path: str,
        question: str,
        *,
        save: bool = True,
        validate: Validator | None = None,
    ) -> Any:
        """Return the stored value or ask the operator and remember the answer."""

        stored = self.get(path)
        if _is_filled(stored):
            return stored
        if self.human is None:
            raise ProfilePathError(f"No value stored at {path} and no human channel to ask")
        answer = await self.human.ask(question, validate=validate)
        if save:
            self.set(path, answer)
            return self.get(path)
        return answer

    def stats(self) -> Dict[str, Any]:
        profile = self.load()
        sections: Dict[str, Dict[str, int]] = {}
        filled_total = 0
        field_total = 0
        for name in FIXED_SECTIONS:
            section = getattr(profile, name)
            values = section.model_dump()
            filled = sum(1 for value in values.values() if _is_filled(value))
            sections[name] = {"filled": filled, "total": len(values)}
            filled_total += filled
            field_total += len(values)
        return {
            "filled": filled_total,
            "total": field_total,
            "completeness": filled_total / field_total if field_total else 0.0,
            "sections": sections,
            "custom_fields": len(profile.custom_fields),
        }


__all__ = ["ProfileStore", "UserProfile", "FIXED_SECTIONS"]
