"""Parameter models for the built-in tools; validated before any tool runs."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ToolParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NavigateParams(ToolParams):
    url: str = Field(min_length=1)

    @field_validator("url")
    @classmethod
    def _require_http(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return value


class ClickParams(ToolParams):
    description: str = Field(min_length=1)


class TypeParams(ToolParams):
    field_description: str = Field(min_length=1, alias="fieldDescription")
    text: str


class ExtractTextParams(ToolParams):
    area: str = Field(min_length=1)


class WaitParams(ToolParams):
    ms: int = Field(ge=100, le=30000)


class AnalyzeScreenParams(ToolParams):
    pass


class ScrollParams(ToolParams):
    direction: Literal["up", "down", "top", "bottom"]
    amount: Optional[int] = Field(default=None, ge=1)


class PressKeyParams(ToolParams):
    key: str = Field(min_length=1)


class AskHumanParams(ToolParams):
    question: str = Field(min_length=1)
    context: Optional[str] = None


class GetUserDataParams(ToolParams):
    field: str = Field(min_length=1)
    question: str = Field(min_length=1)


class AnswerQuestionParams(ToolParams):
    question: str = Field(min_length=1)
    options: Optional[List[str]] = None
    kind: Literal["text", "textarea", "select", "radio", "checkbox"] = Field(default="text", alias="type")
    context: str = ""


class SearchPastQAParams(ToolParams):
    question: str = Field(min_length=1)
    limit: int = Field(default=3, ge=1, le=20)


class SaveQAPairParams(ToolParams):
    question: str = Field(min_length=1)
    answer: str
    context: Optional[str] = None


__all__ = [
    "ToolParams",
    "NavigateParams",
    "ClickParams",
    "TypeParams",
    "ExtractTextParams",
    "WaitParams",
    "AnalyzeScreenParams",
    "ScrollParams",
    "PressKeyParams",
    "AskHumanParams",
    "GetUserDataParams",
    "AnswerQuestionParams",
    "SearchPastQAParams",
    "SaveQAPairParams",
]
