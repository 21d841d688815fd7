from datetime import date
from typing import Optional
from pydantic import Field, field_validator
from enigmate.schemas.base import CamelModel, resolve_language


class RiddleTodayResponse(CamelModel):
    id: int
    question: str
    title: Optional[str] = None
    duration: Optional[int] = None
    difficulty: Optional[int] = None
    release_date: Optional[date] = None
    hint1: Optional[str] = None
    hint2: Optional[str] = None
    hint3: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageURL")


class TranslateRequest(CamelModel):
    title: Optional[str] = None
    question: Optional[str] = None
    target: str = "en"

    @field_validator("title", "question", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if not isinstance(value, str) or not value.strip():
            return None
        return value

    @field_validator("target", mode="before")
    @classmethod
    def _target_language(cls, value):
        return resolve_language(value)


class TranslateResponse(CamelModel):
    title: Optional[str] = None
    question: Optional[str] = None
