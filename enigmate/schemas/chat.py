from typing import Optional
from pydantic import BaseModel, field_validator
from enigmate.schemas.base import CamelModel, lenient_int, resolve_language


class ChatMessage(BaseModel):
    # Same shape as the entries of chats.messages, keys kept as stored
    id: str
    author: str  # "user" or "master"
    text: str
    created_at: str


class RiddleContext(CamelModel):
    question: Optional[str] = None
    title: Optional[str] = None
    hints: list[str] = []

    @field_validator("hints", mode="before")
    @classmethod
    def _only_strings(cls, value):
        if not isinstance(value, list):
            return []
        return [hint for hint in value if isinstance(hint, str)]


class ChatPostRequest(CamelModel):
    riddle_id: int = 0
    message: str = ""
    riddle_context: Optional[RiddleContext] = None
    revealed_hints: list[str] = []
    lang: str = "en"

    @field_validator("riddle_id", mode="before")
    @classmethod
    def _parse_riddle_id(cls, value):
        return lenient_int(value)

    @field_validator("message", mode="before")
    @classmethod
    def _strip_message(cls, value):
        return "" if value is None else str(value).strip()

    @field_validator("revealed_hints", mode="before")
    @classmethod
    def _only_strings(cls, value):
        if not isinstance(value, list):
            return []
        return [hint for hint in value if isinstance(hint, str)]

    @field_validator("lang", mode="before")
    @classmethod
    def _language(cls, value):
        return resolve_language(value)


class ChatPatchRequest(CamelModel):
    riddle_id: int = 0
    master_message: str = ""
    lang: str = "en"

    @field_validator("riddle_id", mode="before")
    @classmethod
    def _parse_riddle_id(cls, value):
        return lenient_int(value)

    @field_validator("master_message", mode="before")
    @classmethod
    def _strip_message(cls, value):
        return "" if value is None else str(value).strip()

    @field_validator("lang", mode="before")
    @classmethod
    def _language(cls, value):
        return resolve_language(value)


class ChatResponse(CamelModel):
    messages: list[ChatMessage]
