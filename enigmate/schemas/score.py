from datetime import date, datetime
from typing import Optional
from pydantic import field_validator
from enigmate.schemas.base import CamelModel, lenient_int, resolve_language


class SubmitRequest(CamelModel):
    riddle_id: int = 0
    answer: str = ""
    total_duration: int = 0
    time_remaining: int = 0
    hints_used: int = 0
    user_messages: int = 0
    lang: str = "en"

    @field_validator(
        "riddle_id", "total_duration", "time_remaining", "hints_used", "user_messages",
        mode="before",
    )
    @classmethod
    def _parse_int(cls, value):
        return lenient_int(value)

    @field_validator("answer", mode="before")
    @classmethod
    def _strip_answer(cls, value):
        return "" if value is None else str(value).strip()

    @field_validator("lang", mode="before")
    @classmethod
    def _language(cls, value):
        return resolve_language(value)


class SubmitResponse(CamelModel):
    correct: bool
    score: int
    feedback: str
    verdict_source: str  # "exact" or "judge"
    reasoning: Optional[str] = None
    missing_elements: list[str] = []
    hints_used: int
    time_spent: int
    user_messages: int
    time_remaining: int


class ScoreboardResponse(CamelModel):
    has_score: bool
    requires_auth: Optional[bool] = None
    error: Optional[str] = None

    score: Optional[int] = None
    duration: Optional[int] = None
    msg_count: Optional[int] = None
    hints_used: Optional[int] = None

    total_players: Optional[int] = None
    beaten_players: Optional[int] = None
    ranking_percent: Optional[int] = None

    hints: Optional[list[str]] = None
    question: Optional[str] = None
    official_answer: Optional[str] = None
    riddle_title: Optional[str] = None


class ScoreHistoryItem(CamelModel):
    riddle_id: int
    riddle_title: Optional[str] = None
    release_date: Optional[date] = None
    score: int  # normalized 0-100
    correct: Optional[bool] = None
    duration: Optional[int] = None
    msg_count: Optional[int] = None
    hints_used: Optional[int] = None
    created_at: Optional[datetime] = None


class ScoreStatsResponse(CamelModel):
    riddles_played: int
    riddles_solved: int
    solve_rate: float
    average_score: float
    best_score: int
