from enigmate.schemas.riddle import RiddleTodayResponse, TranslateRequest, TranslateResponse
from enigmate.schemas.score import (
    SubmitRequest,
    SubmitResponse,
    ScoreboardResponse,
    ScoreHistoryItem,
    ScoreStatsResponse,
)
from enigmate.schemas.chat import ChatMessage, ChatPostRequest, ChatPatchRequest, ChatResponse

__all__ = [
    "RiddleTodayResponse",
    "TranslateRequest",
    "TranslateResponse",
    "SubmitRequest",
    "SubmitResponse",
    "ScoreboardResponse",
    "ScoreHistoryItem",
    "ScoreStatsResponse",
    "ChatMessage",
    "ChatPostRequest",
    "ChatPatchRequest",
    "ChatResponse",
]
