"""Score computation and percentile ranking for riddle submissions."""

import math
from dataclasses import dataclass
from typing import Optional
from enigmate.config import (
    BASE_SCORE_CORRECT,
    BASE_SCORE_INCORRECT,
    MAX_TIME_BONUS,
    HINT_PENALTY,
    MESSAGE_PENALTY,
    MAX_RAW_SCORE,
)


@dataclass(frozen=True)
class ScoreBreakdown:
    score: int
    base_score: int
    time_bonus: int
    hint_penalty: int
    chat_penalty: int
    time_spent: int
    time_remaining: int


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's rounding)."""
    return int(math.floor(value + 0.5))


def compute_score(
    correct: bool,
    total_duration: int,
    time_remaining: int,
    hints_used: int,
    user_messages: int,
) -> ScoreBreakdown:
    """Compute the raw score of a submission.

    The base score depends on correctness, a time bonus rewards the share of the
    timer left, each revealed hint costs a fixed penalty and every chat message
    after the first one costs a smaller penalty. The result never goes below 0.
    """
    total_duration = max(0, total_duration)
    time_remaining = max(0, time_remaining)
    hints_used = max(0, hints_used)
    user_messages = max(0, user_messages)

    effective_total = total_duration if total_duration > 0 else time_remaining
    time_remaining = min(time_remaining, effective_total)
    time_spent = max(0, effective_total - time_remaining)

    time_bonus = (
        round_half_up(time_remaining / effective_total * MAX_TIME_BONUS)
        if effective_total > 0
        else 0
    )
    base_score = BASE_SCORE_CORRECT if correct else BASE_SCORE_INCORRECT
    hint_penalty = hints_used * HINT_PENALTY
    chat_penalty = max(0, (user_messages - 1) * MESSAGE_PENALTY)
    score = max(0, base_score + time_bonus - hint_penalty - chat_penalty)

    return ScoreBreakdown(
        score=score,
        base_score=base_score,
        time_bonus=time_bonus,
        hint_penalty=hint_penalty,
        chat_penalty=chat_penalty,
        time_spent=time_spent,
        time_remaining=time_remaining,
    )


def normalize_score(value: Optional[float]) -> int:
    """Map a raw score onto the 0-100 scale shown to players."""
    if value is None or not isinstance(value, (int, float)) or math.isnan(value):
        return 0
    if value <= 0:
        return 0
    return max(0, min(100, round_half_up(value / MAX_RAW_SCORE * 100)))


def compute_ranking(total_players: int, beaten_players: int, tied_players: int) -> int:
    """Percentile of a player: share of players strictly below plus half of the ties."""
    if total_players <= 0:
        return 0
    return round_half_up((beaten_players + tied_players / 2) / total_players * 100)
