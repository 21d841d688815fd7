"""Answer grading pipeline: exact match first, then the LLM judge, then scoring."""

import logging
from dataclasses import dataclass, field
from typing import Optional
from sqlalchemy.orm import Session
from enigmate.models.riddle import Riddle
from enigmate.services import judge
from enigmate.services.normalize import answers_match
from enigmate.services.score_tracking import upsert_score
from enigmate.services.scoring import ScoreBreakdown, compute_score

logger = logging.getLogger(__name__)

FEEDBACK = {
    True: {
        "fr": "Bravo ! Ta réponse est juste.",
        "en": "Well done! Your answer is correct.",
    },
    False: {
        "fr": "La réponse proposée ne correspond pas. Continue de creuser ou reviens avec une nouvelle intuition.",
        "en": "Your answer does not match. Keep digging or come back with a fresh idea.",
    },
}


@dataclass
class Verdict:
    correct: bool
    source: str  # "exact" or "judge"
    reasoning: Optional[str] = None
    missing_elements: list[str] = field(default_factory=list)


@dataclass
class SubmissionResult:
    verdict: Verdict
    breakdown: ScoreBreakdown
    feedback: str
    hints_used: int
    user_messages: int


async def grade_answer(riddle: Riddle, answer: str, hints_used: int, language: str) -> Verdict:
    """Decide whether an answer is right, asking the judge only when the texts differ."""
    if answers_match(answer, riddle.answer):
        return Verdict(correct=True, source="exact")

    calibration = await judge.ensure_daily_calibration(
        riddle.id, riddle.question, riddle.answer, language
    )
    evaluation = await judge.evaluate_answer(
        riddle_id=riddle.id,
        question=riddle.question,
        expected_answer=riddle.answer,
        user_answer=answer,
        calibration=calibration,
        hints=riddle.hints[: max(0, hints_used)],
        language=language,
    )
    return Verdict(
        correct=evaluation.is_correct,
        source="judge",
        reasoning=evaluation.reasoning,
        missing_elements=evaluation.missing_elements,
    )


async def submit_answer(
    db: Session,
    user_id: str,
    riddle: Riddle,
    answer: str,
    total_duration: int,
    time_remaining: int,
    hints_used: int,
    user_messages: int,
    language: str,
) -> SubmissionResult:
    """Grade, score and persist a submission. Persistence errors propagate to the caller."""
    hints_used = max(0, hints_used)
    user_messages = max(0, user_messages)

    verdict = await grade_answer(riddle, answer, hints_used, language)
    breakdown = compute_score(
        correct=verdict.correct,
        total_duration=total_duration,
        time_remaining=time_remaining,
        hints_used=hints_used,
        user_messages=user_messages,
    )

    upsert_score(
        db,
        user_id=user_id,
        riddle_id=riddle.id,
        breakdown=breakdown,
        msg_count=user_messages,
        hints_used=hints_used,
        correct=verdict.correct,
    )

    logger.info(
        "[Submit] riddle=%s user=%s correct=%s source=%s score=%s",
        riddle.id, user_id, verdict.correct, verdict.source, breakdown.score,
    )

    return SubmissionResult(
        verdict=verdict,
        breakdown=breakdown,
        feedback=FEEDBACK[verdict.correct][language],
        hints_used=hints_used,
        user_messages=user_messages,
    )
