import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from enigmate.database import get_db
from enigmate.dependencies import SupabaseUser, get_current_user, get_current_user_optional
from enigmate.schemas.base import lenient_int, resolve_language
from enigmate.schemas.riddle import RiddleTodayResponse, TranslateRequest, TranslateResponse
from enigmate.schemas.score import ScoreboardResponse, SubmitRequest, SubmitResponse
from enigmate.services.riddles import get_riddle, get_riddle_of_the_day, riddle_image_url
from enigmate.services.score_tracking import count_ranking, get_score
from enigmate.services.scoring import compute_ranking, normalize_score
from enigmate.services.submission import submit_answer
from enigmate.services.translation import (
    RiddleTranslatableFields,
    translate_riddle_content,
    translate_title_and_question,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["riddles"])

MESSAGES = {
    "fr": {
        "invalid_params": "Paramètres invalides",
        "invalid_riddle": "riddleId requis",
        "not_found": "Énigme introuvable",
        "no_riddle_today": "Aucune énigme disponible",
        "save_failed": "Impossible d'enregistrer le score",
        "auth_required": "Connecte-toi pour accéder au classement.",
        "unexpected": "Erreur inattendue",
    },
    "en": {
        "invalid_params": "Invalid parameters",
        "invalid_riddle": "riddleId required",
        "not_found": "Riddle not found",
        "no_riddle_today": "No riddle available today",
        "save_failed": "Could not save the score",
        "auth_required": "Sign in to view the leaderboard.",
        "unexpected": "Unexpected error",
    },
}


@router.get("/riddle-today", response_model=RiddleTodayResponse)
async def riddle_today(lang: Optional[str] = None, db: Session = Depends(get_db)):
    """Today's riddle, without its answer."""
    messages = MESSAGES[resolve_language(lang)]
    try:
        riddle = get_riddle_of_the_day(db)
        if not riddle:
            logger.info("[RiddleToday] No riddle released today")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=messages["no_riddle_today"])
        image_url = await riddle_image_url(riddle)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error("[RiddleToday] Failed to load today's riddle: %s", e)
        raise HTTPException(status_code=500, detail=messages["unexpected"])

    logger.info("[RiddleToday] Serving riddle %s (image=%s)", riddle.id, bool(image_url))

    return RiddleTodayResponse(
        id=riddle.id,
        question=riddle.question,
        title=riddle.title,
        duration=riddle.duration,
        difficulty=riddle.difficulty,
        release_date=riddle.release_date,
        hint1=riddle.hint1,
        hint2=riddle.hint2,
        hint3=riddle.hint3,
        image_url=image_url,
    )


@router.post("/riddle-submit", response_model=SubmitResponse)
async def riddle_submit(
    request: SubmitRequest,
    current_user: SupabaseUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Grade an answer, store the score and return the verdict."""
    messages = MESSAGES[request.lang]
    if request.riddle_id <= 0 or not request.answer:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=messages["invalid_params"])

    try:
        riddle = get_riddle(db, request.riddle_id)
        if not riddle:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=messages["not_found"])

        result = await submit_answer(
            db,
            user_id=current_user.id,
            riddle=riddle,
            answer=request.answer,
            total_duration=request.total_duration,
            time_remaining=request.time_remaining,
            hints_used=request.hints_used,
            user_messages=request.user_messages,
            language=request.lang,
        )
    except HTTPException:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("[Submit] Failed to store score for riddle %s: %s", request.riddle_id, e)
        raise HTTPException(status_code=500, detail=messages["save_failed"])
    except Exception as e:
        db.rollback()
        logger.error("[Submit] Unexpected error for riddle %s: %s", request.riddle_id, e)
        raise HTTPException(status_code=500, detail=messages["unexpected"])

    return SubmitResponse(
        correct=result.verdict.correct,
        score=result.breakdown.score,
        feedback=result.feedback,
        verdict_source=result.verdict.source,
        reasoning=result.verdict.reasoning,
        missing_elements=result.verdict.missing_elements,
        hints_used=result.hints_used,
        time_spent=result.breakdown.time_spent,
        user_messages=result.user_messages,
        time_remaining=result.breakdown.time_remaining,
    )


@router.get("/riddle-scoreboard", response_model=ScoreboardResponse, response_model_exclude_none=True)
async def riddle_scoreboard(
    riddle_id: Optional[str] = Query(None, alias="riddleId"),
    lang: Optional[str] = None,
    current_user: Optional[SupabaseUser] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    """The player's score for a riddle with their percentile among all players."""
    language = resolve_language(lang)
    messages = MESSAGES[language]

    parsed_id = lenient_int(riddle_id)
    if parsed_id <= 0:
        logger.warning("[Scoreboard] Invalid riddle id %r (lang=%s)", riddle_id, language)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=messages["invalid_riddle"])

    if current_user is None:
        logger.info("[Scoreboard] Missing session for riddle %s", parsed_id)
        return ScoreboardResponse(has_score=False, requires_auth=True, error=messages["auth_required"])

    try:
        existing = get_score(db, current_user.id, parsed_id)
        if existing is None:
            logger.info("[Scoreboard] No score for riddle %s user %s", parsed_id, current_user.id)
            return ScoreboardResponse(has_score=False)

        raw_score = existing.score or 0
        total, beaten, tied = count_ranking(db, parsed_id, raw_score)
        riddle = get_riddle(db, parsed_id)

        fields = RiddleTranslatableFields(
            title=riddle.title if riddle else None,
            question=riddle.question if riddle else None,
            solution=(riddle.solution or riddle.answer) if riddle else None,
            hints={
                "hint1": riddle.hint1 if riddle else None,
                "hint2": riddle.hint2 if riddle else None,
                "hint3": riddle.hint3 if riddle else None,
            },
        )
        translated = await translate_riddle_content(fields, language)
        hints = [hint for hint in translated.hints.values() if hint]
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error("[Scoreboard] Failed to fetch data for riddle %s (lang=%s): %s", parsed_id, language, e)
        raise HTTPException(status_code=500, detail=messages["unexpected"])

    ranking = compute_ranking(total, beaten, tied)
    logger.info(
        "[Scoreboard] riddle=%s user=%s score=%s total=%s beaten=%s ranking=%s",
        parsed_id, current_user.id, raw_score, total, beaten, ranking,
    )

    return ScoreboardResponse(
        has_score=True,
        score=normalize_score(raw_score),
        duration=existing.duration,
        msg_count=existing.msg_count,
        hints_used=existing.hints_used,
        total_players=total,
        beaten_players=beaten,
        ranking_percent=ranking,
        hints=hints,
        question=translated.question,
        official_answer=translated.solution,
        riddle_title=translated.title,
    )


@router.post("/riddle-translate", response_model=TranslateResponse)
async def riddle_translate(request: TranslateRequest):
    """Translate a riddle's title and question for the intro screen."""
    try:
        title, question = await translate_title_and_question(request.title, request.question, request.target)
    except Exception as e:
        logger.error("[Translate] Unexpected error (target=%s): %s", request.target, e)
        raise HTTPException(status_code=500, detail=MESSAGES[request.target]["unexpected"])
    return TranslateResponse(title=title, question=question)
