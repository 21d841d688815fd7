from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from enigmate.database import get_db
from enigmate.dependencies import SupabaseUser, get_current_user
from enigmate.schemas.score import ScoreHistoryItem, ScoreStatsResponse
from enigmate.services.score_tracking import get_score_history, get_score_stats

router = APIRouter(prefix="/api/scores", tags=["scores"])


@router.get("/history", response_model=list[ScoreHistoryItem])
async def score_history(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: SupabaseUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the player's past scores, newest riddle first."""
    return get_score_history(db, current_user.id, limit=limit, offset=offset)


@router.get("/stats", response_model=ScoreStatsResponse)
async def score_stats(
    current_user: SupabaseUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the player's aggregate statistics."""
    return get_score_stats(db, current_user.id)
