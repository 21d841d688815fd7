"""Score persistence, ranking queries and per-player history."""

from datetime import datetime
from typing import Optional
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session
from enigmate.models.riddle import Riddle
from enigmate.models.score import Score
from enigmate.services.scoring import ScoreBreakdown, normalize_score

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_UPDATED_COLUMNS = ("score", "duration", "msg_count", "hints_used", "correct", "created_at")


def upsert_score(
    db: Session,
    user_id: str,
    riddle_id: int,
    breakdown: ScoreBreakdown,
    msg_count: int,
    hints_used: int,
    correct: bool,
) -> Score:
    """Insert or overwrite the player's score for a riddle in one statement.

    Concurrent submissions for the same (user, riddle) resolve to the last write
    instead of failing on the primary key.
    """
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Score upsert is not supported on {dialect}")

    stmt = insert(Score).values(
        user_id=user_id,
        riddle_id=riddle_id,
        score=breakdown.score,
        duration=breakdown.time_spent,
        msg_count=msg_count,
        hints_used=hints_used,
        correct=correct,
        created_at=datetime.utcnow(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "riddle_id"],
        set_={column: stmt.excluded[column] for column in _UPDATED_COLUMNS},
    )
    db.execute(stmt)
    db.commit()

    return get_score(db, user_id, riddle_id)


def get_score(db: Session, user_id: str, riddle_id: int) -> Optional[Score]:
    return db.query(Score).filter(
        Score.user_id == user_id,
        Score.riddle_id == riddle_id,
    ).first()


def count_ranking(db: Session, riddle_id: int, score: int) -> tuple[int, int, int]:
    """Return (total, strictly lower, tied) among the positive scores of a riddle."""
    scored = db.query(Score).filter(Score.riddle_id == riddle_id, Score.score > 0)
    total = scored.count()
    lower = scored.filter(Score.score < score).count()
    tied = scored.filter(Score.score == score).count()
    return total, lower, tied


def get_score_history(db: Session, user_id: str, limit: int = 50, offset: int = 0) -> list[dict]:
    rows = (
        db.query(Score, Riddle)
        .join(Riddle, Riddle.id == Score.riddle_id)
        .filter(Score.user_id == user_id)
        .order_by(Riddle.release_date.desc(), Score.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [
        {
            "riddle_id": riddle.id,
            "riddle_title": riddle.title,
            "release_date": riddle.release_date,
            "score": normalize_score(score.score),
            "correct": score.correct,
            "duration": score.duration,
            "msg_count": score.msg_count,
            "hints_used": score.hints_used,
            "created_at": score.created_at,
        }
        for score, riddle in rows
    ]


def get_score_stats(db: Session, user_id: str) -> dict:
    scores = db.query(Score).filter(Score.user_id == user_id).all()
    played = len(scores)
    solved = sum(1 for s in scores if s.correct)
    normalized = [normalize_score(s.score) for s in scores]

    solve_rate = (solved / played * 100) if played > 0 else 0.0
    average = (sum(normalized) / played) if played > 0 else 0.0

    return {
        "riddles_played": played,
        "riddles_solved": solved,
        "solve_rate": round(solve_rate, 1),
        "average_score": round(average, 1),
        "best_score": max(normalized) if normalized else 0,
    }
