"""Lookup of riddles and of today's riddle."""

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Optional
from sqlalchemy.orm import Session
from enigmate.config import RIDDLE_IMAGE_BUCKET, SIGNED_URL_TTL_SECONDS
from enigmate.models.riddle import Riddle
from enigmate.supabase_client import create_signed_url, get_supabase_admin

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def get_riddle(db: Session, riddle_id: int) -> Optional[Riddle]:
    return db.query(Riddle).filter(Riddle.id == riddle_id).first()


def get_riddle_of_the_day(db: Session, day: Optional[date] = None) -> Optional[Riddle]:
    """The riddle released on the given UTC day (today by default)."""
    day = day or utc_today()
    return (
        db.query(Riddle)
        .filter(Riddle.release_date == day)
        .order_by(Riddle.id)
        .first()
    )


async def riddle_image_url(riddle: Riddle) -> Optional[str]:
    """Signed URL of the riddle illustration, when one is stored and storage is configured."""
    if not riddle.image_path:
        return None
    client = get_supabase_admin()
    if client is None:
        return None
    return await asyncio.to_thread(
        create_signed_url, client, RIDDLE_IMAGE_BUCKET, riddle.image_path, SIGNED_URL_TTL_SECONDS
    )
