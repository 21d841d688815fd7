from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from enigmate.database import Base


class Score(Base):
    __tablename__ = "scores"

    user_id = Column(String(36), primary_key=True)  # Supabase auth user UUID
    riddle_id = Column(Integer, ForeignKey("riddles.id"), primary_key=True, index=True)

    score = Column(Integer, nullable=True)  # raw score, 0..MAX_RAW_SCORE
    duration = Column(Integer, nullable=True)  # seconds spent
    msg_count = Column(Integer, nullable=True)
    hints_used = Column(Integer, nullable=True)
    correct = Column(Boolean, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    riddle = relationship("Riddle", back_populates="scores")
