from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, UniqueConstraint
from datetime import datetime
from enigmate.database import Base


class Chat(Base):
    __tablename__ = "chats"
    __table_args__ = (UniqueConstraint("user_id", "riddle_id", name="chats_user_riddle_key"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    riddle_id = Column(Integer, ForeignKey("riddles.id"), nullable=False)
    messages = Column(JSON, default=list)  # [{id, author, text, created_at}]
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
