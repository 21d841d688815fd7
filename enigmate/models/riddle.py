from sqlalchemy import Column, Integer, String, Date, Text
from sqlalchemy.orm import relationship
from enigmate.database import Base


class Riddle(Base):
    __tablename__ = "riddles"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    solution = Column(Text, nullable=True)  # Explained answer shown on the scoreboard

    hint1 = Column(Text, nullable=True)
    hint2 = Column(Text, nullable=True)
    hint3 = Column(Text, nullable=True)

    difficulty = Column(Integer, nullable=True)
    duration = Column(Integer, nullable=True)  # seconds
    image_path = Column(String(500), nullable=True)
    release_date = Column(Date, nullable=False, index=True)

    scores = relationship("Score", back_populates="riddle", cascade="all, delete-orphan")

    @property
    def hints(self) -> list[str]:
        return [hint for hint in (self.hint1, self.hint2, self.hint3) if hint]
