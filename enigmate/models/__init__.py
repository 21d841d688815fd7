from enigmate.models.riddle import Riddle
from enigmate.models.score import Score
from enigmate.models.chat import Chat

__all__ = ["Riddle", "Score", "Chat"]
