from enigmate.routers.auth import router as auth_router
from enigmate.routers.riddles import router as riddles_router
from enigmate.routers.master_chat import router as master_chat_router
from enigmate.routers.scores import router as scores_router

__all__ = ["auth_router", "riddles_router", "master_chat_router", "scores_router"]
