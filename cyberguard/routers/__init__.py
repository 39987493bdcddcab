# Routers package
from . import auth_router
from . import users_router
from . import progress_router
from . import quiz_router
from . import game_router

__all__ = [
    "auth_router",
    "users_router",
    "progress_router",
    "quiz_router",
    "game_router",
]
