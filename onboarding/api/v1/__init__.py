from fastapi import APIRouter

from .conversation_routes import router as conversation_router
from .sport_routes import router as sport_router

router = APIRouter()
router.include_router(conversation_router)
router.include_router(sport_router)

__all__ = [
    "router",
    "conversation_router",
    "sport_router",
]
