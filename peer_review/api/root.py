from fastapi import APIRouter

from peer_review.core.config import settings

router = APIRouter()

@router.get("/")
def root():
    return {
        "name": "Peer Review Backend",
        "environment": settings.APP_ENV,
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
    }
