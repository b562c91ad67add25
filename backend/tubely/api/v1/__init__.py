"""
Tubely API v1 Router Aggregator.

Router Structure:
    - /auth: Account registration, login and profile
    - /videos: Video metadata records (create, list, get, delete)
    - /upload: Video and thumbnail uploads
"""

from fastapi import APIRouter

from tubely.api.v1.auth import router as auth_router
from tubely.api.v1.upload import router as upload_router
from tubely.api.v1.videos import router as videos_router


api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])
api_router.include_router(videos_router, prefix="/videos", tags=["videos"])
api_router.include_router(upload_router, prefix="/upload", tags=["upload"])


__all__ = ["api_router"]
