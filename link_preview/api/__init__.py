from fastapi import APIRouter

from link_preview.api.v1 import previews

api_router = APIRouter(prefix="/api")
api_router.include_router(previews.router)

__all__ = ["api_router"]
