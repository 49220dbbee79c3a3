"""Router package exposing all API routers."""

from fastapi import APIRouter

from .analysis.router import router as analysis_router
from .wardrobe.router import router as wardrobe_router

router = APIRouter()
router.include_router(analysis_router)
router.include_router(wardrobe_router)

__all__ = ["router", "analysis_router", "wardrobe_router"]
