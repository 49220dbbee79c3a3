"""Pydantic models used by the wardrobe router."""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class SaveOutfitResponse(BaseModel):
    """Response payload after saving an outfit."""

    success: bool
    wardrobe_item: Dict[str, Any]
    pending_images: int = Field(
        0, description="Clothing thumbnails still being generated"
    )
    message: str


class WardrobeResponse(BaseModel):
    """The session's local copy of the user's wardrobe."""

    success: bool
    items: List[Dict[str, Any]] = Field(default_factory=list)
    polling: bool
    pending_item_ids: List[str] = Field(default_factory=list)
