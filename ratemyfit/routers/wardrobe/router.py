"""FastAPI router for wardrobe endpoints."""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from ratemyfit.config import logger
from ratemyfit.core.image_processing import ImageValidationError
from ratemyfit.core.wardrobe_poller import count_pending_images
from ratemyfit.routers.analysis.dependencies import find_session, get_session
from ratemyfit.services.session_registry import AnalysisSession
from ratemyfit.services.wardrobe_service import (
    NothingToSaveError,
    RenderJobContext,
    load_wardrobe,
    save_session_outfit,
    trigger_render_images,
)

from .dependencies import get_current_user
from .models import SaveOutfitResponse, WardrobeResponse

router = APIRouter(prefix="/api/v1/wardrobe", tags=["Wardrobe"])


@router.post("", response_model=SaveOutfitResponse)
async def save_outfit(
    background_tasks: BackgroundTasks,
    session: Optional[AnalysisSession] = Depends(find_session),
    user: dict = Depends(get_current_user),
) -> SaveOutfitResponse:
    """Save the session's analyzed outfit and start generating item images."""

    if session is None:
        raise HTTPException(status_code=400, detail="Analyze an outfit before saving it")

    try:
        record = await save_session_outfit(session, user_id=user["id"])

        clothing_items = record.get("extracted_clothing_items") or []
        background_tasks.add_task(
            trigger_render_images,
            RenderJobContext(
                wardrobe_item_id=str(record["id"]),
                clothing_items=clothing_items,
            ),
        )

        logger.info(
            "Render image generation scheduled",
            extra={"wardrobe_item_id": record["id"], "items": len(clothing_items)},
        )

        return SaveOutfitResponse(
            success=True,
            wardrobe_item=record,
            pending_images=count_pending_images([record]),
            message="Outfit saved to your wardrobe!",
        )

    except (NothingToSaveError, ImageValidationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except HTTPException:
        raise
    except Exception as exc:
        logger.error("Error saving outfit", extra={"error": str(exc)})
        session.notifier.error("Failed to save outfit. Please try again.")
        raise HTTPException(status_code=500, detail=f"Failed to save outfit: {exc}")


@router.get("", response_model=WardrobeResponse)
async def get_wardrobe(
    session: AnalysisSession = Depends(get_session),
    user: dict = Depends(get_current_user),
) -> WardrobeResponse:
    """Load the wardrobe and watch rows whose item images are still pending."""

    try:
        items = await load_wardrobe(session, user_id=user["id"])
    except Exception as exc:
        logger.error("Error loading wardrobe", extra={"error": str(exc)})
        raise HTTPException(status_code=500, detail=f"Failed to load wardrobe: {exc}")

    return WardrobeResponse(
        success=True,
        items=items,
        polling=session.poller.is_running,
        pending_item_ids=session.poller.pending_ids,
    )
