"""Services for saving analyzed outfits and watching their render images."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from ratemyfit.config import logger
from ratemyfit.core import storage_ops, wardrobe_ops
from ratemyfit.core.clothing_extractor import build_clothing_entries
from ratemyfit.core.edge_functions import invoke_function
from ratemyfit.core.image_processing import from_data_uri

from .session_registry import AnalysisSession

GENERATE_IMAGE_FUNCTION = "generate-clothing-image"


def _log(level: int, message: str, **context: Any) -> None:
    logger.log(level, "%s | context=%s", message, context)


class NothingToSaveError(ValueError):
    """The session has no completed analysis to save."""


@dataclass(slots=True)
class RenderJobContext:
    """Metadata passed to the background render-image trigger."""

    wardrobe_item_id: str
    clothing_items: List[Dict[str, Any]]


async def save_session_outfit(
    session: AnalysisSession, user_id: str
) -> Dict[str, Any]:
    """
    Persist the session's current upload and analysis to the wardrobe.

    The new row is prepended to the session's wardrobe copy and polling
    restarts so its clothing thumbnails are picked up when generated.
    """
    upload = session.upload.current_upload
    result = session.upload.analysis_result
    if upload is None or result is None:
        raise NothingToSaveError("Analyze an outfit before saving it")

    file_bytes, content_type = from_data_uri(upload.image_data)
    image_url = await storage_ops.upload_outfit_image(
        file_bytes, user_id=user_id, content_type=content_type
    )

    clothing_items = build_clothing_entries(result.feedback)
    _log(
        logging.INFO,
        "clothing_items_extracted",
        session_id=session.session_id,
        count=len(clothing_items),
    )

    try:
        record = await wardrobe_ops.save_outfit(
            user_id=user_id,
            image_url=image_url,
            rating_score=result.score,
            feedback=result.feedback,
            suggestions=result.suggestions,
            gender=upload.gender,
            feedback_mode=upload.feedback_mode,
            extracted_clothing_items=clothing_items,
        )
    except Exception:
        await _cleanup_image(image_url)
        raise

    session.watch_wardrobe([record, *session.wardrobe_items])
    session.notifier.success("Outfit saved to your wardrobe!")
    return record


async def load_wardrobe(
    session: AnalysisSession, user_id: str
) -> List[Dict[str, Any]]:
    items = await wardrobe_ops.get_wardrobe_items(user_id)
    session.watch_wardrobe(items)
    return session.wardrobe_items


async def trigger_render_images(context: RenderJobContext) -> int:
    """
    Ask the backend to generate thumbnails for entries that lack one.

    Fire-and-forget: failures are logged and the poller simply keeps
    waiting. Returns the number of generation requests accepted.
    """
    started = 0
    for index, entry in enumerate(context.clothing_items):
        if not entry.get("name") or entry.get("renderImageUrl"):
            continue
        try:
            await invoke_function(
                GENERATE_IMAGE_FUNCTION,
                {
                    "itemName": entry["name"],
                    "wardrobeItemId": context.wardrobe_item_id,
                    "arrayIndex": index,
                },
            )
            started += 1
        except Exception as exc:
            _log(
                logging.WARNING,
                "render_image_trigger_failed",
                wardrobe_item_id=context.wardrobe_item_id,
                index=index,
                error=str(exc),
            )

    _log(
        logging.INFO,
        "render_images_triggered",
        wardrobe_item_id=context.wardrobe_item_id,
        started=started,
    )
    return started


async def _cleanup_image(image_url: str) -> None:
    bucket_marker = f"/{storage_ops.OUTFIT_IMAGES_BUCKET}/"
    if bucket_marker not in image_url:
        return
    path = image_url.split(bucket_marker)[-1].split("?")[0]
    try:
        await storage_ops.delete_file(path)
    except Exception as exc:
        _log(logging.WARNING, "cleanup_failed", path=path, error=str(exc))
