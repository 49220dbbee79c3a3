"""FastAPI router for outfit analysis and session endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from ratemyfit.config import logger
from ratemyfit.core.image_processing import ImageValidationError
from ratemyfit.core.upload_session import AnalysisResult
from ratemyfit.services.analysis_service import (
    STATUS_BUSY,
    STATUS_DUPLICATE,
    AnalysisFailedError,
    run_analysis,
)
from ratemyfit.services.session_registry import AnalysisSession, session_registry

from .dependencies import find_session, get_session, require_session
from .models import (
    AnalysisResultModel,
    AnalyzeResponse,
    MessageResponse,
    NotificationModel,
    NotificationsResponse,
    SessionResponse,
    UploadSummary,
)

router = APIRouter(prefix="/api/v1", tags=["Outfit Analysis"])

_OUTCOME_MESSAGES = {
    STATUS_DUPLICATE: "This outfit was just analyzed. Showing the previous result.",
    STATUS_BUSY: "An analysis is already in progress. Please wait.",
}


def _result_model(result: Optional[AnalysisResult]) -> Optional[AnalysisResultModel]:
    if result is None:
        return None
    return AnalysisResultModel(**result.to_dict())


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(
    image: UploadFile = File(..., description="Outfit photo (JPG or PNG)"),
    gender: str = Form("female"),
    feedback_mode: str = Form("normal"),
    occasion_context: Optional[str] = Form(default=None),
    session: AnalysisSession = Depends(get_session),
) -> AnalyzeResponse:
    """Submit an outfit photo for rating."""

    try:
        logger.info(
            "Outfit analysis request received",
            extra={"session_id": session.session_id, "feedback_mode": feedback_mode},
        )

        file_bytes = await image.read()
        outcome = await run_analysis(
            session,
            file_bytes,
            image.content_type,
            gender=gender,
            feedback_mode=feedback_mode,
            occasion_context=occasion_context,
        )

        return AnalyzeResponse(
            success=True,
            accepted=outcome.accepted,
            status=outcome.status,
            session_id=session.session_id,
            request_id=outcome.request_id,
            result=_result_model(outcome.result),
            message=_OUTCOME_MESSAGES.get(outcome.status, "Analysis complete!"),
        )

    except ImageValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except AnalysisFailedError as exc:
        raise HTTPException(
            status_code=502,
            detail=f"Failed to analyze your outfit. Please try again. ({exc})",
        )
    except HTTPException:
        raise
    except Exception as exc:
        logger.error("Unexpected error in analysis request", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"An unexpected error occurred: {exc}",
        )


@router.get("/session", response_model=SessionResponse)
async def get_session_state(
    session: AnalysisSession = Depends(require_session),
) -> SessionResponse:
    """Report what is queued and what came back for this session."""

    upload = session.upload.current_upload
    summary = None
    if upload is not None:
        summary = UploadSummary(
            gender=upload.gender,
            feedback_mode=upload.feedback_mode,
            timestamp=upload.timestamp,
            image_size=len(upload.image_data),
        )

    return SessionResponse(
        session_id=session.session_id,
        has_session_data=session.upload.has_session_data,
        current_upload=summary,
        analysis_result=_result_model(session.upload.analysis_result),
        active_request_count=session.dedup.active_request_count,
        pending_request_count=session.dedup.pending_request_count,
        wardrobe_polling=session.poller.is_running,
        pending_wardrobe_items=session.poller.pending_ids,
    )


@router.delete("/session", response_model=MessageResponse)
async def reset_session(
    session: Optional[AnalysisSession] = Depends(find_session),
) -> MessageResponse:
    """Clear session state and stop any wardrobe polling."""

    if session is not None:
        await session_registry.close(session.session_id)
    return MessageResponse(success=True, message="Session cleared")


@router.get("/session/notifications", response_model=NotificationsResponse)
async def drain_notifications(
    session: AnalysisSession = Depends(require_session),
) -> NotificationsResponse:
    """Hand over pending toasts for this session."""

    return NotificationsResponse(
        session_id=session.session_id,
        notifications=[
            NotificationModel(**notification.to_dict())
            for notification in session.notifier.drain()
        ],
    )


@router.get("/health")
async def health_check() -> dict:
    """Simple health check endpoint."""

    return {
        "status": "healthy",
        "service": "ratemyfit-api",
        "version": "1.0.0",
    }
