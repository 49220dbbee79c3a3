"""Pydantic models used by the analysis router."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AnalysisResultModel(BaseModel):
    """Rating returned by the analysis service."""

    score: float = Field(..., description="Style score from 0 to 10")
    feedback: str
    suggestions: List[str] = Field(default_factory=list)
    style_analysis: Optional[Dict[str, Any]] = None


class AnalyzeResponse(BaseModel):
    """Response model for an analysis submission."""

    success: bool
    accepted: bool
    status: str = Field(
        ..., description="One of 'completed', 'duplicate' or 'busy'"
    )
    session_id: str
    request_id: Optional[str] = None
    result: Optional[AnalysisResultModel] = None
    message: str


class UploadSummary(BaseModel):
    """Queued upload without the image payload."""

    gender: str
    feedback_mode: str
    timestamp: float
    image_size: int = Field(..., description="Length of the encoded image")


class SessionResponse(BaseModel):
    """Current session state."""

    session_id: str
    has_session_data: bool
    current_upload: Optional[UploadSummary] = None
    analysis_result: Optional[AnalysisResultModel] = None
    active_request_count: int
    pending_request_count: int
    wardrobe_polling: bool
    pending_wardrobe_items: List[str] = Field(default_factory=list)


class NotificationModel(BaseModel):
    level: str
    message: str
    created_at: float


class NotificationsResponse(BaseModel):
    session_id: str
    notifications: List[NotificationModel] = Field(default_factory=list)


class MessageResponse(BaseModel):
    """Generic success response with message."""

    success: bool
    message: str
