"""Per-session record of the queued upload and the last analysis result."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class UploadData:
    image_data: str
    gender: str
    feedback_mode: str
    timestamp: float


@dataclass
class AnalysisResult:
    score: float
    feedback: str
    suggestions: List[str] = field(default_factory=list)
    style_analysis: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "feedback": self.feedback,
            "suggestions": list(self.suggestions),
            "style_analysis": self.style_analysis,
        }


class UploadSession:
    """
    Holds ``current_upload`` and ``analysis_result`` for one session.

    The two fields are independent: setting one never touches the other.
    Nothing is validated on assignment.
    """

    def __init__(self) -> None:
        self._current_upload: Optional[UploadData] = None
        self._analysis_result: Optional[AnalysisResult] = None

    @property
    def current_upload(self) -> Optional[UploadData]:
        return self._current_upload

    @current_upload.setter
    def current_upload(self, upload: Optional[UploadData]) -> None:
        self._current_upload = upload

    @property
    def analysis_result(self) -> Optional[AnalysisResult]:
        return self._analysis_result

    @analysis_result.setter
    def analysis_result(self, result: Optional[AnalysisResult]) -> None:
        self._analysis_result = result

    @property
    def has_session_data(self) -> bool:
        return self._current_upload is not None or self._analysis_result is not None

    def clear(self) -> None:
        self._current_upload = None
        self._analysis_result = None
