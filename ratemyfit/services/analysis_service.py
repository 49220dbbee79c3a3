"""Services driving the outfit analysis request lifecycle."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from ratemyfit.config import SLOW_ANALYSIS_WARNING_SECONDS, logger
from ratemyfit.core import analysis_client
from ratemyfit.core.image_processing import (
    ImageValidationError,
    compress_image,
    to_data_uri,
    validate_image,
)
from ratemyfit.core.request_dedup import RequestStatus, compute_fingerprint
from ratemyfit.core.upload_session import AnalysisResult, UploadData

from .session_registry import AnalysisSession

VALID_GENDERS = {"male", "female", "neutral"}
VALID_FEEDBACK_MODES = {"normal", "roast"}

STATUS_COMPLETED = "completed"
STATUS_DUPLICATE = "duplicate"
STATUS_BUSY = "busy"


def _log(level: int, message: str, **context: Any) -> None:
    """Helper to emit structured logs with contextual metadata."""
    logger.log(level, "%s | context=%s", message, context)


class AnalysisFailedError(Exception):
    """The remote analysis call failed; the request may be retried at once."""


@dataclass(slots=True)
class AnalysisOutcome:
    """Result of one analysis submission."""

    status: str
    result: Optional[AnalysisResult] = None
    request_id: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status == STATUS_COMPLETED


def _validate_options(gender: str, feedback_mode: str) -> None:
    if gender not in VALID_GENDERS:
        raise ImageValidationError(
            f"Invalid gender: {gender}. Must be one of {sorted(VALID_GENDERS)}"
        )
    if feedback_mode not in VALID_FEEDBACK_MODES:
        raise ImageValidationError(
            f"Invalid feedback mode: {feedback_mode}. "
            f"Must be one of {sorted(VALID_FEEDBACK_MODES)}"
        )


async def run_analysis(
    session: AnalysisSession,
    file_bytes: bytes,
    content_type: Optional[str],
    gender: str,
    feedback_mode: str,
    occasion_context: Optional[str] = None,
) -> AnalysisOutcome:
    """
    Validate, deduplicate and submit an outfit analysis for ``session``.

    Duplicate and over-capacity submissions are reported through the
    outcome status, not raised.

    Raises:
        ImageValidationError: input rejected before any network call
        AnalysisFailedError: the remote analysis failed
    """
    try:
        _validate_options(gender, feedback_mode)
        await asyncio.to_thread(validate_image, file_bytes, content_type)
    except ImageValidationError as exc:
        session.notifier.error(str(exc))
        raise

    if content_type == "image/jpg":
        content_type = "image/jpeg"

    # Pillow work runs off the event loop so other sessions keep polling.
    prepared, prepared_type, compressed = await asyncio.to_thread(
        compress_image, file_bytes, content_type
    )
    if compressed:
        session.notifier.info(
            f"Image compressed from {len(file_bytes) / 1024 / 1024:.1f}MB "
            f"to {len(prepared) / 1024 / 1024:.1f}MB"
        )
    image_data = to_data_uri(prepared, prepared_type)

    # No await from here until start_request: the check and the insert
    # must happen in the same event-loop step.
    dedup = session.dedup
    if dedup.is_duplicate(image_data, gender, feedback_mode):
        fingerprint = compute_fingerprint(image_data, gender, feedback_mode)
        previous = dedup.get(fingerprint)
        _log(
            logging.INFO,
            "analysis_duplicate",
            session_id=session.session_id,
            status=previous.status.value,
        )
        return AnalysisOutcome(
            status=STATUS_DUPLICATE,
            result=(
                previous.result
                if previous.status is RequestStatus.COMPLETED
                else None
            ),
            request_id=str(fingerprint),
        )

    if not dedup.can_make_request():
        _log(
            logging.INFO,
            "analysis_busy",
            session_id=session.session_id,
            pending=dedup.pending_request_count,
        )
        session.notifier.info("An analysis is already in progress. Please wait...")
        return AnalysisOutcome(status=STATUS_BUSY)

    fingerprint = dedup.start_request(image_data, gender, feedback_mode)

    session.upload.current_upload = UploadData(
        image_data=image_data,
        gender=gender,
        feedback_mode=feedback_mode,
        timestamp=time.time(),
    )
    # A result from an earlier image must never be paired with this upload.
    session.upload.analysis_result = None

    loop = asyncio.get_running_loop()
    slow_warning = loop.call_later(
        SLOW_ANALYSIS_WARNING_SECONDS,
        session.notifier.warning,
        "Analysis is taking longer than usual. Please wait...",
    )
    start_time = time.perf_counter()

    try:
        result = await analysis_client.analyze_outfit(
            image_data,
            gender,
            feedback_mode,
            occasion_context=occasion_context,
        )
    except asyncio.CancelledError:
        dedup.fail_request(fingerprint)
        _log(logging.WARNING, "analysis_cancelled", session_id=session.session_id)
        raise
    except Exception as exc:
        dedup.fail_request(fingerprint)
        _log(
            logging.ERROR,
            "analysis_failed",
            session_id=session.session_id,
            error=str(exc),
            duration_ms=int((time.perf_counter() - start_time) * 1000),
        )
        session.notifier.error("Failed to analyze your outfit. Please try again.")
        raise AnalysisFailedError(str(exc)) from exc
    finally:
        slow_warning.cancel()

    dedup.complete_request(fingerprint, result)
    session.upload.analysis_result = result

    _log(
        logging.INFO,
        "analysis_completed",
        session_id=session.session_id,
        score=result.score,
        duration_ms=int((time.perf_counter() - start_time) * 1000),
    )
    session.notifier.success("Analysis complete!")

    return AnalysisOutcome(
        status=STATUS_COMPLETED, result=result, request_id=str(fingerprint)
    )
