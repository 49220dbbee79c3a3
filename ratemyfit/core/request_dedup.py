"""
Client-side guard against issuing the same outfit analysis twice.

Requests are recognised by a cheap fingerprint of (image, gender, feedback
mode). The fingerprint is a heuristic: distinct images collide only with low
probability, and that is accepted. Everything lives in memory for the
lifetime of one session; nothing here is a server-side guarantee.

Callers must not await anything between ``is_duplicate`` and
``start_request`` for the same request, otherwise the check-then-act pair is
no longer atomic on the event loop.
"""

import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ratemyfit.config import DEDUP_WINDOW_MS, MAX_CONCURRENT_REQUESTS, logger

HASH_SAMPLE_SIZE = 1000
DIGEST_PREFIX_SIZE = 20


class RequestStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RequestFingerprint:
    """Key identifying one logical analysis request."""

    gender: str
    feedback_mode: str
    image_digest: str

    def __str__(self) -> str:
        return f"{self.gender}_{self.feedback_mode}_{self.image_digest}"

    def short(self, length: int = 50) -> str:
        value = str(self)
        return value if len(value) <= length else value[:length] + "..."


@dataclass(frozen=True)
class TrackedRequest:
    id: RequestFingerprint
    created_at: float
    status: RequestStatus
    result: Any = None


def compute_image_digest(image_data: str) -> str:
    """
    Hash a prefix of the encoded image into a short digest.

    The rolling hash runs over the first 1000 characters and is wrapped to a
    signed 32-bit integer; the total length and the first 20 characters are
    appended to separate images that share a prefix.
    """
    sample = image_data[:HASH_SAMPLE_SIZE]

    value = 0
    for char in sample:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000

    return f"{value}_{len(image_data)}_{sample[:DIGEST_PREFIX_SIZE]}"


def compute_fingerprint(
    image_data: str, gender: str, feedback_mode: str
) -> RequestFingerprint:
    return RequestFingerprint(
        gender=gender,
        feedback_mode=feedback_mode,
        image_digest=compute_image_digest(image_data),
    )


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class RequestDeduplicator:
    """Tracks recent analysis requests and caps how many run at once."""

    def __init__(
        self,
        dedup_window_ms: int = DEDUP_WINDOW_MS,
        max_concurrent_requests: int = MAX_CONCURRENT_REQUESTS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.dedup_window_ms = dedup_window_ms
        self.max_concurrent_requests = max_concurrent_requests
        self._clock = clock or _monotonic_ms
        self._requests: Dict[RequestFingerprint, TrackedRequest] = {}

    @property
    def active_request_count(self) -> int:
        return len(self._requests)

    @property
    def pending_request_count(self) -> int:
        return sum(
            1
            for request in self._requests.values()
            if request.status is RequestStatus.PENDING
        )

    def get(self, fingerprint: RequestFingerprint) -> Optional[TrackedRequest]:
        return self._requests.get(fingerprint)

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [
            fingerprint
            for fingerprint, request in self._requests.items()
            if now - request.created_at > self.dedup_window_ms
        ]
        for fingerprint in expired:
            del self._requests[fingerprint]

        if expired:
            logger.debug(f"Purged {len(expired)} expired request(s)")

    def is_duplicate(self, image_data: str, gender: str, feedback_mode: str) -> bool:
        self._purge_expired()

        fingerprint = compute_fingerprint(image_data, gender, feedback_mode)
        existing = self._requests.get(fingerprint)
        if existing is None:
            return False

        age_ms = self._clock() - existing.created_at
        is_recent = age_ms < self.dedup_window_ms
        duplicate = is_recent and existing.status in (
            RequestStatus.PENDING,
            RequestStatus.COMPLETED,
        )

        if duplicate:
            logger.info(
                "Duplicate request detected",
                extra={
                    "request_id": fingerprint.short(),
                    "existing_status": existing.status.value,
                    "age_ms": age_ms,
                },
            )

        return duplicate

    def can_make_request(self) -> bool:
        return self.pending_request_count < self.max_concurrent_requests

    def start_request(
        self, image_data: str, gender: str, feedback_mode: str
    ) -> RequestFingerprint:
        fingerprint = compute_fingerprint(image_data, gender, feedback_mode)
        self._requests[fingerprint] = TrackedRequest(
            id=fingerprint,
            created_at=self._clock(),
            status=RequestStatus.PENDING,
        )

        logger.info(
            "Started new request",
            extra={
                "request_id": fingerprint.short(),
                "active_count": len(self._requests),
            },
        )
        return fingerprint

    def _transition(
        self, fingerprint: RequestFingerprint, status: RequestStatus, result: Any = None
    ) -> None:
        existing = self._requests.get(fingerprint)
        if existing is None:
            # Expired and purged before the call finished.
            logger.debug(
                f"Request {fingerprint.short()} already expired; "
                f"ignoring transition to {status.value}"
            )
            return
        self._requests[fingerprint] = replace(existing, status=status, result=result)

    def complete_request(self, fingerprint: RequestFingerprint, result: Any = None) -> None:
        """Mark the request completed, keeping its result for later duplicates."""
        self._transition(fingerprint, RequestStatus.COMPLETED, result)
        logger.info(f"Completed request: {fingerprint.short()}")

    def fail_request(self, fingerprint: RequestFingerprint) -> None:
        self._transition(fingerprint, RequestStatus.FAILED)
        logger.warning(f"Failed request: {fingerprint.short()}")
