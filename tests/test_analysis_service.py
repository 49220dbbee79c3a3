import asyncio

import pytest

from ratemyfit.core import analysis_client
from ratemyfit.core.edge_functions import EdgeFunctionError
from ratemyfit.core.image_processing import ImageValidationError, to_data_uri
from ratemyfit.core.request_dedup import RequestStatus
from ratemyfit.core.upload_session import AnalysisResult
from ratemyfit.services import analysis_service
from ratemyfit.services.analysis_service import (
    STATUS_BUSY,
    STATUS_COMPLETED,
    STATUS_DUPLICATE,
    AnalysisFailedError,
    run_analysis,
)
from ratemyfit.services.session_registry import AnalysisSession
from ratemyfit.services.wardrobe_service import NothingToSaveError, save_session_outfit


class FakeAnalyzer:
    def __init__(self, result=None, error=None, gate=None, delay=0.0):
        self.result = result or AnalysisResult(
            score=7.5, feedback="The navy blazer works.", suggestions=["Add a watch"]
        )
        self.error = error
        self.gate = gate
        self.delay = delay
        self.calls = []

    async def __call__(self, image_data, gender, feedback_mode, occasion_context=None):
        self.calls.append((gender, feedback_mode, occasion_context))
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def _messages(session, level):
    return [n.message for n in session.notifier.pending if n.level == level]


async def _wait_until(condition, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        assert asyncio.get_running_loop().time() < deadline, "condition never became true"
        await asyncio.sleep(0.005)


def test_successful_analysis_updates_session(monkeypatch, png_bytes):
    analyzer = FakeAnalyzer()
    monkeypatch.setattr(analysis_client, "analyze_outfit", analyzer)
    session = AnalysisSession(session_id="s-success")

    outcome = asyncio.run(
        run_analysis(session, png_bytes, "image/png", "female", "normal", "Wedding")
    )

    assert outcome.status == STATUS_COMPLETED
    assert outcome.accepted
    assert outcome.result is analyzer.result
    assert analyzer.calls == [("female", "normal", "Wedding")]

    assert session.upload.analysis_result is analyzer.result
    upload = session.upload.current_upload
    assert upload.gender == "female"
    assert upload.image_data.startswith("data:image/png;base64,")

    assert session.dedup.pending_request_count == 0
    assert session.dedup.active_request_count == 1
    assert _messages(session, "success") == ["Analysis complete!"]


def test_repeat_submission_is_reported_as_duplicate(monkeypatch, png_bytes):
    analyzer = FakeAnalyzer()
    monkeypatch.setattr(analysis_client, "analyze_outfit", analyzer)
    session = AnalysisSession(session_id="s-duplicate")

    async def scenario():
        await run_analysis(session, png_bytes, "image/png", "male", "roast")
        return await run_analysis(session, png_bytes, "image/png", "male", "roast")

    outcome = asyncio.run(scenario())

    assert outcome.status == STATUS_DUPLICATE
    assert not outcome.accepted
    assert outcome.result is analyzer.result
    assert len(analyzer.calls) == 1


def test_second_request_is_busy_while_first_is_pending(monkeypatch, png_bytes, jpeg_bytes):
    async def scenario():
        analyzer = FakeAnalyzer(gate=asyncio.Event())
        monkeypatch.setattr(analysis_client, "analyze_outfit", analyzer)
        session = AnalysisSession(session_id="s-busy")

        first = asyncio.create_task(
            run_analysis(session, png_bytes, "image/png", "female", "normal")
        )
        await _wait_until(lambda: analyzer.calls)
        assert session.dedup.pending_request_count == 1

        second = await run_analysis(session, jpeg_bytes, "image/jpeg", "female", "normal")

        analyzer.gate.set()
        completed = await first
        return session, analyzer, second, completed

    session, analyzer, second, completed = asyncio.run(scenario())

    assert second.status == STATUS_BUSY
    assert second.result is None
    assert completed.status == STATUS_COMPLETED
    assert len(analyzer.calls) == 1
    assert "An analysis is already in progress. Please wait..." in _messages(
        session, "info"
    )


def test_failed_analysis_can_be_retried(monkeypatch, png_bytes):
    failing = FakeAnalyzer(error=EdgeFunctionError("upstream 500"))
    monkeypatch.setattr(analysis_client, "analyze_outfit", failing)
    session = AnalysisSession(session_id="s-retry")

    with pytest.raises(AnalysisFailedError):
        asyncio.run(run_analysis(session, png_bytes, "image/png", "female", "normal"))

    statuses = [request.status for request in session.dedup._requests.values()]
    assert statuses == [RequestStatus.FAILED]
    assert session.upload.analysis_result is None
    assert _messages(session, "error") == [
        "Failed to analyze your outfit. Please try again."
    ]

    working = FakeAnalyzer()
    monkeypatch.setattr(analysis_client, "analyze_outfit", working)
    outcome = asyncio.run(
        run_analysis(session, png_bytes, "image/png", "female", "normal")
    )

    assert outcome.status == STATUS_COMPLETED
    assert len(working.calls) == 1


def test_invalid_input_is_rejected_before_network(monkeypatch, png_bytes):
    analyzer = FakeAnalyzer()
    monkeypatch.setattr(analysis_client, "analyze_outfit", analyzer)
    session = AnalysisSession(session_id="s-invalid")

    with pytest.raises(ImageValidationError):
        asyncio.run(run_analysis(session, png_bytes, "image/gif", "female", "normal"))
    with pytest.raises(ImageValidationError):
        asyncio.run(run_analysis(session, png_bytes, "image/png", "robot", "normal"))
    with pytest.raises(ImageValidationError):
        asyncio.run(run_analysis(session, png_bytes, "image/png", "male", "gentle"))

    assert analyzer.calls == []
    assert session.dedup.active_request_count == 0
    assert len(_messages(session, "error")) == 3


def test_slow_analysis_warns_user(monkeypatch, png_bytes):
    monkeypatch.setattr(analysis_service, "SLOW_ANALYSIS_WARNING_SECONDS", 0.01)
    monkeypatch.setattr(analysis_client, "analyze_outfit", FakeAnalyzer(delay=0.1))
    session = AnalysisSession(session_id="s-slow")

    asyncio.run(run_analysis(session, png_bytes, "image/png", "neutral", "normal"))

    assert _messages(session, "warning") == [
        "Analysis is taking longer than usual. Please wait..."
    ]


def test_fast_analysis_does_not_warn(monkeypatch, png_bytes):
    monkeypatch.setattr(analysis_client, "analyze_outfit", FakeAnalyzer())
    session = AnalysisSession(session_id="s-fast")

    asyncio.run(run_analysis(session, png_bytes, "image/png", "neutral", "normal"))

    assert _messages(session, "warning") == []


def test_duplicate_returns_result_of_the_same_image(monkeypatch, make_image):
    image_a = make_image("PNG", color=(10, 10, 10))
    image_b = make_image("PNG", color=(240, 240, 240))
    result_a = AnalysisResult(score=9.0, feedback="A: navy blazer")
    result_b = AnalysisResult(score=3.0, feedback="B: baggy jeans")
    session = AnalysisSession(session_id="s-per-image")

    async def scenario():
        monkeypatch.setattr(analysis_client, "analyze_outfit", FakeAnalyzer(result_a))
        await run_analysis(session, image_a, "image/png", "female", "normal")
        monkeypatch.setattr(analysis_client, "analyze_outfit", FakeAnalyzer(result_b))
        await run_analysis(session, image_b, "image/png", "female", "normal")
        return await run_analysis(session, image_a, "image/png", "female", "normal")

    outcome = asyncio.run(scenario())

    assert outcome.status == STATUS_DUPLICATE
    assert outcome.result is result_a
    assert session.upload.analysis_result is result_b


def test_duplicate_of_pending_request_has_no_result(monkeypatch, png_bytes):
    async def scenario():
        analyzer = FakeAnalyzer(gate=asyncio.Event())
        monkeypatch.setattr(analysis_client, "analyze_outfit", analyzer)
        session = AnalysisSession(session_id="s-pending-duplicate")

        first = asyncio.create_task(
            run_analysis(session, png_bytes, "image/png", "female", "normal")
        )
        await _wait_until(lambda: analyzer.calls)

        repeat = await run_analysis(session, png_bytes, "image/png", "female", "normal")

        analyzer.gate.set()
        await first
        return repeat

    repeat = asyncio.run(scenario())

    assert repeat.status == STATUS_DUPLICATE
    assert repeat.result is None


def test_failed_analysis_does_not_keep_previous_result(monkeypatch, make_image):
    image_a = make_image("PNG", color=(10, 10, 10))
    image_b = make_image("PNG", color=(240, 240, 240))
    session = AnalysisSession(session_id="s-stale-result")

    monkeypatch.setattr(
        analysis_client,
        "analyze_outfit",
        FakeAnalyzer(AnalysisResult(score=9.0, feedback="A: navy blazer")),
    )
    asyncio.run(run_analysis(session, image_a, "image/png", "female", "normal"))

    monkeypatch.setattr(
        analysis_client,
        "analyze_outfit",
        FakeAnalyzer(error=EdgeFunctionError("upstream 500")),
    )
    with pytest.raises(AnalysisFailedError):
        asyncio.run(run_analysis(session, image_b, "image/png", "female", "normal"))

    assert session.upload.current_upload.image_data == to_data_uri(image_b, "image/png")
    assert session.upload.analysis_result is None

    with pytest.raises(NothingToSaveError):
        asyncio.run(save_session_outfit(session, user_id="u1"))


def test_cancelled_analysis_releases_the_slot(monkeypatch, png_bytes):
    async def scenario():
        analyzer = FakeAnalyzer(gate=asyncio.Event())
        monkeypatch.setattr(analysis_client, "analyze_outfit", analyzer)
        session = AnalysisSession(session_id="s-cancelled")

        task = asyncio.create_task(
            run_analysis(session, png_bytes, "image/png", "female", "normal")
        )
        await _wait_until(lambda: analyzer.calls)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return session

    session = asyncio.run(scenario())

    statuses = [request.status for request in session.dedup._requests.values()]
    assert statuses == [RequestStatus.FAILED]
    assert session.dedup.can_make_request()
    assert not session.dedup.is_duplicate(
        to_data_uri(png_bytes, "image/png"), "female", "normal"
    )
