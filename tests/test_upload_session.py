from ratemyfit.core.notifications import Notifier
from ratemyfit.core.upload_session import AnalysisResult, UploadData, UploadSession


def _upload() -> UploadData:
    return UploadData(
        image_data="data:image/png;base64,AAAA",
        gender="female",
        feedback_mode="normal",
        timestamp=1700000000.0,
    )


def test_new_session_is_empty():
    session = UploadSession()

    assert session.current_upload is None
    assert session.analysis_result is None
    assert not session.has_session_data


def test_fields_are_independent():
    session = UploadSession()
    upload = _upload()

    session.current_upload = upload
    assert session.analysis_result is None
    assert session.has_session_data

    result = AnalysisResult(score=7.5, feedback="Nice fit", suggestions=["Add a belt"])
    session.analysis_result = result
    assert session.current_upload is upload

    session.current_upload = None
    assert session.analysis_result is result
    assert session.has_session_data


def test_clear_resets_both_fields():
    session = UploadSession()
    session.current_upload = _upload()
    session.analysis_result = AnalysisResult(score=5, feedback="ok")

    session.clear()

    assert session.current_upload is None
    assert session.analysis_result is None
    assert not session.has_session_data


def test_analysis_result_to_dict():
    result = AnalysisResult(score=8.0, feedback="Sharp", suggestions=["Roll sleeves"])

    assert result.to_dict() == {
        "score": 8.0,
        "feedback": "Sharp",
        "suggestions": ["Roll sleeves"],
        "style_analysis": None,
    }


def test_notifier_drain_empties_queue():
    notifier = Notifier()
    notifier.info("one")
    notifier.error("two")

    drained = notifier.drain()

    assert [(n.level, n.message) for n in drained] == [("info", "one"), ("error", "two")]
    assert notifier.pending == []


def test_notifier_drops_oldest_when_full():
    notifier = Notifier(max_pending=2)
    for message in ("a", "b", "c"):
        notifier.success(message)

    assert [n.message for n in notifier.pending] == ["b", "c"]
