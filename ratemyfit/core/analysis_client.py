"""Remote outfit analysis through the analyze-outfit edge function."""

from typing import Optional

from ratemyfit.config import logger
from ratemyfit.core.edge_functions import EdgeFunctionError, invoke_function
from ratemyfit.core.upload_session import AnalysisResult

ANALYZE_FUNCTION = "analyze-outfit"


async def analyze_outfit(
    image_data: str,
    gender: str,
    feedback_mode: str,
    occasion_context: Optional[str] = None,
) -> AnalysisResult:
    """
    Request a style rating for an outfit photo.

    Args:
        image_data: Image as a base64 data URI
        gender: 'male', 'female' or 'neutral'
        feedback_mode: 'normal' or 'roast'
        occasion_context: Optional event description passed to the model

    Returns:
        AnalysisResult with a 0-10 score, feedback and suggestions

    Raises:
        EdgeFunctionError: If the call fails or the response is malformed
    """
    payload = {
        "imageBase64": image_data,
        "gender": gender,
        "feedbackMode": feedback_mode,
    }
    if occasion_context:
        payload["eventContext"] = occasion_context

    logger.info(
        f"Analyzing {gender} outfit (mode={feedback_mode}, "
        f"image_length={len(image_data)})"
    )

    data = await invoke_function(ANALYZE_FUNCTION, payload)

    score = data.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        logger.error(f"Invalid response from AI service: {list(data.keys())}")
        raise EdgeFunctionError("Invalid response from AI service")

    suggestions = data.get("suggestions") or []
    if not isinstance(suggestions, list):
        suggestions = [str(suggestions)]

    style_analysis = data.get("styleAnalysis")

    return AnalysisResult(
        score=float(score),
        feedback=str(data.get("feedback", "")),
        suggestions=[str(s) for s in suggestions],
        style_analysis=style_analysis if isinstance(style_analysis, dict) else None,
    )
