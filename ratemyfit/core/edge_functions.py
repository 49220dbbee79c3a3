"""
Client for Supabase Edge Functions.
The AI providers sit behind these functions and are treated as opaque JSON services.
"""

from typing import Any, Dict, Optional

import httpx

from ratemyfit.config import (
    EDGE_FUNCTION_TIMEOUT_SECONDS,
    SUPABASE_KEY,
    SUPABASE_URL,
    logger,
)


class EdgeFunctionError(Exception):
    """Raised when an edge function call fails or returns an error payload."""


def _function_url(name: str) -> str:
    if not SUPABASE_URL:
        error_msg = "SUPABASE_URL is not configured"
        logger.error(error_msg)
        raise ValueError(error_msg)
    return f"{SUPABASE_URL.rstrip('/')}/functions/v1/{name}"


async def invoke_function(
    name: str,
    payload: Dict[str, Any],
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Invoke an edge function with a JSON body and return its JSON response.

    Args:
        name: Function name (e.g. 'analyze-outfit')
        payload: JSON-serializable request body
        timeout: Request timeout in seconds (default: EDGE_FUNCTION_TIMEOUT_SECONDS)

    Returns:
        Dict parsed from the response body

    Raises:
        EdgeFunctionError: On HTTP, network, or payload errors
    """
    url = _function_url(name)
    headers = {"Content-Type": "application/json"}
    if SUPABASE_KEY:
        headers["Authorization"] = f"Bearer {SUPABASE_KEY}"
        headers["apikey"] = SUPABASE_KEY

    logger.debug(f"Invoking edge function: {name}")

    try:
        async with httpx.AsyncClient(
            timeout=timeout or EDGE_FUNCTION_TIMEOUT_SECONDS
        ) as client:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as e:
        raise EdgeFunctionError(
            f"Edge function {name} HTTP error: "
            f"{e.response.status_code} - {e.response.text}"
        ) from e
    except httpx.RequestError as e:
        raise EdgeFunctionError(
            f"Network error calling edge function {name}: {str(e)}"
        ) from e
    except ValueError as e:
        raise EdgeFunctionError(f"Edge function {name} returned invalid JSON") from e

    if not isinstance(data, dict):
        raise EdgeFunctionError(f"Edge function {name} returned unexpected payload")

    if data.get("error"):
        raise EdgeFunctionError(f"Edge function {name} error: {data['error']}")

    return data
