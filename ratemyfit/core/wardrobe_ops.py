"""
Database operations module for the Supabase wardrobe_items table.
Handles saving analyzed outfits and reading their clothing items.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from supabase import Client, create_client

from ratemyfit.config import logger, SUPABASE_URL, SUPABASE_SERVICE_KEY

WARDROBE_TABLE = "wardrobe_items"

# Initialize Supabase client
_supabase_client: Optional[Client] = None


def _get_supabase_client() -> Client:
    """
    Get or create the Supabase client instance.

    Returns:
        Client: Supabase client instance

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_SERVICE_KEY is not configured
    """
    global _supabase_client

    if _supabase_client is None:
        if not SUPABASE_URL or not SUPABASE_SERVICE_KEY:
            error_msg = "SUPABASE_URL or SUPABASE_SERVICE_KEY is not configured"
            logger.error(error_msg)
            raise ValueError(error_msg)

        try:
            _supabase_client = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
            logger.info(
                "Supabase client initialized successfully for wardrobe operations"
            )
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            raise

    return _supabase_client


async def save_outfit(
    user_id: str,
    image_url: str,
    rating_score: float,
    feedback: str,
    suggestions: List[str],
    gender: str,
    feedback_mode: str = "normal",
    occasion_context: Optional[str] = None,
    extracted_clothing_items: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Insert an analyzed outfit into the user's wardrobe.

    Args:
        user_id: Owner of the wardrobe item
        image_url: Public URL of the original outfit photo
        rating_score: Score returned by the analysis
        feedback: Feedback text returned by the analysis
        suggestions: Suggestions returned by the analysis
        gender: Gender used for the analysis
        feedback_mode: 'normal' or 'roast'
        occasion_context: Optional event description
        extracted_clothing_items: Clothing entries awaiting render images

    Returns:
        Dict containing the created row with 'id' field

    Raises:
        Exception: If database operation fails
    """
    try:
        client = _get_supabase_client()

        now = datetime.now(timezone.utc).isoformat()
        record_data = {
            "user_id": user_id,
            "image_url": image_url,
            "rating_score": rating_score,
            "feedback": feedback,
            "suggestions": suggestions,
            "gender": gender,
            "feedback_mode": feedback_mode,
            "occasion_context": occasion_context,
            "extracted_clothing_items": extracted_clothing_items or [],
            "created_at": now,
            "updated_at": now,
        }

        logger.info(f"Saving outfit to wardrobe for user: {user_id}")

        response = client.table(WARDROBE_TABLE).insert(record_data).execute()

        if response.data and len(response.data) > 0:
            record = response.data[0]
            logger.info(f"Wardrobe item saved with ID: {record.get('id')}")
            return record
        else:
            error_msg = "Failed to save wardrobe item: No data returned"
            logger.error(error_msg)
            raise Exception(error_msg)

    except Exception as e:
        logger.error(f"Error saving outfit to wardrobe: {e}")
        raise


async def get_wardrobe_items(user_id: str) -> List[Dict[str, Any]]:
    """
    Retrieve a user's wardrobe items, newest first.

    Args:
        user_id: Owner of the wardrobe

    Returns:
        List of wardrobe rows

    Raises:
        Exception: If database operation fails
    """
    try:
        client = _get_supabase_client()

        logger.debug(f"Fetching wardrobe items for user: {user_id}")

        response = (
            client.table(WARDROBE_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )

        items = response.data or []
        logger.info(f"Fetched {len(items)} wardrobe items for user: {user_id}")
        return items

    except Exception as e:
        logger.error(f"Error fetching wardrobe items for user {user_id}: {e}")
        raise


async def fetch_clothing_items(item_ids: List[str]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Bulk-read the current clothing items for a set of wardrobe rows.

    One query per call regardless of how many ids are requested.

    Args:
        item_ids: Wardrobe item ids to read

    Returns:
        Mapping of wardrobe item id to its extracted_clothing_items list.
        Rows whose column is not a list map to an empty list.

    Raises:
        Exception: If database operation fails
    """
    if not item_ids:
        return {}

    try:
        client = _get_supabase_client()

        logger.debug(f"Polling clothing items for {len(item_ids)} wardrobe item(s)")

        response = (
            client.table(WARDROBE_TABLE)
            .select("id, extracted_clothing_items")
            .in_("id", item_ids)
            .execute()
        )

        result: Dict[str, List[Dict[str, Any]]] = {}
        for row in response.data or []:
            clothing = row.get("extracted_clothing_items")
            result[str(row.get("id"))] = clothing if isinstance(clothing, list) else []

        return result

    except Exception as e:
        logger.error(f"Error polling clothing items: {e}")
        raise
