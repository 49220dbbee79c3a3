"""
Storage operations module for Supabase Storage.
Handles the outfit-images bucket setup and outfit photo uploads.
"""

from typing import Optional
from supabase import Client, create_client
import uuid

from ratemyfit.config import (
    OUTFIT_IMAGES_BUCKET,
    SUPABASE_SERVICE_KEY,
    SUPABASE_URL,
    logger,
)


# Initialize Supabase client
_supabase_client: Optional[Client] = None

ALLOWED_MIME_TYPES = ["image/jpeg", "image/png", "image/webp"]
BUCKET_FILE_SIZE_LIMIT = 10 * 1024 * 1024


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
                "Supabase client initialized successfully for storage operations"
            )
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            raise

    return _supabase_client


async def ensure_outfit_images_bucket() -> bool:
    """
    Create the outfit images bucket if it does not exist yet.

    Idempotent; called once from application startup. Errors are logged and
    reported through the return value so startup can continue.

    Returns:
        bool: True if the bucket exists or was created
    """
    try:
        client = _get_supabase_client()

        buckets = client.storage.list_buckets() or []
        if any(
            getattr(bucket, "name", None) == OUTFIT_IMAGES_BUCKET for bucket in buckets
        ):
            logger.debug(f"Storage bucket already exists: {OUTFIT_IMAGES_BUCKET}")
            return True

        logger.info(f"Creating storage bucket: {OUTFIT_IMAGES_BUCKET}")
        client.storage.create_bucket(
            OUTFIT_IMAGES_BUCKET,
            options={
                "public": True,
                "allowed_mime_types": ALLOWED_MIME_TYPES,
                "file_size_limit": BUCKET_FILE_SIZE_LIMIT,
            },
        )
        logger.info(f"Storage bucket created successfully: {OUTFIT_IMAGES_BUCKET}")
        return True

    except Exception as e:
        logger.error(f"Error ensuring storage bucket {OUTFIT_IMAGES_BUCKET}: {e}")
        return False


def generate_public_url(path: str) -> str:
    """
    Generate a public URL for a file in the outfit images bucket.

    Args:
        path: Path to the file in storage (e.g., 'outfits/<user>/filename.jpg')

    Returns:
        str: Public URL to access the file
    """
    try:
        client = _get_supabase_client()

        public_url = client.storage.from_(OUTFIT_IMAGES_BUCKET).get_public_url(path)

        logger.debug(f"Generated public URL for path: {path}")
        return public_url

    except Exception as e:
        logger.error(f"Error generating public URL for path {path}: {e}")
        raise


async def upload_outfit_image(
    file_bytes: bytes,
    user_id: str,
    content_type: str = "image/jpeg",
) -> str:
    """
    Upload an outfit photo to Supabase Storage.

    Args:
        file_bytes: Image file content as bytes
        user_id: Owner of the photo, used as the folder name
        content_type: MIME type of the file (default: image/jpeg)

    Returns:
        str: Public URL of the uploaded file

    Raises:
        Exception: If upload fails
    """
    try:
        client = _get_supabase_client()

        file_extension = "png" if content_type == "image/png" else "jpg"
        unique_filename = f"{uuid.uuid4()}.{file_extension}"
        storage_path = f"outfits/{user_id}/{unique_filename}"

        logger.info(f"Uploading outfit image: {storage_path}")

        client.storage.from_(OUTFIT_IMAGES_BUCKET).upload(
            path=storage_path,
            file=file_bytes,
            file_options={"content-type": content_type},
        )

        public_url = generate_public_url(storage_path)

        logger.info(f"Successfully uploaded outfit image to: {public_url}")
        return public_url

    except Exception as e:
        logger.error(f"Error uploading outfit image: {e}")
        raise


async def delete_file(path: str) -> bool:
    """
    Delete a file from the outfit images bucket.

    Args:
        path: Path to the file in storage

    Returns:
        bool: True if deletion was successful

    Raises:
        Exception: If deletion fails
    """
    try:
        client = _get_supabase_client()

        logger.info(f"Deleting file: {path}")

        client.storage.from_(OUTFIT_IMAGES_BUCKET).remove([path])

        logger.info(f"Successfully deleted file: {path}")
        return True

    except Exception as e:
        logger.error(f"Error deleting file {path}: {e}")
        raise
