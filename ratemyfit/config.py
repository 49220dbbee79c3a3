"""
Configuration module for the RateMyFit API
Contains logger setup and environment variables
"""

import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# -------------------------
# Logger Setup
# -------------------------
def setup_logger(
    name: str = __name__, log_file: str = "ratemyfit.log"
) -> logging.Logger:
    """
    Set up and return a logger with both file and console handlers

    Args:
        name: Logger name (usually __name__)
        log_file: Path to log file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # File handler
    file_handler = logging.FileHandler(log_file, mode="a")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    # Add handlers to logger
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


LOG_FILE = os.getenv("LOG_FILE", "ratemyfit.log")

# Create the main application logger
logger = setup_logger("ratemyfit", LOG_FILE)

# -------------------------
# Environment Variables
# -------------------------

# supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")
OUTFIT_IMAGES_BUCKET = os.getenv("OUTFIT_IMAGES_BUCKET", "outfit-images")

# request lifecycle
DEDUP_WINDOW_MS = _get_int("DEDUP_WINDOW_MS", 30000)
MAX_CONCURRENT_REQUESTS = _get_int("MAX_CONCURRENT_REQUESTS", 1)
SLOW_ANALYSIS_WARNING_SECONDS = _get_float("SLOW_ANALYSIS_WARNING_SECONDS", 60.0)
EDGE_FUNCTION_TIMEOUT_SECONDS = _get_float("EDGE_FUNCTION_TIMEOUT_SECONDS", 120.0)

# sessions
SESSION_IDLE_TTL_SECONDS = _get_float("SESSION_IDLE_TTL_SECONDS", 1800.0)
MAX_SESSIONS = _get_int("MAX_SESSIONS", 1000)

# wardrobe polling
WARDROBE_POLL_INTERVAL_SECONDS = _get_float("WARDROBE_POLL_INTERVAL_SECONDS", 5.0)
WARDROBE_NOTICE_INTERVAL_SECONDS = _get_float(
    "WARDROBE_NOTICE_INTERVAL_SECONDS", 30.0
)

# uploads
MAX_IMAGE_MB = _get_int("MAX_IMAGE_MB", 50)
MAX_IMAGE_BYTES = MAX_IMAGE_MB * 1024 * 1024
COMPRESS_THRESHOLD_MB = _get_int("COMPRESS_THRESHOLD_MB", 2)
COMPRESS_THRESHOLD_BYTES = COMPRESS_THRESHOLD_MB * 1024 * 1024


# Log configuration status
logger.info("Configuration loaded successfully")
logger.debug(f"SUPABASE_URL configured: {bool(SUPABASE_URL)}")
logger.debug(f"SUPABASE_KEY configured: {bool(SUPABASE_KEY)}")
logger.debug(f"SUPABASE_SERVICE_KEY configured: {bool(SUPABASE_SERVICE_KEY)}")
logger.debug(
    f"Dedup window: {DEDUP_WINDOW_MS}ms, max concurrent: {MAX_CONCURRENT_REQUESTS}"
)
logger.debug(f"Wardrobe poll interval: {WARDROBE_POLL_INTERVAL_SECONDS}s")
