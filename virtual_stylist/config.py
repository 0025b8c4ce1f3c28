"""
Configuration module for the Virtual Stylist app
Contains logger setup and environment variables
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# -------------------------
# Logger Setup
# -------------------------
def setup_logger(
    name: str = __name__, log_file: Optional[str] = "virtual_stylist.log"
) -> logging.Logger:
    """
    Set up and return a logger with a console handler and an optional file handler

    Args:
        name: Logger name (usually __name__)
        log_file: Path to log file, or None/empty to log to the console only

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
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


# -------------------------
# Environment Variables
# -------------------------
LOG_FILE = os.getenv("LOG_FILE", "virtual_stylist.log")

# Create the main application logger
logger = setup_logger("virtual_stylist", LOG_FILE)

DEFAULT_ANALYSIS_MODEL = "gemini-3-flash-preview"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_MAX_SESSIONS = 100

GEMINI_KEY = os.getenv("GEMINI_KEY")
GEMINI_ANALYSIS_MODEL = os.getenv("GEMINI_ANALYSIS_MODEL", DEFAULT_ANALYSIS_MODEL)
GEMINI_IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", DEFAULT_IMAGE_MODEL)
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL)
GEMINI_TIMEOUT_SECONDS = float(
    os.getenv("GEMINI_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
)
STYLIST_MAX_SESSIONS = int(os.getenv("STYLIST_MAX_SESSIONS", str(DEFAULT_MAX_SESSIONS)))


@dataclass(frozen=True)
class StylistSettings:
    """Explicit settings handed to the Gemini client at construction time."""

    api_key: Optional[str]
    analysis_model: str = DEFAULT_ANALYSIS_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "StylistSettings":
        return cls(
            api_key=GEMINI_KEY,
            analysis_model=GEMINI_ANALYSIS_MODEL,
            image_model=GEMINI_IMAGE_MODEL,
            base_url=GEMINI_BASE_URL,
            timeout_seconds=GEMINI_TIMEOUT_SECONDS,
        )


# Log configuration status
logger.info("Configuration loaded successfully")
logger.debug(f"GEMINI_KEY configured: {bool(GEMINI_KEY)}")
logger.debug(f"GEMINI_ANALYSIS_MODEL: {GEMINI_ANALYSIS_MODEL}")
logger.debug(f"GEMINI_IMAGE_MODEL: {GEMINI_IMAGE_MODEL}")
logger.debug(f"STYLIST_MAX_SESSIONS: {STYLIST_MAX_SESSIONS}")
