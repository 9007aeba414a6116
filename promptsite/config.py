import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _image_size(value):
    width, _, height = value.lower().partition("x")
    return int(width), int(height or width)


class Config:
    """Settings read from the environment. Override attributes in tests."""

    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
    GEMINI_API_BASE = os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
    TEXT_MODEL = os.getenv("PROMPTSITE_TEXT_MODEL", "gemini-1.5-flash-latest")
    IMAGE_MODEL = os.getenv("PROMPTSITE_IMAGE_MODEL", "gemini-2.0-flash-preview-image-generation")
    MAX_RETRIES = int(os.getenv("PROMPTSITE_MAX_RETRIES", "5"))
    REQUEST_TIMEOUT = int(os.getenv("PROMPTSITE_REQUEST_TIMEOUT", "300"))
    IMAGE_MAX_SIZE = _image_size(os.getenv("PROMPTSITE_IMAGE_MAX_SIZE", "1280x720"))
    # A secret key is needed for session management in Flask
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY") or os.urandom(24)
    PORT = int(os.getenv("PROMPTSITE_PORT", "5001"))
    # Editor sessions live in memory; idle ones are dropped after this many seconds
    MAX_SESSIONS = int(os.getenv("PROMPTSITE_MAX_SESSIONS", "100"))
    SESSION_IDLE_TIMEOUT = int(os.getenv("PROMPTSITE_SESSION_IDLE_TIMEOUT", "3600"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
