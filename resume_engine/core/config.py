# File: resume_engine/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    PROJECT_NAME: str = "Resume PDF Engine API"
    PROJECT_VERSION: str = "0.1.0"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Layout extraction limits
    MAX_LAYOUT_PAGES: int = int(os.getenv("MAX_LAYOUT_PAGES", "12"))
    MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "10"))

    # Overlay defaults (match the body font of typical uploaded resumes)
    OVERLAY_FONT_SIZE: float = float(os.getenv("OVERLAY_FONT_SIZE", "10"))
    OVERLAY_LINE_GAP: float = float(os.getenv("OVERLAY_LINE_GAP", "1.15"))
    MAX_EDITS: int = int(os.getenv("MAX_EDITS", "12"))

    # CORS settings
    CORS_ORIGINS: list = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")

settings = Settings()
