"""
Application configuration
"""

import os
from typing import List, Optional


class Settings:
    """Application settings"""

    def __init__(self):
        self.DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "8000"))
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG" if self.DEBUG else "INFO").upper()

        self.SERVICE_NAME: str = "Screen Recorder Pro API"
        self.VERSION: str = "1.0.0"

        # Capture provider - the access key is never logged or echoed
        self.SCREENSHOTONE_API_KEY: Optional[str] = os.getenv("SCREENSHOTONE_API_KEY") or None
        self.SCREENSHOTONE_BASE_URL: str = os.getenv("SCREENSHOTONE_BASE_URL", "https://api.screenshotone.com")
        self.USER_AGENT: str = os.getenv("PROVIDER_USER_AGENT", "ScreenRecorderPro-API/1.0")

        # Time budget, in seconds. The host kills us at ~10s so we keep a
        # couple of seconds back for our own marshaling.
        self.PROVIDER_TIMEOUT: int = int(os.getenv("PROVIDER_TIMEOUT", "8"))
        self.MAX_PROVIDER_TIMEOUT: int = int(os.getenv("MAX_PROVIDER_TIMEOUT", "8"))
        self.TIMEOUT_GRACE: float = float(os.getenv("TIMEOUT_GRACE", "1"))

        # Recording defaults
        self.DEFAULT_DURATION: int = int(os.getenv("DEFAULT_DURATION", "5"))
        self.DEFAULT_SCROLL_DURATION: int = int(os.getenv("DEFAULT_SCROLL_DURATION", "1000"))

        # Provider error bodies are echoed to the caller, cut to this length
        self.MAX_ERROR_BODY_CHARS: int = int(os.getenv("MAX_ERROR_BODY_CHARS", "500"))

        cors_methods_str = os.getenv("CORS_ALLOW_METHODS", "POST, GET, OPTIONS")
        self.CORS_ALLOW_METHODS: List[str] = [m.strip() for m in cors_methods_str.split(",")]

    @property
    def has_api_key(self) -> bool:
        return bool(self.SCREENSHOTONE_API_KEY)


settings = Settings()
