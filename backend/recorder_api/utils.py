"""
Utility functions
"""

from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse


def is_absolute_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host"""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def mask_license_key(license_key: Optional[str]) -> str:
    """Keep the first 8 characters of a license key for log lines"""
    if not license_key:
        return "anonymous"
    if len(license_key) <= 8:
        return license_key
    return f"{license_key[:8]}..."


def redact_secret(text: str, secret: Optional[str], replacement: str = "***") -> str:
    """Remove a secret from text that may reach a caller or a log"""
    if not secret or not text:
        return text
    return text.replace(secret, replacement)


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
