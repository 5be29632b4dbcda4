from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class LicensePlan(str, Enum):
    FREE = "free"
    STARTER = "starter"
    PRO = "pro"
    AGENCY = "agency"


class RecordingOptions(BaseModel):
    format: str = "mp4"
    duration: Optional[int] = Field(default=None, gt=0)
    viewport_width: int = Field(default=414, gt=0)
    viewport_height: int = Field(default=896, gt=0)
    device_type: Optional[str] = None  # "mobile" switches on the mobile viewport
    scroll_duration: Optional[int] = Field(default=None, gt=0)  # milliseconds
    timeout: Optional[int] = Field(default=None, gt=0)  # seconds
    delay: int = Field(default=0, ge=0)
    wait_for_network_idle: bool = False


class RecordingRequest(BaseModel):
    url: str
    options: RecordingOptions = Field(default_factory=RecordingOptions)
    license_key: Optional[str] = None
    site_url: Optional[str] = None


class RecordingResult(BaseModel):
    success: bool
    video_base64: Optional[str] = None
    file_size: Optional[int] = None
    duration: Optional[int] = None
    format: Optional[str] = None
    actual_duration: Optional[float] = None  # seconds spent waiting on the provider
    error: Optional[str] = None


class LicenseDecision(BaseModel):
    valid: bool
    plan: Optional[LicensePlan] = None
    message: str = ""


class LicenseValidationRequest(BaseModel):
    license_key: Optional[str] = None
    site_url: Optional[str] = None


class UsageEvent(BaseModel):
    caller: str
    plan: LicensePlan
    site_url: Optional[str] = None
    target_url: str
    duration: int
    timestamp: datetime
