"""
Recording service backed by the ScreenshotOne animate API.
Builds the provider request, races it against the time budget and turns
the binary video into a base64 RecordingResult.
"""

import asyncio
import base64
import time
from typing import Dict, Optional

import httpx

from .config import Settings
from .exceptions import ConfigurationError, UpstreamError, UpstreamTimeoutError
from .logging_config import get_logger
from .models import RecordingOptions, RecordingResult
from .utils import redact_secret, truncate

logger = get_logger("recording_service")


class RecordingService:
    """Thin client for the capture provider"""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.client = client
        self._owns_client = client is None

    async def initialize(self):
        """Open the shared HTTP client"""
        if self.client is None:
            self.client = httpx.AsyncClient()
            self._owns_client = True
        logger.info("Recording service initialized")

    async def cleanup(self):
        """Close the HTTP client if we opened it"""
        if self.client is not None and self._owns_client:
            await self.client.aclose()
            self.client = None
        logger.info("Recording service cleaned up")

    async def health_check(self) -> bool:
        return self.client is not None and not self.client.is_closed

    def provider_timeout(self, options: RecordingOptions) -> int:
        """Seconds the provider may spend, never above the configured ceiling"""
        requested = options.timeout or self.settings.PROVIDER_TIMEOUT
        return min(requested, self.settings.MAX_PROVIDER_TIMEOUT)

    def build_params(self, url: str, options: RecordingOptions, duration: int, provider_timeout: int) -> Dict[str, str]:
        """Query string for GET /animate"""
        scroll_duration = options.scroll_duration or self.settings.DEFAULT_SCROLL_DURATION

        return {
            "access_key": self.settings.SCREENSHOTONE_API_KEY or "",
            "url": url,
            "scenario": "scroll",
            "format": options.format,
            "duration": str(duration),
            "scroll_duration": str(scroll_duration),
            "scroll_start_immediately": "true",
            "scroll_complete": "true",
            "viewport_width": str(options.viewport_width),
            "viewport_height": str(options.viewport_height),
            "viewport_mobile": "true" if options.device_type == "mobile" else "false",
            "block_ads": "true",
            "block_cookie_banners": "true",
            "block_trackers": "true",
            "wait_for_network_idle": "true" if options.wait_for_network_idle else "false",
            "delay": str(options.delay),
            "timeout": str(provider_timeout),
        }

    async def create_recording(self, url: str, options: RecordingOptions, duration: int) -> RecordingResult:
        """
        Record a scrolling video of url.

        Raises:
            ConfigurationError: no provider key configured (no request is made)
            UpstreamTimeoutError: provider timeout + grace elapsed first
            UpstreamError: non-2xx status, empty body or transport failure
        """
        if not self.settings.has_api_key:
            raise ConfigurationError("Capture provider API key not configured")

        if self.client is None:
            await self.initialize()

        provider_timeout = self.provider_timeout(options)
        budget = provider_timeout + self.settings.TIMEOUT_GRACE
        params = self.build_params(url, options, duration, provider_timeout)

        logger.info(f"Calling capture provider for {url} (duration={duration}s, timeout={provider_timeout}s)")

        start_time = time.monotonic()
        try:
            # wait_for cancels the request when the budget runs out, so a
            # late provider answer is never observed
            response = await asyncio.wait_for(self._fetch(params), timeout=budget)
        except asyncio.TimeoutError:
            logger.warning(f"Capture provider timed out after {budget:g}s for {url}")
            raise UpstreamTimeoutError(
                f"Capture provider request timed out ({provider_timeout} seconds). "
                "Try reducing the duration or using a simpler page.",
                details={"timeout": provider_timeout},
            )
        except httpx.RequestError as e:
            message = redact_secret(str(e) or type(e).__name__, self.settings.SCREENSHOTONE_API_KEY)
            logger.error(f"Capture provider network error: {message}")
            raise UpstreamError(f"Network error contacting capture provider: {message}")

        elapsed = time.monotonic() - start_time
        logger.info(f"Capture provider responded {response.status_code} in {elapsed:.2f}s")

        if not response.is_success:
            body = truncate(response.text.strip(), self.settings.MAX_ERROR_BODY_CHARS)
            body = redact_secret(body, self.settings.SCREENSHOTONE_API_KEY)
            raise UpstreamError(
                f"Capture provider failed with status {response.status_code}: {body}",
                details={"provider_status": response.status_code},
                # redirects and other non-error codes surface as a bad gateway
                status_code=response.status_code if response.status_code >= 400 else 502,
            )

        video = response.content
        if not video:
            raise UpstreamError("Capture provider returned empty response")

        logger.info(f"✅ Video received: {len(video)} bytes")

        return RecordingResult(
            success=True,
            video_base64=base64.b64encode(video).decode(),
            file_size=len(video),
            duration=duration,
            format=options.format,
            actual_duration=round(elapsed, 2),
        )

    async def _fetch(self, params: Dict[str, str]) -> httpx.Response:
        # the timer in create_recording is the only deadline
        return await self.client.get(
            f"{self.settings.SCREENSHOTONE_BASE_URL}/animate",
            params=params,
            headers={"User-Agent": self.settings.USER_AGENT},
            timeout=None,
        )
