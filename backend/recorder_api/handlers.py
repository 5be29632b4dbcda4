"""
HTTP entry points: the recording gateway and the license status endpoint.

Both are framework-agnostic. They take the method, headers and raw body of
a request and always return a GatewayResponse; every failure is turned
into a JSON error body here and nowhere else.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from .config import Settings
from .exceptions import (
    BadRequestError,
    ForbiddenError,
    InternalError,
    MethodNotAllowedError,
    RecorderAPIError,
)
from .licensing import (
    KeyLengthLicenseVerifier,
    LicenseVerifier,
    get_max_duration_for_plan,
    resolve_license_key,
)
from .logging_config import get_logger
from .models import LicenseDecision, LicenseValidationRequest, RecordingRequest, UsageEvent
from .recording_service import RecordingService
from .usage import LoggingUsageRecorder, UsageDispatcher
from .utils import is_absolute_url, mask_license_key, redact_secret, utc_now

logger = get_logger("handlers")

LICENSE_HEADER = "x-plugin-license"


def cors_headers(settings: Settings) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": "Content-Type, X-Plugin-License",
        "Access-Control-Allow-Methods": ", ".join(settings.CORS_ALLOW_METHODS),
        "Content-Type": "application/json",
    }


@dataclass
class GatewayResponse:
    status_code: int
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)


def parse_json_body(body: Optional[bytes]) -> Dict[str, Any]:
    """Decode a request body into a JSON object"""
    try:
        data = json.loads(body or b"")
    except (ValueError, UnicodeDecodeError):
        raise BadRequestError("Request body is not valid JSON", code="JSON_PARSE_ERROR")

    if not isinstance(data, dict):
        raise BadRequestError("Request body must be a JSON object", code="INVALID_REQUEST")
    return data


def _invalid_fields(error: ValidationError) -> BadRequestError:
    """Map pydantic errors to INVALID_OPTIONS when they all sit under options"""
    errors = error.errors()
    code = "INVALID_OPTIONS" if all(err["loc"][:1] == ("options",) for err in errors) else "INVALID_REQUEST"
    message = "Invalid recording options" if code == "INVALID_OPTIONS" else "Invalid request fields"
    return BadRequestError(
        message,
        code=code,
        details={"errors": [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in errors]},
    )


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


class _Endpoint:
    def __init__(self, settings: Settings):
        self.settings = settings

    def respond(self, status_code: int, body: Dict[str, Any]) -> GatewayResponse:
        return GatewayResponse(status_code=status_code, body=body, headers=cors_headers(self.settings))

    def preflight(self) -> GatewayResponse:
        return self.respond(200, {"message": "CORS OK"})

    def error_response(self, error: RecorderAPIError) -> GatewayResponse:
        payload = error.to_payload()
        payload["message"] = redact_secret(payload["message"], self.settings.SCREENSHOTONE_API_KEY)
        return self.respond(error.status_code, payload)


class RecordingGateway(_Endpoint):
    """POST /create-recording"""

    def __init__(
        self,
        settings: Settings,
        service: RecordingService,
        verifier: Optional[LicenseVerifier] = None,
        usage: Optional[UsageDispatcher] = None,
    ):
        super().__init__(settings)
        self.service = service
        self.verifier = verifier or KeyLengthLicenseVerifier()
        self.usage = usage or UsageDispatcher(LoggingUsageRecorder())

    async def handle(self, method: str, headers: Mapping[str, str], body: Optional[bytes]) -> GatewayResponse:
        method = method.upper()
        if method == "OPTIONS":
            return self.preflight()

        try:
            if method != "POST":
                raise MethodNotAllowedError(method)
            return await self._create_recording(headers, body)
        except RecorderAPIError as e:
            logger.warning(f"Recording request rejected: {e.code} {e.message}")
            return self.error_response(e)
        except Exception:
            logger.exception("Unexpected error while creating recording")
            return self.error_response(InternalError("Failed to create recording"))

    async def _create_recording(self, headers: Mapping[str, str], body: Optional[bytes]) -> GatewayResponse:
        data = parse_json_body(body)

        url = data.get("url")
        if not isinstance(url, str) or not url.strip():
            raise BadRequestError("URL is required", code="MISSING_URL")
        url = url.strip()
        if not is_absolute_url(url):
            raise BadRequestError("URL must be an absolute http(s) URL", code="INVALID_URL", details={"url": url})

        if data.get("options") is None:
            data = {key: value for key, value in data.items() if key != "options"}
        try:
            request = RecordingRequest.model_validate({**data, "url": url})
        except ValidationError as e:
            raise _invalid_fields(e)

        options = request.options
        site_url = request.site_url
        license_key = resolve_license_key(_header(headers, LICENSE_HEADER), request.license_key)
        decision = await self._verify(license_key, site_url)

        max_duration = get_max_duration_for_plan(decision.plan)
        requested = options.duration if options.duration is not None else min(
            self.settings.DEFAULT_DURATION, max_duration
        )
        if requested > max_duration:
            raise BadRequestError(
                f"Requested duration {requested}s exceeds the {max_duration}s limit of the {decision.plan.value} plan",
                code="DURATION_LIMIT_EXCEEDED",
                details={
                    "max_duration": max_duration,
                    "requested_duration": requested,
                    "plan": decision.plan.value,
                },
            )

        logger.info(f"Creating recording of {url} for {mask_license_key(license_key)} ({decision.plan.value})")
        result = await self.service.create_recording(url, options, requested)

        self.usage.dispatch(UsageEvent(
            caller=mask_license_key(license_key),
            plan=decision.plan,
            site_url=site_url,
            target_url=url,
            duration=requested,
            timestamp=utc_now(),
        ))

        return self.respond(200, result.model_dump(exclude_none=True))

    async def _verify(self, license_key: str, site_url: Optional[str]) -> LicenseDecision:
        decision = await self.verifier.verify(license_key, site_url)
        if not decision.valid or decision.plan is None:
            raise ForbiddenError(decision.message or "Invalid license")
        return decision


class LicenseStatusEndpoint(_Endpoint):
    """GET/POST /validate-license"""

    def __init__(self, settings: Settings, verifier: Optional[LicenseVerifier] = None):
        super().__init__(settings)
        self.verifier = verifier or KeyLengthLicenseVerifier()

    async def handle(self, method: str, headers: Mapping[str, str], body: Optional[bytes]) -> GatewayResponse:
        method = method.upper()
        if method == "OPTIONS":
            return self.preflight()

        if method == "GET":
            return self.respond(200, {
                "message": f"{self.settings.SERVICE_NAME} is online",
                "service": self.settings.SERVICE_NAME,
                "timestamp": utc_now().isoformat(),
                "version": self.settings.VERSION,
            })

        try:
            if method != "POST":
                raise MethodNotAllowedError(method)
            return await self._validate(headers, body)
        except RecorderAPIError as e:
            return self.error_response(e)
        except Exception:
            logger.exception("Unexpected error while validating license")
            return self.error_response(InternalError("Validation error"))

    async def _validate(self, headers: Mapping[str, str], body: Optional[bytes]) -> GatewayResponse:
        try:
            request = LicenseValidationRequest.model_validate(parse_json_body(body))
        except ValidationError as e:
            raise _invalid_fields(e)

        site_url = request.site_url
        license_key = resolve_license_key(_header(headers, LICENSE_HEADER), request.license_key)

        logger.info(f"Validating license {mask_license_key(license_key)} for {site_url}")
        decision = await self.verifier.verify(license_key, site_url)
        valid = decision.valid and decision.plan is not None

        return self.respond(200 if valid else 403, {
            "valid": valid,
            "plan": decision.plan.value if valid else None,
            "site_url": site_url,
            "message": decision.message or ("License valid" if valid else "Invalid license"),
        })
