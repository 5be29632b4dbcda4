from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from .config import Settings, settings as default_settings
from .handlers import GatewayResponse, LicenseStatusEndpoint, RecordingGateway
from .licensing import KeyLengthLicenseVerifier, LicenseVerifier
from .logging_config import setup_logging
from .recording_service import RecordingService
from .usage import LoggingUsageRecorder, UsageDispatcher, UsageRecorder

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def _to_response(result: GatewayResponse) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body, headers=result.headers)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[RecordingService] = None,
    verifier: Optional[LicenseVerifier] = None,
    recorder: Optional[UsageRecorder] = None,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL, app_settings=settings)

    service = service or RecordingService(settings)
    verifier = verifier or KeyLengthLicenseVerifier()
    usage = UsageDispatcher(recorder or LoggingUsageRecorder())

    gateway = RecordingGateway(settings, service, verifier=verifier, usage=usage)
    license_endpoint = LicenseStatusEndpoint(settings, verifier=verifier)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        await service.initialize()
        yield
        # Shutdown
        await usage.drain()
        await service.cleanup()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        description="Scrolling screen recordings for the WordPress plugin",
        version=settings.VERSION,
        lifespan=lifespan
    )
    app.state.gateway = gateway
    app.state.usage = usage

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        is_healthy = await service.health_check()
        return {
            "status": "healthy" if is_healthy else "unhealthy",
            "service": "screen-recorder-api",
            "provider_configured": settings.has_api_key,
        }

    @app.api_route("/create-recording", methods=ALL_METHODS)
    async def create_recording(request: Request):
        """Record a scrolling video of the requested page"""
        result = await gateway.handle(request.method, request.headers, await request.body())
        return _to_response(result)

    @app.api_route("/validate-license", methods=ALL_METHODS)
    async def validate_license(request: Request):
        """License liveness (GET) and plan lookup (POST)"""
        result = await license_endpoint.handle(request.method, request.headers, await request.body())
        return _to_response(result)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)
