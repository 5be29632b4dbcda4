# backend/tests/conftest.py
import asyncio
from typing import List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from recorder_api.config import Settings
from recorder_api.handlers import RecordingGateway
from recorder_api.main import create_app
from recorder_api.models import UsageEvent
from recorder_api.recording_service import RecordingService
from recorder_api.usage import UsageDispatcher

TEST_API_KEY = "sk_test_provider_key_123"
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom\xff\xfe\x00\x01"


class FakeProvider:
    """Simulated capture provider served through httpx.MockTransport"""

    def __init__(self, status_code: int = 200, content: bytes = VIDEO_BYTES, delay: float = 0.0):
        self.status_code = status_code
        self.content = content
        self.delay = delay
        self.requests: List[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        return httpx.Response(self.status_code, content=self.content)

    @property
    def last_params(self) -> dict:
        return dict(self.requests[-1].url.params)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class ListUsageRecorder:
    def __init__(self):
        self.events: List[UsageEvent] = []

    async def record(self, event: UsageEvent) -> None:
        self.events.append(event)


@pytest.fixture
def settings() -> Settings:
    """Settings built in-process; the environment is never touched"""
    s = Settings()
    s.SCREENSHOTONE_API_KEY = TEST_API_KEY
    s.SCREENSHOTONE_BASE_URL = "https://provider.test"
    s.PROVIDER_TIMEOUT = 8
    s.MAX_PROVIDER_TIMEOUT = 8
    s.TIMEOUT_GRACE = 1
    s.DEFAULT_DURATION = 5
    return s


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def usage_recorder() -> ListUsageRecorder:
    return ListUsageRecorder()


@pytest.fixture
def client(settings, provider, usage_recorder):
    service = RecordingService(settings, client=provider.client())
    app = create_app(settings=settings, service=service, recorder=usage_recorder)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_gateway(settings):
    """Build a gateway around a given provider, outside of any web app"""

    def _make(provider: FakeProvider, recorder: Optional[ListUsageRecorder] = None) -> RecordingGateway:
        service = RecordingService(settings, client=provider.client())
        usage = UsageDispatcher(recorder or ListUsageRecorder())
        return RecordingGateway(settings, service, usage=usage)

    return _make
