"""
backend/tests/test_gateway.py
RecordingGateway driven directly, without the web app
"""

import asyncio
import base64
import json
import os
import time

import httpx
import pytest

from conftest import TEST_API_KEY, FakeProvider
from recorder_api.handlers import RecordingGateway
from recorder_api.recording_service import RecordingService
from recorder_api.usage import UsageDispatcher


def _body(**fields) -> bytes:
    fields.setdefault("url", "https://example.com")
    return json.dumps(fields).encode()


def _run(gateway: RecordingGateway, body: bytes, headers=None, method="POST"):
    async def go():
        response = await gateway.handle(method, headers or {}, body)
        await gateway.usage.drain()
        return response

    return asyncio.run(go())


def test_never_responding_provider_times_out_within_budget(settings, make_gateway):
    settings.TIMEOUT_GRACE = 0.2
    provider = FakeProvider(delay=30)
    gateway = make_gateway(provider)

    start = time.monotonic()
    response = _run(gateway, _body(options={"timeout": 1}))
    elapsed = time.monotonic() - start

    assert response.status_code == 504
    assert response.body["error"] == "UPSTREAM_TIMEOUT"
    assert "1 seconds" in response.body["message"]
    assert elapsed < 1 + 0.2 + 0.5


def test_late_success_is_discarded(settings, make_gateway):
    settings.TIMEOUT_GRACE = 0.1
    provider = FakeProvider(delay=1.5)
    gateway = make_gateway(provider)

    response = _run(gateway, _body(options={"timeout": 1}))

    assert response.status_code == 504
    assert "video_base64" not in response.body


@pytest.mark.parametrize("size", [1, 3, 1024, 65537])
def test_payload_round_trip(make_gateway, size):
    payload = os.urandom(size)
    gateway = make_gateway(FakeProvider(content=payload))

    response = _run(gateway, _body())

    assert response.status_code == 200
    assert response.body["file_size"] == size
    assert base64.b64decode(response.body["video_base64"]) == payload


def test_network_error_is_upstream_failure(settings):
    def refuse(request):
        raise httpx.ConnectError(f"connection refused for {request.url}")

    service = RecordingService(settings, client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)))
    gateway = RecordingGateway(settings, service)

    response = _run(gateway, _body())

    assert response.status_code == 500
    assert response.body["error"] == "UPSTREAM_ERROR"
    assert TEST_API_KEY not in json.dumps(response.body)


def test_unexpected_exception_is_generic_internal_error(settings, make_gateway):
    gateway = make_gateway(FakeProvider())

    async def explode(url, options, duration):
        raise RuntimeError(f"boom with {TEST_API_KEY}")

    gateway.service.create_recording = explode

    response = _run(gateway, _body())

    assert response.status_code == 500
    assert response.body == {
        "success": False,
        "error": "INTERNAL_ERROR",
        "message": "Failed to create recording",
    }


class ExplodingRecorder:
    async def record(self, event):
        raise RuntimeError("metering backend down")


class SlowRecorder:
    def __init__(self):
        self.finished = False

    async def record(self, event):
        await asyncio.sleep(0.3)
        self.finished = True


def test_usage_failure_does_not_affect_response(settings):
    provider = FakeProvider()
    service = RecordingService(settings, client=provider.client())
    gateway = RecordingGateway(settings, service, usage=UsageDispatcher(ExplodingRecorder()))

    response = _run(gateway, _body())

    assert response.status_code == 200
    assert response.body["success"] is True


def test_usage_is_not_awaited(settings):
    recorder = SlowRecorder()
    provider = FakeProvider()
    service = RecordingService(settings, client=provider.client())
    gateway = RecordingGateway(settings, service, usage=UsageDispatcher(recorder))

    async def go():
        response = await gateway.handle("POST", {}, _body())
        returned_before_record = not recorder.finished
        pending = gateway.usage.pending
        await gateway.usage.drain()
        return response, returned_before_record, pending

    response, returned_before_record, pending = asyncio.run(go())

    assert response.status_code == 200
    assert returned_before_record
    assert pending == 1
    assert recorder.finished


def test_license_header_lookup_is_case_insensitive(make_gateway):
    provider = FakeProvider()
    gateway = make_gateway(provider)

    response = _run(gateway, _body(options={"duration": 7}), headers={"x-PLUGIN-license": "0123456789"})

    assert response.status_code == 200
    assert provider.last_params["duration"] == "7"
