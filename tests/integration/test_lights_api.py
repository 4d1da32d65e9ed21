"""
============================================================================
Lights HTTP v1.0.0
Integration Test: Lights API Pipeline
============================================================================

Input Constraints: httpx AsyncClient over ASGITransport, simulated devices
Side Effects: None (in-process registry and capturing metrics sink)

Covers the full pipeline:
- Correlation id on every response, including redirects and errors
- Authentication gate redirecting before any device is contacted
- Fan-out success, partial failure and validation failure
- Unmatched paths redirected
- Instrumentation releasing the in-flight slot on every exit path
- Health endpoints and status mapping
- Last-resort 500 handling
============================================================================
"""

import asyncio
import re
from typing import Optional

import httpx
import pytest
from fastapi import FastAPI

from lights_http import context as context_module
from lights_http.config import ServiceConfig
from lights_http.devices.registry import SimulatedDeviceRegistry
from lights_http.logic.commands import (
    BRIGHTNESS_RANGE_MESSAGE,
    COLOR_TEMPERATURE_RANGE_MESSAGE,
    RGB_RANGE_MESSAGE,
)
from lights_http.pipeline import create_app
from lights_http.responses import FALLBACK_URL, INTERNAL_ERROR_MESSAGE, render_json
from lights_http.schemas.lights import INVALID_JSON_MESSAGE

REQUEST_ID = re.compile(r"^[0-9a-f]{32}$")


# ============================================================================
# Test App Setup
# ============================================================================

@pytest.fixture
def app(config, registry, metrics, recording_sleep) -> FastAPI:
    return create_app(
        config,
        registry,
        metrics=metrics,
        inter_device_delay=0.1,
        sleep=recording_sleep,
    )


def _client(app: FastAPI) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://lights.test",
        follow_redirects=False,
    )


async def _post(app: FastAPI, path: str, headers: Optional[dict] = None, content=None):
    async with _client(app) as client:
        return await client.post(path, headers=headers, content=content)


async def _get(app: FastAPI, path: str, headers: Optional[dict] = None):
    async with _client(app) as client:
        return await client.get(path, headers=headers)


class GateSleep:
    """
    Inter-device sleep that holds every caller until `expected` callers
    are waiting, so that many fan-outs are in flight at once.
    """

    def __init__(self, expected: int) -> None:
        self._expected = expected
        self._waiting = 0
        self._released = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        self._waiting += 1
        if self._waiting >= self._expected:
            self._released.set()
        await self._released.wait()


def _assert_redirect(response: httpx.Response) -> None:
    assert response.status_code == 302
    assert response.headers["location"] == FALLBACK_URL
    assert REQUEST_ID.match(response.headers["x-request-id"])


# ============================================================================
# Authentication
# ============================================================================

class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_token_redirects_without_device_calls(self, app, registry, metrics):
        response = await _post(app, "/lights/on")

        _assert_redirect(response)
        assert registry.calls == []
        assert metrics.operations == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", [
        "Bearer wrong-token",
        "Basic dGVzdC10b2tlbg==",
        "test-token",
        "Bearer ",
    ])
    async def test_invalid_credentials_redirect(self, app, registry, header):
        response = await _post(app, "/lights/off", headers={"Authorization": header})

        _assert_redirect(response)
        assert registry.calls == []

    @pytest.mark.asyncio
    async def test_auth_runs_before_body_validation(self, app, registry):
        response = await _post(app, "/lights/brightness", content=b"{not json")

        _assert_redirect(response)
        assert registry.calls == []

    @pytest.mark.asyncio
    async def test_rejection_is_instrumented(self, app, metrics):
        await _post(app, "/lights/on")

        assert [(m, r, s) for m, r, s, _ in metrics.requests] == [
            ("POST", "/lights/on", "3xx"),
        ]
        assert metrics.in_flight_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method, path", [
        ("GET", "/lights/on"),
        ("PUT", "/lights/rgb"),
        ("DELETE", "/lights/brightness"),
        ("POST", "/lights/status"),
    ])
    async def test_wrong_method_without_token_redirects(
        self, app, registry, metrics, method, path
    ):
        async with _client(app) as client:
            response = await client.request(method, path)

        _assert_redirect(response)
        assert registry.calls == []
        assert metrics.in_flight_count == 0

    @pytest.mark.asyncio
    async def test_wrong_method_with_bad_token_redirects(self, app):
        async with _client(app) as client:
            response = await client.get(
                "/lights/on", headers={"Authorization": "Bearer wrong-token"}
            )

        _assert_redirect(response)

    @pytest.mark.asyncio
    async def test_health_needs_no_token(self, app):
        response = await _get(app, "/health")

        assert response.status_code == 200


# ============================================================================
# Commands
# ============================================================================

class TestCommands:

    @pytest.mark.asyncio
    async def test_turn_on_all_succeed(self, app, registry, auth_headers, recording_sleep, metrics):
        response = await _post(app, "/lights/on", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"status": "lights turned on"}
        assert REQUEST_ID.match(response.headers["x-request-id"])
        assert registry.calls == [("A", "turn_on"), ("B", "turn_on")]
        assert recording_sleep.delays == [0.1]
        assert metrics.operations == [("turn_on", "success")]

    @pytest.mark.asyncio
    async def test_partial_failure_still_attempts_every_device(
        self, app, registry, auth_headers, metrics
    ):
        registry.fail_device("B")

        response = await _post(app, "/lights/off", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {"error": "failed to turn_off some lights"}
        assert registry.calls == [("A", "turn_off"), ("B", "turn_off")]
        assert metrics.operations == [("turn_off", "error")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path, message, rgb", [
        ("/lights/red", "lights set to red", (255, 0, 0)),
        ("/lights/yellow", "lights set to yellow", (255, 255, 0)),
        ("/lights/orange", "lights set to orange", (139, 64, 0)),
        ("/lights/dark-red", "lights set to dark-red", (255, 11, 0)),
    ])
    async def test_color_presets(self, app, registry, auth_headers, path, message, rgb):
        response = await _post(app, path, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"status": message}
        status = await registry.request_status("A")
        assert (status.color.r, status.color.g, status.color.b) == rgb

    @pytest.mark.asyncio
    async def test_rgb(self, app, registry, auth_headers):
        response = await _post(
            app, "/lights/rgb", headers=auth_headers, content=b'{"r": 10, "g": 20, "b": 30}'
        )

        assert response.status_code == 200
        assert response.json() == {"status": "lights set to rgb"}
        status = await registry.request_status("B")
        assert (status.color.r, status.color.g, status.color.b) == (10, 20, 30)

    @pytest.mark.asyncio
    async def test_brightness(self, app, registry, auth_headers):
        response = await _post(
            app, "/lights/brightness", headers=auth_headers, content=b'{"brightness": 42}'
        )

        assert response.status_code == 200
        assert response.json() == {"status": "brightness set"}
        assert (await registry.request_status("A")).brightness == 42

    @pytest.mark.asyncio
    async def test_color_temperature(self, app, registry, auth_headers):
        response = await _post(
            app, "/lights/colortemp", headers=auth_headers, content=b'{"temperature": 2700}'
        )

        assert response.status_code == 200
        assert response.json() == {"status": "color temperature set"}
        assert (await registry.request_status("A")).color_temperature == 2700

    @pytest.mark.asyncio
    async def test_empty_registry_succeeds(self, config, metrics, auth_headers):
        app = create_app(config, SimulatedDeviceRegistry(), metrics=metrics, inter_device_delay=0)

        response = await _post(app, "/lights/on", headers=auth_headers)

        assert response.status_code == 200


# ============================================================================
# Validation
# ============================================================================

class TestValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path, body, message", [
        ("/lights/brightness", b'{"brightness": 150}', BRIGHTNESS_RANGE_MESSAGE),
        ("/lights/rgb", b'{"r": 256, "g": 0, "b": 0}', RGB_RANGE_MESSAGE),
        ("/lights/colortemp", b'{"temperature": 1500}', COLOR_TEMPERATURE_RANGE_MESSAGE),
        ("/lights/brightness", b"{not json", INVALID_JSON_MESSAGE),
        ("/lights/rgb", b'{"r": "red"}', INVALID_JSON_MESSAGE),
        ("/lights/colortemp", b"", INVALID_JSON_MESSAGE),
    ])
    async def test_rejected_before_any_device(
        self, app, registry, auth_headers, metrics, path, body, message
    ):
        response = await _post(app, path, headers=auth_headers, content=body)

        assert response.status_code == 400
        assert response.json() == {"error": message}
        assert REQUEST_ID.match(response.headers["x-request-id"])
        assert registry.calls == []
        assert metrics.operations == []
        assert metrics.in_flight_count == 0


# ============================================================================
# Status
# ============================================================================

class TestStatus:

    @pytest.mark.asyncio
    async def test_status_shape(self, app, registry, auth_headers):
        await registry.set_color_temperature("A", 4000)

        response = await _get(app, "/lights/status", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == [
            {
                "deviceID": "A",
                "onOff": False,
                "brightness": 100,
                "color": {"r": 255, "g": 255, "b": 255},
                "colortemp": "4000K",
            },
            {
                "deviceID": "B",
                "onOff": False,
                "brightness": 100,
                "color": {"r": 255, "g": 255, "b": 255},
                "colortemp": "0K",
            },
        ]

    @pytest.mark.asyncio
    async def test_failing_device_is_skipped(self, app, registry, auth_headers):
        registry.fail_device("A")

        response = await _get(app, "/lights/status", headers=auth_headers)

        assert response.status_code == 200
        assert [entry["deviceID"] for entry in response.json()] == ["B"]

    @pytest.mark.asyncio
    async def test_no_devices_is_empty_list(self, config, metrics, auth_headers):
        app = create_app(config, SimulatedDeviceRegistry(), metrics=metrics)

        response = await _get(app, "/lights/status", headers=auth_headers)

        assert response.json() == []

    @pytest.mark.asyncio
    async def test_status_requires_token(self, app):
        _assert_redirect(await _get(app, "/lights/status"))


# ============================================================================
# Health
# ============================================================================

class TestHealth:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/health", "/ready", "/live"])
    async def test_healthy(self, app, path):
        response = await _get(app, path)

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "ok"
        assert body["checks"]["registry"] == {"status": "ok", "detail": "2 devices connected"}
        assert body["uptime"].endswith("s")
        assert REQUEST_ID.match(response.headers["x-request-id"])

    @pytest.mark.asyncio
    async def test_uninitialized_registry_is_unavailable(self, config, metrics):
        app = create_app(
            config, SimulatedDeviceRegistry(["A"], initialized=False), metrics=metrics
        )

        response = await _get(app, "/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "error"
        assert response.json()["checks"]["registry"]["detail"] == "Device registry not initialized"

    @pytest.mark.asyncio
    async def test_no_devices_is_healthy(self, config, metrics):
        app = create_app(config, SimulatedDeviceRegistry(), metrics=metrics)

        response = await _get(app, "/live")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


# ============================================================================
# Pipeline behavior
# ============================================================================

class TestPipeline:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method, path", [
        ("GET", "/"),
        ("GET", "/nope"),
        ("POST", "/lights/purple"),
        ("GET", "/lights"),
    ])
    async def test_unmatched_paths_redirect(self, app, metrics, auth_headers, method, path):
        async with _client(app) as client:
            response = await client.request(method, path, headers=auth_headers)

        _assert_redirect(response)
        assert metrics.requests[-1][1] == "unmatched"

    @pytest.mark.asyncio
    async def test_request_ids_are_unique(self, app):
        async with _client(app) as client:
            ids = {
                (await client.get("/health")).headers["x-request-id"]
                for _ in range(20)
            }

        assert len(ids) == 20

    @pytest.mark.asyncio
    async def test_route_template_label(self, app, metrics, auth_headers):
        await _post(app, "/lights/on", headers=auth_headers)
        await _get(app, "/health")

        assert [(m, r, s) for m, r, s, _ in metrics.requests] == [
            ("POST", "/lights/on", "2xx"),
            ("GET", "/health", "2xx"),
        ]
        assert all(duration >= 0 for _, _, _, duration in metrics.requests)
        assert metrics.in_flight_count == 0
        assert metrics.max_in_flight == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method, path", [
        ("POST", "/lights/off"),
        ("POST", "/lights/dark-red"),
        ("POST", "/lights/colortemp"),
        ("GET", "/lights/status"),
        ("GET", "/ready"),
    ])
    async def test_label_is_full_route_path(self, app, metrics, auth_headers, method, path):
        async with _client(app) as client:
            await client.request(method, path, headers=auth_headers)

        assert metrics.requests[-1][:2] == (method, path)

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_in_flight_gauge(self, config, metrics, auth_headers):
        concurrent = 3
        gate = GateSleep(expected=concurrent)
        app = create_app(
            config,
            SimulatedDeviceRegistry(["A", "B"]),
            metrics=metrics,
            inter_device_delay=0.1,
            sleep=gate,
        )

        async with _client(app) as client:
            responses = await asyncio.wait_for(
                asyncio.gather(*[
                    client.post("/lights/on", headers=auth_headers)
                    for _ in range(concurrent)
                ]),
                timeout=5,
            )

        assert [r.status_code for r in responses] == [200] * concurrent
        assert metrics.max_in_flight == concurrent
        assert metrics.in_flight_count == 0
        assert len(metrics.requests) == concurrent

    @pytest.mark.asyncio
    async def test_unhandled_exception_becomes_generic_500(self, app, metrics):
        @app.get("/explode")
        async def explode():
            raise RuntimeError("boom")

        response = await _get(app, "/explode")

        assert response.status_code == 500
        assert response.json() == {"error": INTERNAL_ERROR_MESSAGE}
        assert REQUEST_ID.match(response.headers["x-request-id"])
        assert metrics.requests[-1][2] == "5xx"
        assert metrics.in_flight_count == 0

    @pytest.mark.asyncio
    async def test_encoding_failure_becomes_generic_500(self, app):
        @app.get("/unencodable")
        async def unencodable():
            return render_json({"values": {1, 2, 3}})

        response = await _get(app, "/unencodable")

        assert response.status_code == 500
        assert response.json() == {"error": INTERNAL_ERROR_MESSAGE}
        assert REQUEST_ID.match(response.headers["x-request-id"])

    @pytest.mark.asyncio
    async def test_correlation_failure_fails_closed(self, app, registry, auth_headers, monkeypatch):
        def no_entropy():
            raise OSError("entropy source unavailable")

        monkeypatch.setattr(context_module.uuid, "uuid4", no_entropy)

        response = await _post(app, "/lights/on", headers=auth_headers)

        assert response.status_code == 500
        assert "x-request-id" not in response.headers
        assert registry.calls == []

    @pytest.mark.asyncio
    async def test_wrong_method_with_valid_token_is_405(self, app, auth_headers):
        response = await _get(app, "/lights/on", headers=auth_headers)

        assert response.status_code == 405
        assert REQUEST_ID.match(response.headers["x-request-id"])


class TestConfigDrivenDelay:

    @pytest.mark.asyncio
    async def test_delay_taken_from_config(self, metrics, recording_sleep, auth_headers):
        registry = SimulatedDeviceRegistry(["A", "B", "C"])
        app = create_app(
            ServiceConfig(bearer_token="test-token", inter_device_delay_ms=250),
            registry,
            metrics=metrics,
            sleep=recording_sleep,
        )

        await _post(app, "/lights/on", headers=auth_headers)

        assert recording_sleep.delays == [0.25, 0.25]
