"""Tests for the device API adapter."""

from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from handy_dispatch.adapters import HandyClient
from handy_dispatch.config import ConnectionConfig
from handy_dispatch.core import (
    ConfigurationError,
    InvalidModeError,
    RemoteCallError,
    ValidationError,
)


def build_device_app(
    requests: list[dict[str, Any]],
    *,
    connected: Any = True,
    fail_path: str | None = None,
) -> web.Application:
    async def handler(request: web.Request) -> web.Response:
        body = await request.json() if request.can_read_body else None
        requests.append(
            {
                "method": request.method,
                "path": request.path,
                "body": body,
                "key": request.headers.get("X-Connection-Key"),
            }
        )
        if request.path == fail_path:
            return web.Response(status=502, text="device offline")
        if request.path.endswith("/connected"):
            return web.json_response({"connected": connected})
        return web.json_response({"result": 0})

    app = web.Application()
    app.router.add_get("/api/connected", handler)
    for path in ("/api/mode", "/api/hamp/velocity", "/api/slide", "/api/hamp/start", "/api/hamp/stop"):
        app.router.add_put(path, handler)
    return app


def make_client(server: TestServer, key: str = "conn-key") -> HandyClient:
    return HandyClient(
        ConnectionConfig(connection_key=key, base_url=str(server.make_url("/api/")))
    )


@pytest.mark.asyncio
async def test_calls_hit_expected_endpoints_with_connection_key():
    requests: list[dict[str, Any]] = []

    async with TestServer(build_device_app(requests)) as server:
        client = make_client(server)
        assert await client.check_connected() is True
        await client.set_mode("hamp")
        await client.set_speed(42)
        await client.set_stroke_length(80)
        await client.start()
        await client.stop()
        await client.aclose()

    assert [(item["method"], item["path"], item["body"]) for item in requests] == [
        ("GET", "/api/connected", None),
        ("PUT", "/api/mode", {"mode": 0}),
        ("PUT", "/api/hamp/velocity", {"velocity": 42}),
        ("PUT", "/api/slide", {"position": 80}),
        ("PUT", "/api/hamp/start", None),
        ("PUT", "/api/hamp/stop", None),
    ]
    assert {item["key"] for item in requests} == {"conn-key"}


@pytest.mark.asyncio
async def test_reports_disconnected_device():
    requests: list[dict[str, Any]] = []

    async with TestServer(build_device_app(requests, connected=False)) as server:
        client = make_client(server)
        assert await client.check_connected() is False
        await client.aclose()


@pytest.mark.asyncio
async def test_only_boolean_true_counts_as_connected():
    requests: list[dict[str, Any]] = []

    async with TestServer(build_device_app(requests, connected="false")) as server:
        client = make_client(server)
        assert await client.check_connected() is False
        await client.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call",
    [
        lambda client: client.set_mode("TURBO"),
        lambda client: client.set_speed(101),
        lambda client: client.set_speed(-1),
        lambda client: client.set_stroke_length(100.5),
        lambda client: client.set_stroke_length(-3),
    ],
)
async def test_local_checks_reject_without_request(call):
    requests: list[dict[str, Any]] = []

    async with TestServer(build_device_app(requests)) as server:
        client = make_client(server)
        with pytest.raises(ValidationError):
            await call(client)
        await client.aclose()

    assert requests == []


@pytest.mark.asyncio
async def test_invalid_mode_names_the_mode():
    client = HandyClient(ConnectionConfig(connection_key="k"))

    with pytest.raises(InvalidModeError) as info:
        await client.set_mode("TURBO")

    assert info.value.field == "mode"
    assert info.value.value == "TURBO"
    await client.aclose()


@pytest.mark.asyncio
async def test_error_status_raises_remote_call_error():
    requests: list[dict[str, Any]] = []

    async with TestServer(build_device_app(requests, fail_path="/api/hamp/start")) as server:
        client = make_client(server)
        with pytest.raises(RemoteCallError) as info:
            await client.start()
        await client.aclose()

    assert info.value.status == 502
    assert info.value.endpoint == "/hamp/start"
    assert "device offline" in str(info.value)


@pytest.mark.asyncio
async def test_network_failure_raises_remote_call_error():
    async with TestServer(build_device_app([])) as server:
        base_url = str(server.make_url("/api/"))

    # the server has shut down, so the port refuses connections
    client = HandyClient(ConnectionConfig(connection_key="k", base_url=base_url))
    with pytest.raises(RemoteCallError) as info:
        await client.check_connected()
    await client.aclose()

    assert info.value.status is None


def test_missing_connection_key_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        HandyClient(ConnectionConfig(connection_key=""))
