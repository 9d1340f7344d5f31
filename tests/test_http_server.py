"""Tests for the FastAPI HTTP transport."""

import base64
import json
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from posix_system_mcp.core.config import RuntimeConfig, ServerConfig
from posix_system_mcp.core.types import LoadAvgResult
from posix_system_mcp.mcp.definitions import get_operation
from posix_system_mcp.mcp.dispatcher import Dispatcher
from posix_system_mcp.mcp.state import RuntimeConfigHolder, encode_runtime_config
from posix_system_mcp.server import CORS_HEADERS, create_app


def _blob(document) -> str:
    return base64.b64encode(json.dumps(document).encode("utf-8")).decode("ascii")


def _rpc(client, method, rpc_params=None, msg_id=1, **kwargs):
    body = {"jsonrpc": "2.0", "id": msg_id, "method": method}
    if rpc_params is not None:
        body["params"] = rpc_params
    return client.post("/mcp", json=body, **kwargs)


@pytest.fixture
def runtime():
    return RuntimeConfigHolder()


@pytest.fixture
def client(stub_dispatcher, runtime):
    app = create_app(ServerConfig(), dispatcher=stub_dispatcher, runtime=runtime)
    return TestClient(app)


@pytest.fixture
def live_client():
    return TestClient(create_app(ServerConfig(), dispatcher=Dispatcher()))


def _assert_cors(response):
    for header, value in CORS_HEADERS.items():
        assert response.headers[header] == value


class TestFraming:
    def test_options_preflight(self, client):
        response = client.options("/mcp")
        assert response.status_code == 200
        assert response.content == b""
        _assert_cors(response)

    def test_non_post_is_405(self, client):
        response = client.get("/mcp")
        assert response.status_code == 405
        assert response.text == "Method not allowed"
        _assert_cors(response)

    def test_invalid_json_is_400(self, client):
        response = client.post("/mcp", content=b"{not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.text == "Invalid JSON"
        _assert_cors(response)

    def test_non_object_json_is_400(self, client):
        response = client.post("/mcp", json=[1, 2, 3])
        assert response.status_code == 400


class TestJsonRpc:
    def test_initialize(self, client):
        response = _rpc(client, "initialize", {})
        assert response.status_code == 200
        _assert_cors(response)
        assert response.json() == {
            "jsonrpc": "2.0",
            "id": 1,
            "result": {
                "protocolVersion": "2024-11-05",
                "capabilities": {"tools": {}},
                "serverInfo": {"name": "posix-system-mcp", "version": "1.0.0"},
            },
        }

    def test_tools_list(self, client):
        tools = _rpc(client, "tools/list").json()["result"]["tools"]
        assert [t["name"] for t in tools][:2] == ["get_system_info", "get_cpu_info"]
        assert len(tools) == 7

    def test_unknown_method(self, client):
        body = _rpc(client, "totally_unknown", msg_id="abc").json()
        assert body["jsonrpc"] == "2.0"
        assert body["id"] == "abc"
        assert body["error"]["code"] == -32601
        assert body["error"]["message"] == "unknown method: totally_unknown"

    def test_missing_id_is_echoed_as_null(self, client):
        response = client.post("/mcp", json={"jsonrpc": "2.0", "method": "nope"})
        assert response.json()["id"] is None

    def test_tools_call_success(self, client):
        result = _rpc(client, "tools/call", {"name": "get_load_average", "arguments": {}}, msg_id=7).json()
        assert result["id"] == 7
        assert result["result"]["isError"] is False
        assert result["result"]["content"][0]["text"] == "Load average retrieved"

    def test_tools_call_unknown_tool(self, client):
        body = _rpc(client, "tools/call", {"name": "nope"}).json()
        assert body["error"] == {"code": -32601, "message": "unknown tool: nope"}

    def test_tools_call_invalid_params(self, client):
        body = _rpc(client, "tools/call", {"arguments": {}}).json()
        assert body["error"]["code"] == -32602

    def test_collection_failure_is_a_json_rpc_error(self, client):
        body = _rpc(client, "tools/call", {"name": "get_broken"}, msg_id=12).json()

        assert "result" not in body
        assert body["id"] == 12
        assert body["error"] == {
            "code": -32601,
            "message": "failed to get load average: boom",
            "data": {"classification": "CollectionFailure"},
        }

    def test_tool_name_must_match_exactly(self, client):
        body = _rpc(client, "tools/call", {"name": "get_load_average "}).json()
        assert body["error"] == {"code": -32601, "message": "unknown tool: get_load_average "}


class TestRuntimeConfig:
    def test_config_blob_replaces_snapshot(self, client, runtime):
        response = client.get("/health", params={"config": _blob({"refreshInterval": 250, "enableDebug": True})})

        assert response.status_code == 200
        assert runtime.get() == RuntimeConfig(refresh_interval=250, debug=True)

    def test_refresh_interval_is_clamped(self, client, runtime):
        client.get("/health", params={"config": _blob({"refreshInterval": 5})})
        assert runtime.get().refresh_interval == 100
        client.get("/health", params={"config": _blob({"refreshInterval": 999999})})
        assert runtime.get().refresh_interval == 10000

    def test_malformed_blob_keeps_previous_config(self, client, runtime):
        client.get("/health", params={"config": _blob({"refreshInterval": 300})})
        response = client.get("/health", params={"config": "%%%not-base64"})

        assert response.status_code == 200
        assert runtime.get().refresh_interval == 300

    def test_refresh_interval_does_not_change_the_cpu_sampling_default(self, runtime):
        recorded = []

        def fake_cpu(args, options):
            recorded.append(args.interval_ms)
            return LoadAvgResult(load1=0, load5=0, load15=0)

        cpu_op = replace(get_operation("get_cpu_info"), invoke=fake_cpu)
        app = create_app(ServerConfig(), dispatcher=Dispatcher(operations=[cpu_op]), runtime=runtime)
        cpu_client = TestClient(app)

        _rpc(
            cpu_client, "tools/call", {"name": "get_cpu_info", "arguments": {}},
            params={"config": _blob({"refreshInterval": 9000})},
        )
        _rpc(cpu_client, "tools/call", {"name": "get_cpu_info", "arguments": {"interval_ms": 150}})

        assert runtime.get().refresh_interval == 9000
        assert recorded == [1000, 150]

    def test_encode_round_trip_through_query(self, client, runtime):
        blob = encode_runtime_config(RuntimeConfig(refresh_interval=700, debug=False))
        client.get("/health", params={"config": blob})
        assert runtime.get().refresh_interval == 700


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "posix-system-mcp", "version": "1.0.0"}
    _assert_cors(response)


def test_per_cpu_usage_matches_logical_core_count(live_client):
    body = _rpc(
        live_client,
        "tools/call",
        {"name": "get_cpu_info", "arguments": {"per_cpu": True, "interval_ms": 100}},
    ).json()

    payload = body["result"]["structuredContent"]
    assert len(payload["usage_percent"]) == payload["logical_count"]
