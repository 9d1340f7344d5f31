"""
posix-system-mcp Python SDK clients (sync + async) for the HTTP transport.
"""

from __future__ import annotations

import itertools
import os
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import urlparse

import httpx
import requests
from pydantic import BaseModel

from posix_system_mcp.core.config import RuntimeConfig
from posix_system_mcp.core.types import (
    CPUInfo,
    DiskInfoResult,
    LoadAvgResult,
    MemoryInfo,
    NetworkInfoResult,
    ProcessInfoResult,
    SystemInfo,
)
from posix_system_mcp.mcp.protocol import JSONRPC_VERSION
from posix_system_mcp.mcp.state import encode_runtime_config
from posix_system_mcp.sdk.errors import SystemMcpAPIError, SystemMcpConnectionError

DEFAULT_BASE_URL = os.environ.get("POSIX_MCP_SERVER_URL", "http://localhost:8081")
MCP_PATH = "/mcp"

RecordT = TypeVar("RecordT", bound=BaseModel)


def _normalize_base_url(base_url: str) -> str:
    value = base_url.rstrip("/")
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid posix-system-mcp base URL: {base_url!r}")
    return value


def _process_arguments(pid: int, name: str, limit: int, sort_by: str) -> Dict[str, Any]:
    arguments: Dict[str, Any] = {"limit": limit, "sort_by": sort_by}
    if pid:
        arguments["pid"] = pid
    if name:
        arguments["name"] = name
    return arguments


class _BaseSystemMcpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        runtime_config: Optional[RuntimeConfig] = None,
    ):
        self.base_url = _normalize_base_url(base_url)
        # CPU sampling can block for up to 10s server-side.
        self.timeout = timeout
        self.runtime_config = runtime_config
        self._ids = itertools.count(1)

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    def _query_params(self) -> Optional[Dict[str, str]]:
        if self.runtime_config is None:
            return None
        return {"config": encode_runtime_config(self.runtime_config)}

    def _rpc_body(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": next(self._ids), "method": method}
        if params is not None:
            body["params"] = params
        return body

    def _unwrap_api_payload(self, response: Any, *, path: str, status_code: int) -> Any:
        if status_code >= 400:
            detail = response.strip() if isinstance(response, str) and response.strip() else f"HTTP {status_code} error"
            raise SystemMcpAPIError(detail, status_code=status_code, path=path, payload=response)

        if not isinstance(response, dict):
            raise SystemMcpAPIError(
                "Invalid response payload",
                status_code=status_code,
                path=path,
                payload=response,
            )

        if path == MCP_PATH:
            error = response.get("error")
            if isinstance(error, dict):
                data = error.get("data")
                raise SystemMcpAPIError(
                    str(error.get("message", "JSON-RPC error")),
                    status_code=status_code,
                    path=path,
                    code=error.get("code"),
                    classification=data.get("classification") if isinstance(data, dict) else None,
                    payload=response,
                )
            return response.get("result")

        return response

    @staticmethod
    def _structured(result: Dict[str, Any], model: Type[RecordT]) -> RecordT:
        """Validate a tools/call result into its record type."""
        return model.model_validate(result.get("structuredContent") or {})


class SystemMcpClient(_BaseSystemMcpClient):
    """
    Synchronous client for the posix-system-mcp HTTP transport.

    Usage:
        from posix_system_mcp.sdk import SystemMcpClient
        with SystemMcpClient("http://localhost:8081") as client:
            cpu = client.cpu_info(per_cpu=True)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        runtime_config: Optional[RuntimeConfig] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, runtime_config=runtime_config)
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._session.headers.setdefault("Accept", "application/json")

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "SystemMcpClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = self._url(path)
        try:
            response = self._session.request(
                method=method,
                url=url,
                json=json_body,
                params=self._query_params(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise SystemMcpConnectionError(f"Failed to connect to posix-system-mcp at {self.base_url}: {exc}") from exc

        payload: Any
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
        else:
            payload = {}

        return self._unwrap_api_payload(payload, path=path, status_code=response.status_code)

    def _rpc(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("POST", MCP_PATH, json_body=self._rpc_body(method, params))

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def initialize(self) -> Dict[str, Any]:
        return self._rpc("initialize", {})

    def list_tools(self) -> List[Dict[str, Any]]:
        return self._rpc("tools/list", {}).get("tools", [])

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Raw MCP tools/call result (content, structuredContent, isError)."""
        return self._rpc("tools/call", {"name": name, "arguments": arguments or {}})

    def system_info(self) -> SystemInfo:
        return self._structured(self.call_tool("get_system_info"), SystemInfo)

    def cpu_info(self, per_cpu: bool = False, interval_ms: Optional[int] = None) -> CPUInfo:
        arguments: Dict[str, Any] = {"per_cpu": per_cpu}
        if interval_ms is not None:
            arguments["interval_ms"] = interval_ms
        return self._structured(self.call_tool("get_cpu_info", arguments), CPUInfo)

    def memory_info(self) -> MemoryInfo:
        return self._structured(self.call_tool("get_memory_info"), MemoryInfo)

    def disk_info(self, path: str = "") -> DiskInfoResult:
        return self._structured(self.call_tool("get_disk_info", {"path": path}), DiskInfoResult)

    def network_info(self, interface: str = "") -> NetworkInfoResult:
        return self._structured(self.call_tool("get_network_info", {"interface": interface}), NetworkInfoResult)

    def process_info(self, pid: int = 0, name: str = "", limit: int = 10, sort_by: str = "cpu") -> ProcessInfoResult:
        result = self.call_tool("get_process_info", _process_arguments(pid, name, limit, sort_by))
        return self._structured(result, ProcessInfoResult)

    def load_average(self) -> LoadAvgResult:
        return self._structured(self.call_tool("get_load_average"), LoadAvgResult)


class AsyncSystemMcpClient(_BaseSystemMcpClient):
    """
    Async client for the posix-system-mcp HTTP transport.

    Usage:
        from posix_system_mcp.sdk import AsyncSystemMcpClient
        async with AsyncSystemMcpClient() as client:
            load = await client.load_average()
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        runtime_config: Optional[RuntimeConfig] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, runtime_config=runtime_config)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(headers={"Accept": "application/json"})

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncSystemMcpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = self._url(path)
        try:
            response = await self._client.request(
                method=method,
                url=url,
                json=json_body,
                params=self._query_params(),
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise SystemMcpConnectionError(f"Failed to connect to posix-system-mcp at {self.base_url}: {exc}") from exc

        if response.content:
            try:
                payload: Any = response.json()
            except ValueError:
                payload = response.text
        else:
            payload = {}
        return self._unwrap_api_payload(payload, path=path, status_code=response.status_code)

    async def _rpc(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("POST", MCP_PATH, json_body=self._rpc_body(method, params))

    async def health(self) -> Dict[str, Any]:
        return await self._request("GET", "/health")

    async def initialize(self) -> Dict[str, Any]:
        return await self._rpc("initialize", {})

    async def list_tools(self) -> List[Dict[str, Any]]:
        result = await self._rpc("tools/list", {})
        return result.get("tools", [])

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self._rpc("tools/call", {"name": name, "arguments": arguments or {}})

    async def system_info(self) -> SystemInfo:
        return self._structured(await self.call_tool("get_system_info"), SystemInfo)

    async def cpu_info(self, per_cpu: bool = False, interval_ms: Optional[int] = None) -> CPUInfo:
        arguments: Dict[str, Any] = {"per_cpu": per_cpu}
        if interval_ms is not None:
            arguments["interval_ms"] = interval_ms
        return self._structured(await self.call_tool("get_cpu_info", arguments), CPUInfo)

    async def memory_info(self) -> MemoryInfo:
        return self._structured(await self.call_tool("get_memory_info"), MemoryInfo)

    async def disk_info(self, path: str = "") -> DiskInfoResult:
        return self._structured(await self.call_tool("get_disk_info", {"path": path}), DiskInfoResult)

    async def network_info(self, interface: str = "") -> NetworkInfoResult:
        result = await self.call_tool("get_network_info", {"interface": interface})
        return self._structured(result, NetworkInfoResult)

    async def process_info(
        self, pid: int = 0, name: str = "", limit: int = 10, sort_by: str = "cpu"
    ) -> ProcessInfoResult:
        result = await self.call_tool("get_process_info", _process_arguments(pid, name, limit, sort_by))
        return self._structured(result, ProcessInfoResult)

    async def load_average(self) -> LoadAvgResult:
        return self._structured(await self.call_tool("get_load_average"), LoadAvgResult)
