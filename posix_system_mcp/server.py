"""
posix-system-mcp HTTP transport
===============================

FastAPI application exposing the telemetry tools as JSON-RPC 2.0 over
``POST /mcp``, plus ``GET /health``.

- Every response carries permissive CORS headers; ``OPTIONS`` preflights
  are answered with 200 and no body.
- Any request may carry ``?config=<base64 JSON>`` to replace the runtime
  config (``refreshInterval``, ``enableDebug``).
- A tool that fails to collect answers with a JSON-RPC error (-32601, the
  classification in ``error.data``) rather than an ``isError`` result.

Usage:
    posix-system-mcp --http            # listen on $PORT (default 8081)
"""

import json
import logging
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from posix_system_mcp.core.config import RuntimeConfig, ServerConfig
from posix_system_mcp.core.errors import InvalidRequestFramingError
from posix_system_mcp.mcp.dispatcher import Dispatcher
from posix_system_mcp.mcp.handlers import (
    error_message,
    handle_call_tool,
    handle_http_initialize,
    handle_list_tools,
    result_message,
)
from posix_system_mcp.mcp.protocol import METHOD_NOT_FOUND, SERVER_NAME
from posix_system_mcp.mcp.state import RuntimeConfigHolder
from posix_system_mcp.version import __version__

logger = logging.getLogger("PosixSystemMCP.server")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Expose-Headers": "mcp-session-id, mcp-protocol-version",
}

CONFIG_QUERY_PARAM = "config"


def handle_rpc_request(
    body: Dict[str, Any],
    dispatcher: Dispatcher,
    runtime: RuntimeConfig,
    max_chars: int,
) -> Dict[str, Any]:
    """Route one decoded JSON-RPC request and return the response object."""
    msg_id = body.get("id")
    method = body.get("method")
    params = body.get("params")
    response: Dict[str, Any] = {}

    def send_result(rid: Any, result: Dict[str, Any]) -> None:
        response.update(result_message(rid, result))

    def send_error(rid: Any, code: int, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        response.update(error_message(rid, code, message, data))

    if method == "initialize":
        handle_http_initialize(msg_id, send_result)
    elif method == "tools/list":
        handle_list_tools(msg_id, send_result)
    elif method == "tools/call":
        if runtime.debug:
            logger.info("tools/call params=%s", json.dumps(params, default=str))
        handle_call_tool(
            msg_id,
            params,
            dispatcher,
            send_error,
            send_result,
            max_chars=max_chars,
            failures_as_errors=True,
        )
    else:
        name = method if isinstance(method, str) else ""
        send_error(msg_id, METHOD_NOT_FOUND, f"unknown method: {name}")
    return response


def create_app(
    config: Optional[ServerConfig] = None,
    dispatcher: Optional[Dispatcher] = None,
    runtime: Optional[RuntimeConfigHolder] = None,
) -> FastAPI:
    config = config or ServerConfig.from_env()
    dispatcher = dispatcher or Dispatcher.from_config(config)
    runtime = runtime or RuntimeConfigHolder(RuntimeConfig(debug=config.debug))

    app = FastAPI(title="posix-system-mcp", version=__version__)
    app.state.config = config
    app.state.dispatcher = dispatcher
    app.state.runtime = runtime

    @app.middleware("http")
    async def cors_and_runtime_config(request: Request, call_next):
        blob = request.query_params.get(CONFIG_QUERY_PARAM)
        if blob:
            runtime.apply_encoded(blob)

        if request.method == "OPTIONS":
            response: Response = Response(status_code=200)
        else:
            response = await call_next(request)
        for header, value in CORS_HEADERS.items():
            response.headers[header] = value
        return response

    @app.exception_handler(InvalidRequestFramingError)
    async def framing_error_handler(request: Request, exc: InvalidRequestFramingError):
        if runtime.get().debug:
            logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
        return PlainTextResponse(str(exc), status_code=exc.status_code)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": SERVER_NAME, "version": __version__}

    @app.api_route("/mcp", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
    async def mcp_endpoint(request: Request):
        if request.method != "POST":
            raise InvalidRequestFramingError("Method not allowed", status_code=405)

        try:
            raw = await request.body()
        except Exception as exc:
            raise InvalidRequestFramingError("Failed to read request body") from exc
        try:
            body = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise InvalidRequestFramingError("Invalid JSON") from exc
        if not isinstance(body, dict):
            raise InvalidRequestFramingError("Invalid JSON")

        snapshot = runtime.get()
        if snapshot.debug:
            logger.info("MCP request: %s", raw.decode("utf-8", errors="replace"))

        payload = await run_in_threadpool(
            handle_rpc_request, body, dispatcher, snapshot, config.tool_response_max_chars
        )
        return JSONResponse(payload)

    return app


def run_http(config: ServerConfig) -> int:
    """Serve the HTTP transport until interrupted. Returns a process exit code."""
    app = create_app(config)
    logger.info("Starting posix-system-mcp HTTP server on %s:%d", config.host, config.port)
    try:
        uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level)
    except OSError as exc:
        logger.error("Failed to start HTTP server on %s:%d: %s", config.host, config.port, exc)
        return 1
    return 0
