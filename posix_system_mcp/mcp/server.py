import sys
import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Dict, Any, BinaryIO, TextIO

from posix_system_mcp.core.config import ServerConfig
from posix_system_mcp.mcp.dispatcher import Dispatcher
from posix_system_mcp.mcp.handlers import (
    error_message,
    handle_call_tool,
    handle_initialize,
    handle_list_tools,
    result_message,
)
from posix_system_mcp.mcp.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    SERVER_BUSY,
)
from posix_system_mcp.mcp.state import SessionState

logger = logging.getLogger("PosixSystemMCP.mcp.server")


class McpServer:
    """
    Handles JSON-RPC communication over stdio with thread-pooled tools/call dispatch.
    """
    def __init__(
        self,
        dispatcher: Dispatcher,
        config: Optional[ServerConfig] = None,
        output: Optional[TextIO] = None,
    ):
        self.dispatcher = dispatcher
        self.config = config or ServerConfig()
        self.output = output
        self.session = SessionState()

        self.max_workers = max(1, self.config.dispatch_max_workers)
        self.queue_limit = max(self.max_workers, self.config.dispatch_queue_limit)

        self.transport_closed = threading.Event()
        self.write_lock = threading.Lock()

        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self._queue_semaphore = threading.BoundedSemaphore(self.queue_limit)

    def get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="posix-mcp-dispatch",
                )
            return self._executor

    def stop(self, wait: bool = True) -> None:
        """Shut down the worker pool; with wait=True in-flight calls finish first."""
        with self._executor_lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None

    # --- Output ---

    def send_rpc(self, message: Dict[str, Any]) -> None:
        """Serialize and send a JSON-RPC message, one per line."""
        if self.transport_closed.is_set():
            return

        try:
            serialized = json.dumps(message)
            with self.write_lock:
                if self.transport_closed.is_set():
                    return
                out = self.output if self.output is not None else sys.stdout
                out.write(serialized + "\n")
                out.flush()
        except (BrokenPipeError, OSError) as exc:
            self.transport_closed.set()
            logger.warning("MCP stdio transport closed while sending: %s", exc)

    def send_result(self, msg_id: Any, result: Dict[str, Any]) -> None:
        self.send_rpc(result_message(msg_id, result))

    def send_error(self, msg_id: Any, code: int, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.send_rpc(error_message(msg_id, code, message, data))

    # --- Input ---

    def read_message(self, stream: BinaryIO) -> Optional[Dict[str, Any]]:
        """
        Read one inbound JSON-RPC message from a binary stream.
        Supports Content-Length framing and newline-delimited JSON.
        Returns None at end of stream.
        """
        while True:
            line = stream.readline()
            if not line:
                return None
            if not line.strip():
                continue

            lowered = line.lower()
            if lowered.startswith(b"content-length:"):
                try:
                    content_length = int(line.split(b":", 1)[1].strip())
                    if content_length <= 0:
                        raise ValueError("content length must be positive")
                except ValueError:
                    logger.warning("Invalid Content-Length header: %r", line)
                    if not self._consume_framing_headers(stream):
                        return None
                    continue

                if not self._consume_framing_headers(stream):
                    return None

                payload = stream.read(content_length)
                if not payload or len(payload) != content_length:
                    return None
                msg = self._decode(payload)
            else:
                msg = self._decode(line)

            if isinstance(msg, dict):
                return msg
            if msg is not None:
                logger.warning("Ignoring non-object JSON-RPC message: %r", msg)

    @staticmethod
    def _decode(raw: bytes) -> Any:
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.debug("Skipping undecodable input: %r", raw[:200])
            return None

    def _consume_framing_headers(self, stream: BinaryIO) -> bool:
        while True:
            header_line = stream.readline()
            if not header_line:
                return False
            if header_line in (b"\r\n", b"\n"):
                return True

    # --- Dispatch ---

    def dispatch_message(self, msg: Dict[str, Any]) -> None:
        """
        Handle a single parsed JSON-RPC message.

        - Unknown request methods (with id) return -32601.
        - Unknown notifications (no id) are ignored.
        - tools/* before a successful initialize return -32600.
        """
        msg_id = msg.get("id")
        method = msg.get("method")
        params = msg.get("params")

        if not isinstance(method, str):
            if msg_id is not None:
                self.send_error(msg_id, INVALID_REQUEST, "Invalid Request: missing method")
            return

        if method == "initialize":
            if params is None:
                params = {}
            if not isinstance(params, dict):
                self.send_error(msg_id, INVALID_PARAMS, "Invalid params: initialize params must be an object")
                return
            handle_initialize(msg_id, params, self.session, self.send_error, self.send_result)
            return

        if method == "notifications/initialized":
            if self.session.negotiated:
                self.session.initialized = True
                logger.info("Client initialized connection")
            else:
                logger.warning("Ignored notifications/initialized before successful initialize")
            return

        if method == "ping":
            if msg_id is not None:
                self.send_result(msg_id, {})
            return

        if method in ("tools/list", "tools/call"):
            if msg_id is None:
                return
            if not self.session.negotiated:
                self.send_error(msg_id, INVALID_REQUEST, "Server not initialized")
                return
            if method == "tools/list":
                handle_list_tools(msg_id, self.send_result)
            else:
                self.submit_dispatch(msg)
            return

        if msg_id is not None:
            self.send_error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    def submit_dispatch(self, msg: Dict[str, Any]) -> bool:
        """Run a tools/call on the worker pool if a slot is available."""
        if not self._queue_semaphore.acquire(blocking=False):
            self.send_error(msg.get("id"), SERVER_BUSY, "Server busy: dispatch queue is saturated.")
            return False

        try:
            future = self.get_executor().submit(self._call_tool_guarded, msg)
        except RuntimeError:
            self._queue_semaphore.release()
            raise

        future.add_done_callback(lambda f: self._queue_semaphore.release())
        return True

    def _call_tool_guarded(self, msg: Dict[str, Any]) -> None:
        msg_id = msg.get("id")
        try:
            handle_call_tool(
                msg_id,
                msg.get("params"),
                self.dispatcher,
                self.send_error,
                self.send_result,
                max_chars=self.config.tool_response_max_chars,
            )
        except Exception:
            logger.exception("Unexpected error during tools/call dispatch")
            if not self.transport_closed.is_set():
                self.send_error(msg_id, INTERNAL_ERROR, "Internal error during request dispatch.")

    def serve(self, stream: Optional[BinaryIO] = None) -> None:
        """Read messages until EOF or the output closes, then drain in-flight calls."""
        stream = stream if stream is not None else sys.stdin.buffer
        logger.info("posix-system-mcp stdio server started")
        try:
            while not self.transport_closed.is_set():
                msg = self.read_message(stream)
                if msg is None:
                    break
                try:
                    self.dispatch_message(msg)
                except Exception:
                    logger.exception("Loop error while handling %r", msg.get("method"))
                    if msg.get("id") is not None:
                        self.send_error(msg.get("id"), INTERNAL_ERROR, "Internal error during request dispatch.")
        finally:
            self.stop(wait=True)
            logger.info("posix-system-mcp stdio server stopped")
