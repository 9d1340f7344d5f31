"""
Command-line entry point.

    posix-system-mcp              # MCP over stdio
    posix-system-mcp --http       # MCP over HTTP on $PORT (default 8081)
    posix-system-mcp --version
"""

import argparse
import logging
import sys
from typing import Optional

from posix_system_mcp.core.config import SUPPORTED_LOG_LEVELS, ServerConfig
from posix_system_mcp.mcp.dispatcher import Dispatcher
from posix_system_mcp.mcp.protocol import SERVER_NAME
from posix_system_mcp.mcp.server import McpServer
from posix_system_mcp.version import __version__

logger = logging.getLogger("PosixSystemMCP.cli")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="Expose host telemetry (CPU, memory, disk, network, processes, load) over MCP.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="store_true",
        help="Print the version and exit.",
    )
    parser.add_argument(
        "--http",
        action="store_true",
        help="Serve over HTTP on $PORT instead of stdio.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=list(SUPPORTED_LOG_LEVELS),
        help="Override POSIX_MCP_LOG_LEVEL.",
    )
    return parser


def configure_logging(level: str, log_file: Optional[str] = None) -> None:
    """Log to stderr (stdout carries the stdio protocol) and optionally to a file."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"{SERVER_NAME} version {__version__}")
        return 0

    config = ServerConfig.from_env()
    if args.log_level:
        config = config.model_copy(update={"log_level": args.log_level})
    configure_logging(config.log_level, config.log_file)
    logger.debug("Starting %s %s (transport=%s)", SERVER_NAME, __version__, "http" if args.http else "stdio")

    if args.http:
        from posix_system_mcp.server import run_http
        return run_http(config)

    McpServer(Dispatcher.from_config(config), config).serve()
    return 0
