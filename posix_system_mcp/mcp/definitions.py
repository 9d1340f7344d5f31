"""
Operation registry.

The fixed catalogue of telemetry tools. Dispatch and both discovery listings
(stdio and HTTP `tools/list`) are driven from `OPERATIONS`.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel

from posix_system_mcp import collectors
from posix_system_mcp.core.arguments import ParameterSpec
from posix_system_mcp.core.types import (
    CpuInfoArgs,
    DiskInfoArgs,
    NetworkInfoArgs,
    NoArguments,
    ProcessInfoArgs,
    ProcessSortKey,
)

JSON_SCHEMA_2020_12 = "https://json-schema.org/draft/2020-12/schema"

TOOL_ANNOTATIONS: Dict[str, bool] = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": False,
}


@dataclass(frozen=True)
class CollectorOptions:
    """Server-level knobs handed to collectors alongside the normalized arguments."""
    process_scan_multiplier: int = collectors.PROCESS_SCAN_MULTIPLIER


Collector = Callable[[BaseModel, CollectorOptions], BaseModel]


@dataclass(frozen=True)
class OperationSpec:
    name: str
    description: str
    status_message: str
    args_model: Type[BaseModel]
    invoke: Collector
    parameters: Tuple[ParameterSpec, ...] = field(default_factory=tuple)

    def input_schema(self) -> Dict[str, Any]:
        return {
            "$schema": JSON_SCHEMA_2020_12,
            "type": "object",
            "properties": {p.name: p.json_schema() for p in self.parameters},
        }

    def tool_schema(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
            "annotations": dict(TOOL_ANNOTATIONS),
        }


def _system_info(args: NoArguments, options: CollectorOptions) -> BaseModel:
    return collectors.collect_system_info()


def _cpu_info(args: CpuInfoArgs, options: CollectorOptions) -> BaseModel:
    return collectors.collect_cpu_info(args.per_cpu, args.interval_ms)


def _memory_info(args: NoArguments, options: CollectorOptions) -> BaseModel:
    return collectors.collect_memory_info()


def _disk_info(args: DiskInfoArgs, options: CollectorOptions) -> BaseModel:
    return collectors.collect_disk_info(args.path)


def _network_info(args: NetworkInfoArgs, options: CollectorOptions) -> BaseModel:
    return collectors.collect_network_info(args.interface)


def _process_info(args: ProcessInfoArgs, options: CollectorOptions) -> BaseModel:
    return collectors.collect_process_info(args, scan_multiplier=options.process_scan_multiplier)


def _load_average(args: NoArguments, options: CollectorOptions) -> BaseModel:
    return collectors.collect_load_average()


OPERATIONS: Tuple[OperationSpec, ...] = (
    OperationSpec(
        name="get_system_info",
        description="Get comprehensive system information including hostname, OS, platform, uptime, etc.",
        status_message="System information retrieved",
        args_model=NoArguments,
        invoke=_system_info,
    ),
    OperationSpec(
        name="get_cpu_info",
        description="Get detailed CPU usage statistics and information",
        status_message="CPU information retrieved",
        args_model=CpuInfoArgs,
        invoke=_cpu_info,
        parameters=(
            ParameterSpec("per_cpu", "boolean", "Get per-CPU usage if true", False),
            ParameterSpec(
                "interval_ms", "integer", "Sampling window in ms (100..10000)", 1000,
                minimum=100, maximum=10000, non_positive_uses_default=True,
            ),
        ),
    ),
    OperationSpec(
        name="get_memory_info",
        description="Get memory usage information including RAM and swap",
        status_message="Memory information retrieved",
        args_model=NoArguments,
        invoke=_memory_info,
    ),
    OperationSpec(
        name="get_disk_info",
        description="Get disk usage information for all partitions or a specific path",
        status_message="Disk information retrieved",
        args_model=DiskInfoArgs,
        invoke=_disk_info,
        parameters=(
            ParameterSpec("path", "string", "Specific path to check; if empty, all mounts", ""),
        ),
    ),
    OperationSpec(
        name="get_network_info",
        description="Get network interface statistics and information",
        status_message="Network information retrieved",
        args_model=NetworkInfoArgs,
        invoke=_network_info,
        parameters=(
            ParameterSpec("interface", "string", "Specific interface to include", ""),
        ),
    ),
    OperationSpec(
        name="get_process_info",
        description="Get information about running processes with filtering and sorting options",
        status_message="Process information retrieved",
        args_model=ProcessInfoArgs,
        invoke=_process_info,
        parameters=(
            ParameterSpec("pid", "integer", "Specific PID", 0, non_positive_uses_default=True),
            ParameterSpec("name", "string", "Filter by name substring", ""),
            ParameterSpec(
                "limit", "integer", "Max results (1..200, default 10)", 10,
                minimum=1, maximum=200, non_positive_uses_default=True,
            ),
            ParameterSpec(
                "sort_by", "string", "Sort by: cpu|memory|pid|name", ProcessSortKey.CPU.value,
                enum=tuple(key.value for key in ProcessSortKey),
            ),
        ),
    ),
    OperationSpec(
        name="get_load_average",
        description="Get system load average (1, 5, and 15 minute averages)",
        status_message="Load average retrieved",
        args_model=NoArguments,
        invoke=_load_average,
    ),
)

_BY_NAME: Dict[str, OperationSpec] = {op.name: op for op in OPERATIONS}


def get_operation(name: str) -> Optional[OperationSpec]:
    return _BY_NAME.get(name)


def tools_schemas() -> List[Dict[str, Any]]:
    """Discovery catalogue shared by both transports."""
    return [op.tool_schema() for op in OPERATIONS]
