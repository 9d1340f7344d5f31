"""psutil-backed telemetry collectors, one per metric domain."""

from posix_system_mcp.collectors.cpu import collect_cpu_info
from posix_system_mcp.collectors.disk import collect_disk_info
from posix_system_mcp.collectors.host import collect_system_info
from posix_system_mcp.collectors.load import collect_load_average
from posix_system_mcp.collectors.memory import collect_memory_info
from posix_system_mcp.collectors.network import collect_network_info
from posix_system_mcp.collectors.process import (
    PROCESS_SCAN_MULTIPLIER,
    collect_process_info,
    sort_processes,
)

__all__ = [
    "PROCESS_SCAN_MULTIPLIER",
    "collect_cpu_info",
    "collect_disk_info",
    "collect_load_average",
    "collect_memory_info",
    "collect_network_info",
    "collect_process_info",
    "collect_system_info",
    "sort_processes",
]
