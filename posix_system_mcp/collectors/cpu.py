import logging
import os
import platform
from typing import List

import psutil

from posix_system_mcp import platform as host_platform
from posix_system_mcp.core.errors import CollectionError
from posix_system_mcp.core.types import CPUInfo

logger = logging.getLogger("PosixSystemMCP.collectors.cpu")


def _parse_cache_size(raw: str) -> int:
    # "8192 KB" -> 8192
    head = raw.split(" ", 1)[0]
    try:
        return int(head)
    except ValueError:
        return 0


def _parse_float(raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        return 0.0


def _speed_mhz(cpuinfo_mhz: str) -> float:
    try:
        freq = psutil.cpu_freq()
    except (OSError, NotImplementedError, RuntimeError):
        freq = None
    if freq is not None:
        if freq.max:
            return float(freq.max)
        if freq.current:
            return float(freq.current)
    return _parse_float(cpuinfo_mhz)


def collect_cpu_info(per_cpu: bool, interval_ms: int) -> CPUInfo:
    """
    Sample CPU usage over `interval_ms` and describe the processor.

    Blocks for the whole sampling window; callers pass an already clamped
    interval.
    """
    try:
        sample = psutil.cpu_percent(interval=interval_ms / 1000.0, percpu=per_cpu)
    except (OSError, psutil.Error) as exc:
        raise CollectionError(f"failed to get CPU usage: {exc}") from exc
    usage: List[float] = [float(v) for v in sample] if per_cpu else [float(sample)]

    try:
        logical = psutil.cpu_count(logical=True)
        physical = psutil.cpu_count(logical=False)
    except (OSError, psutil.Error) as exc:
        raise CollectionError(f"failed to get CPU info: {exc}") from exc
    logical = logical or os.cpu_count() or 1
    physical = physical or logical

    info = host_platform.read_cpuinfo()
    flags = info.get("flags", "").split()

    return CPUInfo(
        usage_percent=usage,
        logical_count=logical,
        physical_count=physical,
        model_name=info.get("model name") or platform.processor(),
        family=info.get("cpu family", ""),
        speed_mhz=_speed_mhz(info.get("cpu MHz", "")),
        cache_size=_parse_cache_size(info.get("cache size", "")),
        flags=flags or None,
    )
