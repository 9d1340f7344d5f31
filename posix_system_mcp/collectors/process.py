"""
Process listing
---------------
Listing without a pid follows a fixed scan policy: enumerate processes,
keep those matching the name filter, stop once ``limit * scan_multiplier``
records are gathered, sort, then truncate to ``limit``. Enumeration order is
unstable across calls, so only the sort key ordering of a result is
meaningful, never the order among ties.

Processes that exit or deny access while being read are skipped.
"""

import logging
import time
from typing import Any, Dict, Iterable, List, Optional

import psutil

from posix_system_mcp.core.errors import CollectionError
from posix_system_mcp.core.types import (
    ProcessInfo,
    ProcessInfoArgs,
    ProcessInfoResult,
    ProcessSortKey,
)

logger = logging.getLogger("PosixSystemMCP.collectors.process")

PROCESS_SCAN_MULTIPLIER = 2

_DETAIL_ATTRS = [
    "name",
    "status",
    "cpu_times",
    "create_time",
    "memory_info",
    "memory_percent",
    "num_threads",
    "username",
    "cmdline",
]

_SKIPPABLE = (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess)


def _iter_processes() -> Iterable[Any]:
    return psutil.process_iter()


def _lifetime_cpu_percent(cpu_times: Any, create_time: Optional[float], now: float) -> float:
    if cpu_times is None or not create_time:
        return 0.0
    elapsed = now - create_time
    if elapsed <= 0:
        return 0.0
    return (cpu_times.user + cpu_times.system) / elapsed * 100.0


def process_details(proc: Any, now: Optional[float] = None) -> ProcessInfo:
    """Snapshot one process. Individual unreadable fields fall back to zero values."""
    data: Dict[str, Any] = proc.as_dict(attrs=_DETAIL_ATTRS, ad_value=None)
    now = time.time() if now is None else now

    mem = data.get("memory_info")
    create_time = data.get("create_time")
    cmdline = data.get("cmdline") or None

    return ProcessInfo(
        pid=proc.pid,
        name=data.get("name") or "",
        status=data.get("status") or "",
        cpu_percent=_lifetime_cpu_percent(data.get("cpu_times"), create_time, now),
        memory_rss_bytes=mem.rss if mem is not None else 0,
        memory_vms_bytes=mem.vms if mem is not None else 0,
        memory_percent=float(data.get("memory_percent") or 0.0),
        create_time=int(create_time * 1000) if create_time else 0,
        num_threads=data.get("num_threads") or 0,
        username=data.get("username") or None,
        cmdline=list(cmdline) if cmdline else None,
    )


def sort_processes(processes: List[ProcessInfo], sort_by: ProcessSortKey) -> List[ProcessInfo]:
    """Stable sort: cpu and memory descending, pid and name ascending."""
    if sort_by == ProcessSortKey.MEMORY:
        return sorted(processes, key=lambda p: p.memory_percent, reverse=True)
    if sort_by == ProcessSortKey.PID:
        return sorted(processes, key=lambda p: p.pid)
    if sort_by == ProcessSortKey.NAME:
        return sorted(processes, key=lambda p: p.name)
    return sorted(processes, key=lambda p: p.cpu_percent, reverse=True)


def _single_process(pid: int) -> ProcessInfoResult:
    try:
        proc = psutil.Process(pid)
    except (psutil.Error, OSError) as exc:
        raise CollectionError(f"failed to get process {pid}: {exc}") from exc
    try:
        info = process_details(proc)
    except (psutil.Error, OSError) as exc:
        raise CollectionError(f"failed to get process details: {exc}") from exc
    return ProcessInfoResult(processes=[info], count=1)


def collect_process_info(
    args: ProcessInfoArgs,
    scan_multiplier: int = PROCESS_SCAN_MULTIPLIER,
) -> ProcessInfoResult:
    if args.pid > 0:
        return _single_process(args.pid)

    try:
        procs = _iter_processes()
    except (psutil.Error, OSError) as exc:
        raise CollectionError(f"failed to list processes: {exc}") from exc

    needle = args.name.lower()
    scan_cap = args.limit * max(1, scan_multiplier)
    now = time.time()

    gathered: List[ProcessInfo] = []
    for proc in procs:
        try:
            info = process_details(proc, now)
        except _SKIPPABLE:
            continue
        except OSError as exc:
            logger.debug("Skipping process %s: %s", getattr(proc, "pid", "?"), exc)
            continue
        if needle and needle not in info.name.lower():
            continue
        gathered.append(info)
        if len(gathered) >= scan_cap:
            break

    selected = sort_processes(gathered, args.sort_by)[: args.limit]
    return ProcessInfoResult(processes=selected, count=len(selected))
