import logging
import platform
import socket
import time
from typing import List, Optional

import psutil

from posix_system_mcp import platform as host_platform
from posix_system_mcp.core.errors import CollectionError
from posix_system_mcp.core.types import SystemInfo, TemperatureStat

logger = logging.getLogger("PosixSystemMCP.collectors.host")


def _sensor_key(chip: str, label: str) -> str:
    suffix = label.strip().lower().replace(" ", "_") if label else "input"
    return f"{chip}_{suffix}"


def _temperatures() -> Optional[List[TemperatureStat]]:
    """Best-effort sensor readings; None when the platform has none."""
    read_sensors = getattr(psutil, "sensors_temperatures", None)
    if read_sensors is None:
        return None
    try:
        sensors = read_sensors() or {}
    except (OSError, RuntimeError) as exc:
        logger.debug("Temperature sensors unavailable: %s", exc)
        return None
    stats = [
        TemperatureStat(sensor_key=_sensor_key(chip, entry.label), temperature=float(entry.current))
        for chip, entries in sensors.items()
        for entry in entries
    ]
    return stats or None


def collect_system_info() -> SystemInfo:
    try:
        boot_time = int(psutil.boot_time())
        process_count = len(psutil.pids())
        hostname = socket.gethostname()
    except (OSError, psutil.Error) as exc:
        raise CollectionError(f"failed to get host info: {exc}") from exc

    platform_id, family, version = host_platform.platform_identity()
    virt_system, virt_role = host_platform.detect_virtualization()

    return SystemInfo(
        hostname=hostname,
        os=host_platform.os_name(),
        platform=platform_id,
        platform_family=family,
        platform_version=version,
        kernel_version=platform.release(),
        kernel_arch=platform.machine(),
        uptime_seconds=max(0, int(time.time()) - boot_time),
        boot_time=boot_time,
        processes=process_count,
        host_id=host_platform.host_id(),
        virtualization_system=virt_system or None,
        virtualization_role=virt_role or None,
        temperature=_temperatures(),
    )
