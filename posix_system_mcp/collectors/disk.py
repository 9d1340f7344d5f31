import logging
import os
from typing import List, Tuple

import psutil

from posix_system_mcp.core.errors import CollectionError
from posix_system_mcp.core.types import DiskInfo, DiskInfoResult

logger = logging.getLogger("PosixSystemMCP.collectors.disk")


def _inodes(path: str) -> Tuple[int, int, int]:
    """Return (total, used, free) inode counts, zeros where statvfs is unavailable."""
    if not hasattr(os, "statvfs"):
        return 0, 0, 0
    st = os.statvfs(path)
    total = st.f_files
    free = st.f_ffree
    return total, max(0, total - free), free


def _fstype_for(path: str) -> str:
    """Filesystem type of the mount holding `path` (longest mountpoint prefix)."""
    try:
        partitions = psutil.disk_partitions(all=True)
    except (OSError, psutil.Error):
        return ""
    target = os.path.abspath(path)
    best, fstype = -1, ""
    for part in partitions:
        mountpoint = part.mountpoint
        if os.path.commonpath([mountpoint, target]) != mountpoint:
            continue
        if len(mountpoint) >= best:
            best, fstype = len(mountpoint), part.fstype
    return fstype


def _disk_record(device: str, mountpoint: str, fstype: str) -> DiskInfo:
    usage = psutil.disk_usage(mountpoint)
    inodes_total, inodes_used, inodes_free = _inodes(mountpoint)
    return DiskInfo(
        device=device,
        mountpoint=mountpoint,
        fstype=fstype,
        total_bytes=usage.total,
        free_bytes=usage.free,
        used_bytes=usage.used,
        used_percent=float(usage.percent),
        inodes_total=inodes_total,
        inodes_used=inodes_used,
        inodes_free=inodes_free,
    )


def collect_disk_info(path: str = "") -> DiskInfoResult:
    """
    Usage for one path, or for every mounted partition when `path` is empty.

    In the all-partitions case a partition whose usage query fails is
    skipped rather than failing the call.
    """
    if path:
        try:
            record = _disk_record("N/A", path, _fstype_for(path))
        except (OSError, psutil.Error) as exc:
            raise CollectionError(f"failed to get disk usage for {path}: {exc}") from exc
        return DiskInfoResult(disks=[record])

    try:
        partitions = psutil.disk_partitions(all=False)
    except (OSError, psutil.Error) as exc:
        raise CollectionError(f"failed to get disk partitions: {exc}") from exc

    disks: List[DiskInfo] = []
    for part in partitions:
        try:
            disks.append(_disk_record(part.device, part.mountpoint, part.fstype))
        except (OSError, psutil.Error) as exc:
            logger.debug("Skipping partition %s: %s", part.mountpoint, exc)
            continue
    return DiskInfoResult(disks=disks)
