"""
posix-system-mcp Platform Helpers
---------------------------------
Host facts psutil does not expose: OS release identity, host id,
virtualization detection and the /proc/cpuinfo model block.

Every helper degrades to an empty value on hosts where the source file is
missing or unreadable; none of them raise.
"""

import os
import sys
import logging
import platform as _platform
from pathlib import Path
from typing import Dict, Tuple

logger = logging.getLogger("PosixSystemMCP.Platform")

IS_WINDOWS = sys.platform == "win32"
IS_MACOS = sys.platform == "darwin"
IS_LINUX = sys.platform.startswith("linux")

_HOST_ID_PATHS = (
    Path("/sys/class/dmi/id/product_uuid"),
    Path("/etc/machine-id"),
    Path("/var/lib/dbus/machine-id"),
)
_CPUINFO_PATH = Path("/proc/cpuinfo")


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""


def os_name() -> str:
    """Lower-case OS name ("linux", "darwin", "windows", "freebsd")."""
    return _platform.system().lower()


def os_release() -> Dict[str, str]:
    """Return the freedesktop os-release fields, or {} when unavailable."""
    try:
        return dict(_platform.freedesktop_os_release())
    except (OSError, AttributeError):
        return {}


def platform_identity() -> Tuple[str, str, str]:
    """Return (platform, platform_family, platform_version)."""
    if IS_LINUX:
        release = os_release()
        platform_id = release.get("ID", "")
        family = release.get("ID_LIKE", "").split(" ")[0] or platform_id
        return platform_id, family, release.get("VERSION_ID", "")
    if IS_MACOS:
        return "darwin", "Standalone Workstation", _platform.mac_ver()[0]
    return _platform.system().lower(), "", _platform.version()


def host_id() -> str:
    """Stable host identifier: DMI product uuid, else machine-id."""
    for path in _HOST_ID_PATHS:
        value = _read_text(path).strip().lower()
        if value:
            return value
    return ""


def is_running_in_docker() -> bool:
    """Detect if we're running inside a Docker container."""
    if Path("/.dockerenv").exists():
        return True
    return "docker" in _read_text(Path("/proc/1/cgroup"))


def detect_virtualization() -> Tuple[str, str]:
    """
    Return (system, role) for the current host, e.g. ("docker", "guest").

    Empty strings when nothing is detected.
    """
    if not IS_LINUX:
        return "", ""
    if is_running_in_docker():
        return "docker", "guest"
    cgroup = _read_text(Path("/proc/1/cgroup"))
    if "lxc" in cgroup or "container=lxc" in _read_text(Path("/proc/1/environ")):
        return "lxc", "guest"
    if Path("/run/.containerenv").exists():
        return "podman", "guest"
    if Path("/proc/xen").exists():
        return "xen", "guest"
    if Path("/proc/vz").exists() and not Path("/proc/bc").exists():
        return "openvz", "guest"
    if Path("/sys/module/kvm").exists():
        return "kvm", "host"
    if "hypervisor" in read_cpuinfo().get("flags", ""):
        vendor = _read_text(Path("/sys/class/dmi/id/sys_vendor")).strip().lower()
        if "qemu" in vendor or "kvm" in vendor:
            return "kvm", "guest"
        if "vmware" in vendor:
            return "vmware", "guest"
        if "microsoft" in vendor:
            return "hyperv", "guest"
        return "", "guest"
    return "", ""


def read_cpuinfo() -> Dict[str, str]:
    """
    Return the first processor block of /proc/cpuinfo as a key/value dict.

    Keys are kept verbatim ("model name", "cpu family", "cpu MHz", ...).
    """
    info: Dict[str, str] = {}
    for line in _read_text(_CPUINFO_PATH).splitlines():
        if not line.strip():
            if info:
                break
            continue
        key, sep, value = line.partition(":")
        if sep:
            info.setdefault(key.strip(), value.strip())
    return info
