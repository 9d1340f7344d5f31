import psutil

from posix_system_mcp.core.errors import CollectionError
from posix_system_mcp.core.types import MemoryInfo


def collect_memory_info() -> MemoryInfo:
    try:
        vm = psutil.virtual_memory()
    except (OSError, psutil.Error) as exc:
        raise CollectionError(f"failed to get virtual memory: {exc}") from exc
    try:
        sw = psutil.swap_memory()
    except (OSError, psutil.Error) as exc:
        raise CollectionError(f"failed to get swap memory: {exc}") from exc

    # buffers/cached are Linux/BSD only
    return MemoryInfo(
        total_bytes=vm.total,
        available_bytes=vm.available,
        used_bytes=vm.used,
        used_percent=float(vm.percent),
        free_bytes=vm.free,
        buffers_bytes=getattr(vm, "buffers", 0),
        cached_bytes=getattr(vm, "cached", 0),
        swap_total_bytes=sw.total,
        swap_used_bytes=sw.used,
        swap_free_bytes=sw.free,
    )
