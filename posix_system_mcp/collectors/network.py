import psutil

from posix_system_mcp.core.errors import CollectionError
from posix_system_mcp.core.types import NetworkInfo, NetworkInfoResult


def collect_network_info(interface: str = "") -> NetworkInfoResult:
    """Per-interface counters; `interface` is an exact, case-sensitive filter."""
    try:
        counters = psutil.net_io_counters(pernic=True)
    except (OSError, psutil.Error) as exc:
        raise CollectionError(f"failed to get network stats: {exc}") from exc

    return NetworkInfoResult(
        interfaces=[
            NetworkInfo(
                interface=name,
                bytes_sent=stats.bytes_sent,
                bytes_recv=stats.bytes_recv,
                packets_sent=stats.packets_sent,
                packets_recv=stats.packets_recv,
                errors_in=stats.errin,
                errors_out=stats.errout,
                drops_in=stats.dropin,
                drops_out=stats.dropout,
            )
            for name, stats in counters.items()
            if not interface or name == interface
        ]
    )
