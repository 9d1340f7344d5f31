import psutil

from posix_system_mcp.core.errors import CollectionError
from posix_system_mcp.core.types import LoadAvgResult


def collect_load_average() -> LoadAvgResult:
    try:
        load1, load5, load15 = psutil.getloadavg()
    except (OSError, psutil.Error) as exc:
        raise CollectionError(f"failed to get load average: {exc}") from exc
    return LoadAvgResult(load1=load1, load5=load5, load15=load15)
