"""
posix-system-mcp Core Types
---------------------------
Pydantic models for normalized tool arguments, telemetry records and the
dispatch envelope.

Records are frozen: a collector builds one per call and nothing downstream
mutates it. Field names are the JSON names clients see on the wire.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from posix_system_mcp.core.errors import ErrorKind


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- Normalized arguments ---

class ProcessSortKey(str, Enum):
    CPU = "cpu"
    MEMORY = "memory"
    PID = "pid"
    NAME = "name"


class NoArguments(_Frozen):
    pass


class CpuInfoArgs(_Frozen):
    per_cpu: bool = False
    interval_ms: int = Field(default=1000, ge=100, le=10000)


class DiskInfoArgs(_Frozen):
    path: str = ""


class NetworkInfoArgs(_Frozen):
    interface: str = ""


class ProcessInfoArgs(_Frozen):
    pid: int = Field(default=0, ge=0)
    name: str = ""
    limit: int = Field(default=10, ge=1, le=200)
    sort_by: ProcessSortKey = ProcessSortKey.CPU


# --- Telemetry records ---

class TemperatureStat(_Frozen):
    sensor_key: str
    temperature: float


class SystemInfo(_Frozen):
    hostname: str
    os: str
    platform: str
    platform_family: str
    platform_version: str
    kernel_version: str
    kernel_arch: str
    uptime_seconds: int
    boot_time: int
    processes: int
    host_id: str
    virtualization_system: Optional[str] = None
    virtualization_role: Optional[str] = None
    temperature: Optional[List[TemperatureStat]] = None


class CPUInfo(_Frozen):
    usage_percent: List[float]
    logical_count: int
    physical_count: int
    model_name: str
    family: str
    speed_mhz: float
    cache_size: int
    flags: Optional[List[str]] = None


class MemoryInfo(_Frozen):
    total_bytes: int
    available_bytes: int
    used_bytes: int
    used_percent: float
    free_bytes: int
    buffers_bytes: int
    cached_bytes: int
    swap_total_bytes: int
    swap_used_bytes: int
    swap_free_bytes: int


class DiskInfo(_Frozen):
    device: str
    mountpoint: str
    fstype: str
    total_bytes: int
    free_bytes: int
    used_bytes: int
    used_percent: float
    inodes_total: int
    inodes_used: int
    inodes_free: int


class DiskInfoResult(_Frozen):
    disks: List[DiskInfo] = Field(default_factory=list)


class NetworkInfo(_Frozen):
    interface: str
    bytes_sent: int
    bytes_recv: int
    packets_sent: int
    packets_recv: int
    errors_in: int
    errors_out: int
    drops_in: int
    drops_out: int


class NetworkInfoResult(_Frozen):
    interfaces: List[NetworkInfo] = Field(default_factory=list)


class ProcessInfo(_Frozen):
    pid: int
    name: str
    status: str
    cpu_percent: float
    memory_rss_bytes: int
    memory_vms_bytes: int
    memory_percent: float
    create_time: int  # epoch milliseconds
    num_threads: int
    username: Optional[str] = None
    cmdline: Optional[List[str]] = None


class ProcessInfoResult(_Frozen):
    processes: List[ProcessInfo] = Field(default_factory=list)
    count: int = 0


class LoadAvgResult(_Frozen):
    load1: float
    load5: float
    load15: float


# --- Dispatch envelope ---

class EnvelopeError(_Frozen):
    classification: ErrorKind
    message: str


class Envelope(_Frozen):
    """
    Uniform dispatch result. Exactly one of (message, payload) or error is set.
    """
    operation: str
    message: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    error: Optional[EnvelopeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, operation: str, message: str, record: BaseModel) -> "Envelope":
        return cls(
            operation=operation,
            message=message,
            payload=record.model_dump(mode="json", exclude_none=True),
        )

    @classmethod
    def failure(cls, operation: str, kind: ErrorKind, message: str) -> "Envelope":
        return cls(
            operation=operation,
            error=EnvelopeError(classification=kind, message=message),
        )
