"""Tests for the psutil-backed collectors (fakes plus live-host invariants)."""

from collections import namedtuple

import psutil
import pytest

from posix_system_mcp.collectors import cpu, disk, host, load, memory, network
from posix_system_mcp.core.errors import CollectionError

Partition = namedtuple("Partition", "device mountpoint fstype opts")
Usage = namedtuple("Usage", "total used free percent")
NicCounters = namedtuple(
    "NicCounters",
    "bytes_sent bytes_recv packets_sent packets_recv errin errout dropin dropout",
)
Freq = namedtuple("Freq", "current min max")


class TestDiskCollector:
    @pytest.fixture
    def fake_disks(self, monkeypatch):
        partitions = [
            Partition("/dev/sda1", "/", "ext4", "rw"),
            Partition("/dev/sdb1", "/broken", "xfs", "rw"),
            Partition("/dev/sdc1", "/data", "xfs", "rw"),
        ]

        def disk_usage(path):
            if path == "/broken":
                raise PermissionError(path)
            return Usage(total=1000, used=250, free=750, percent=25.0)

        monkeypatch.setattr(disk.psutil, "disk_partitions", lambda all=False: partitions)
        monkeypatch.setattr(disk.psutil, "disk_usage", disk_usage)
        monkeypatch.setattr(disk, "_inodes", lambda path: (100, 40, 60))
        return partitions

    def test_all_partitions_skips_failing_mounts(self, fake_disks):
        result = disk.collect_disk_info()

        assert [d.mountpoint for d in result.disks] == ["/", "/data"]
        first = result.disks[0]
        assert first.device == "/dev/sda1"
        assert first.fstype == "ext4"
        assert first.total_bytes == 1000
        assert first.used_percent == 25.0
        assert (first.inodes_total, first.inodes_used, first.inodes_free) == (100, 40, 60)

    def test_specific_path(self, fake_disks):
        result = disk.collect_disk_info("/data")

        assert len(result.disks) == 1
        assert result.disks[0].mountpoint == "/data"
        assert result.disks[0].device == "N/A"
        assert result.disks[0].fstype == "xfs"

    def test_path_inside_a_mount_takes_the_longest_prefix_fstype(self, fake_disks):
        result = disk.collect_disk_info("/data/backups/2024")

        record = result.disks[0]
        assert record.mountpoint == "/data/backups/2024"
        assert record.fstype == "xfs"
        assert disk.collect_disk_info("/home/user").disks[0].fstype == "ext4"

    def test_specific_path_failure(self, fake_disks):
        with pytest.raises(CollectionError, match="failed to get disk usage for /broken"):
            disk.collect_disk_info("/broken")

    def test_partition_listing_failure(self, monkeypatch):
        def boom(all=False):
            raise OSError("no mtab")

        monkeypatch.setattr(disk.psutil, "disk_partitions", boom)
        with pytest.raises(CollectionError, match="failed to get disk partitions"):
            disk.collect_disk_info()


class TestNetworkCollector:
    @pytest.fixture(autouse=True)
    def fake_nics(self, monkeypatch):
        counters = {
            "lo": NicCounters(10, 10, 1, 1, 0, 0, 0, 0),
            "eth0": NicCounters(500, 900, 5, 9, 1, 2, 3, 4),
        }
        monkeypatch.setattr(network.psutil, "net_io_counters", lambda pernic=False: counters)

    def test_empty_filter_returns_all(self):
        result = network.collect_network_info("")
        assert sorted(n.interface for n in result.interfaces) == ["eth0", "lo"]

    def test_exact_match(self):
        result = network.collect_network_info("eth0")
        assert len(result.interfaces) == 1
        nic = result.interfaces[0]
        assert nic.interface == "eth0"
        assert (nic.errors_in, nic.errors_out, nic.drops_in, nic.drops_out) == (1, 2, 3, 4)

    def test_filter_is_case_sensitive_and_exact(self):
        assert network.collect_network_info("ETH0").interfaces == []
        assert network.collect_network_info("eth").interfaces == []


class TestMemoryCollector:
    def test_missing_buffers_and_cached_default_to_zero(self, monkeypatch):
        VMem = namedtuple("VMem", "total available percent used free")
        Swap = namedtuple("Swap", "total used free percent sin sout")
        monkeypatch.setattr(memory.psutil, "virtual_memory", lambda: VMem(100, 60, 40.0, 40, 20))
        monkeypatch.setattr(memory.psutil, "swap_memory", lambda: Swap(10, 2, 8, 20.0, 0, 0))

        info = memory.collect_memory_info()

        assert info.total_bytes == 100
        assert info.buffers_bytes == 0
        assert info.cached_bytes == 0
        assert info.swap_free_bytes == 8

    def test_swap_failure(self, monkeypatch):
        def boom():
            raise OSError("no swap info")

        monkeypatch.setattr(memory.psutil, "swap_memory", boom)
        with pytest.raises(CollectionError, match="failed to get swap memory"):
            memory.collect_memory_info()


class TestCpuCollector:
    @pytest.fixture(autouse=True)
    def no_sampling_delay(self, monkeypatch):
        self.intervals = []

        def cpu_percent(interval=None, percpu=False):
            self.intervals.append(interval)
            return [10.0, 20.0, 30.0, 40.0] if percpu else 25.0

        monkeypatch.setattr(cpu.psutil, "cpu_percent", cpu_percent)
        monkeypatch.setattr(cpu.psutil, "cpu_count", lambda logical=True: 4 if logical else 2)
        monkeypatch.setattr(cpu.psutil, "cpu_freq", lambda: Freq(current=2400.0, min=800.0, max=3600.0))
        monkeypatch.setattr(cpu.host_platform, "read_cpuinfo", lambda: {
            "model name": "Test CPU",
            "cpu family": "6",
            "cpu MHz": "2400.000",
            "cache size": "8192 KB",
            "flags": "fpu vme sse2",
        })

    def test_aggregate_usage(self):
        info = cpu.collect_cpu_info(False, 250)

        assert info.usage_percent == [25.0]
        assert self.intervals == [0.25]
        assert info.logical_count == 4
        assert info.physical_count == 2
        assert info.model_name == "Test CPU"
        assert info.family == "6"
        assert info.speed_mhz == 3600.0
        assert info.cache_size == 8192
        assert info.flags == ["fpu", "vme", "sse2"]

    def test_per_cpu_usage_has_one_entry_per_logical_core(self):
        info = cpu.collect_cpu_info(True, 100)
        assert len(info.usage_percent) == info.logical_count

    def test_speed_falls_back_to_cpuinfo(self, monkeypatch):
        monkeypatch.setattr(cpu.psutil, "cpu_freq", lambda: None)
        assert cpu.collect_cpu_info(False, 100).speed_mhz == 2400.0

    def test_sampling_failure(self, monkeypatch):
        def boom(interval=None, percpu=False):
            raise OSError("no /proc/stat")

        monkeypatch.setattr(cpu.psutil, "cpu_percent", boom)
        with pytest.raises(CollectionError, match="failed to get CPU usage"):
            cpu.collect_cpu_info(False, 100)


class TestLoadCollector:
    def test_load_average(self, monkeypatch):
        monkeypatch.setattr(load.psutil, "getloadavg", lambda: (1.5, 1.0, 0.5))
        result = load.collect_load_average()
        assert (result.load1, result.load5, result.load15) == (1.5, 1.0, 0.5)

    def test_failure(self, monkeypatch):
        def boom():
            raise OSError("unsupported")

        monkeypatch.setattr(load.psutil, "getloadavg", boom)
        with pytest.raises(CollectionError, match="failed to get load average: unsupported"):
            load.collect_load_average()


class TestHostCollector:
    def test_host_failure(self, monkeypatch):
        def boom():
            raise psutil.AccessDenied()

        monkeypatch.setattr(host.psutil, "boot_time", boom)
        with pytest.raises(CollectionError, match="failed to get host info"):
            host.collect_system_info()

    def test_sensor_errors_are_ignored(self, monkeypatch):
        def broken_sensors():
            raise OSError("no hwmon")

        monkeypatch.setattr(host.psutil, "sensors_temperatures", broken_sensors, raising=False)
        info = host.collect_system_info()
        assert info.temperature is None

    def test_sensor_readings(self, monkeypatch):
        Sensor = namedtuple("Sensor", "label current high critical")
        monkeypatch.setattr(
            host.psutil,
            "sensors_temperatures",
            lambda: {"coretemp": [Sensor("Core 0", 45.0, 80.0, 100.0), Sensor("", 40.0, None, None)]},
            raising=False,
        )
        info = host.collect_system_info()
        assert [(t.sensor_key, t.temperature) for t in info.temperature] == [
            ("coretemp_core_0", 45.0),
            ("coretemp_input", 40.0),
        ]

    def test_live_host(self):
        info = host.collect_system_info()
        assert info.hostname
        assert info.processes > 0
        assert info.boot_time > 0
        assert info.uptime_seconds >= 0


def test_live_cpu_interval_is_respected():
    info = cpu.collect_cpu_info(True, 100)
    assert len(info.usage_percent) == info.logical_count
    assert info.physical_count >= 1
