"""Host resource statistics: CPU, memory, disk and network."""

from __future__ import annotations

import os
import platform
import time
from dataclasses import dataclass, field

import psutil

_START_TIME = time.monotonic()
_CPU_SAMPLE_SECONDS = 1.0
_HOST_ERRORS = (OSError, RuntimeError, psutil.Error)


@dataclass
class NetworkInterface:
    """Traffic counters of one network interface."""

    name: str
    bytes_sent: int = 0
    bytes_recv: int = 0
    packets_sent: int = 0
    packets_recv: int = 0
    errors: int = 0
    drops: int = 0
    speed: int = 0
    is_up: bool = True


@dataclass
class NetworkBandwidth:
    """Throughput of one interface over a sampling interval."""

    interface: str
    upload_mbps: float = 0.0
    download_mbps: float = 0.0


@dataclass
class CPUStats:
    usage: float = 0.0
    cores: int = 0
    model: str = ""
    load_avg: list[float] = field(default_factory=list)


@dataclass
class MemoryStats:
    total: int = 0
    available: int = 0
    used: int = 0
    used_percent: float = 0.0
    free: int = 0


@dataclass
class DiskStats:
    total: int = 0
    free: int = 0
    used: int = 0
    used_percent: float = 0.0


@dataclass
class NetworkStats:
    bytes_sent: int = 0
    bytes_recv: int = 0
    packets_sent: int = 0
    packets_recv: int = 0


@dataclass
class SystemStats:
    """A snapshot of the host's resource usage."""

    cpu: CPUStats = field(default_factory=CPUStats)
    memory: MemoryStats = field(default_factory=MemoryStats)
    disk: DiskStats = field(default_factory=DiskStats)
    network: NetworkStats = field(default_factory=NetworkStats)
    uptime: int = 0


def get_network_interfaces() -> list[NetworkInterface]:
    """Return the traffic counters of every network interface."""
    counters = psutil.net_io_counters(pernic=True)
    return [
        NetworkInterface(
            name=name,
            bytes_sent=stat.bytes_sent,
            bytes_recv=stat.bytes_recv,
            packets_sent=stat.packets_sent,
            packets_recv=stat.packets_recv,
            errors=stat.errin + stat.errout,
            drops=stat.dropin + stat.dropout,
            is_up=True,
        )
        for name, stat in counters.items()
    ]


def get_network_bandwidth(interval: float) -> list[NetworkBandwidth]:
    """Measure each interface's throughput in Mbit/s over ``interval`` seconds."""
    if interval <= 0:
        raise ValueError("interval must be positive")
    initial = psutil.net_io_counters(pernic=True)
    time.sleep(interval)
    final = psutil.net_io_counters(pernic=True)

    bandwidths = []
    for name, before in initial.items():
        after = final.get(name)
        if after is None:
            continue
        upload_bytes = after.bytes_sent - before.bytes_sent
        download_bytes = after.bytes_recv - before.bytes_recv
        bandwidths.append(
            NetworkBandwidth(
                interface=name,
                upload_mbps=upload_bytes * 8 / interval / 1_000_000,
                download_mbps=download_bytes * 8 / interval / 1_000_000,
            )
        )
    return bandwidths


def format_network_speed(bytes_per_second: float) -> str:
    """Format a byte rate with a binary unit prefix."""
    if bytes_per_second < 1024:
        return f"{bytes_per_second:.1f} B/s"
    if bytes_per_second < 1024**2:
        return f"{bytes_per_second / 1024:.1f} KB/s"
    if bytes_per_second < 1024**3:
        return f"{bytes_per_second / 1024**2:.1f} MB/s"
    return f"{bytes_per_second / 1024**3:.1f} GB/s"


def _cpu_model() -> str:
    try:
        with open("/proc/cpuinfo", encoding="utf-8", errors="replace") as cpuinfo:
            for line in cpuinfo:
                key, sep, value = line.partition(":")
                if sep and key.strip() == "model name":
                    return value.strip()
    except OSError:
        pass
    return platform.processor()


def get_system_stats() -> SystemStats:
    """Collect a snapshot of CPU, memory, root disk and network usage.

    Parts that cannot be read are left at zero.
    """
    stats = SystemStats()

    try:
        percents = psutil.cpu_percent(interval=_CPU_SAMPLE_SECONDS, percpu=False)
    except _HOST_ERRORS:
        percents = None
    if isinstance(percents, list):
        if percents:
            stats.cpu.usage = percents[0]
    elif percents is not None:
        stats.cpu.usage = percents
    stats.cpu.cores = os.cpu_count() or 0
    stats.cpu.model = _cpu_model()

    try:
        memory = psutil.virtual_memory()
    except _HOST_ERRORS:
        memory = None
    if memory is not None:
        stats.memory = MemoryStats(
            total=memory.total,
            available=memory.available,
            used=memory.used,
            used_percent=memory.percent,
            free=memory.free,
        )

    try:
        disk = psutil.disk_usage("/")
    except _HOST_ERRORS:
        disk = None
    if disk is not None:
        stats.disk = DiskStats(
            total=disk.total,
            free=disk.free,
            used=disk.used,
            used_percent=disk.percent,
        )

    try:
        net = psutil.net_io_counters(pernic=False)
    except _HOST_ERRORS:
        net = None
    if net is not None:
        stats.network = NetworkStats(
            bytes_sent=net.bytes_sent,
            bytes_recv=net.bytes_recv,
            packets_sent=net.packets_sent,
            packets_recv=net.packets_recv,
        )

    stats.uptime = int(time.monotonic() - _START_TIME)
    return stats


def format_bytes(num_bytes: int) -> str:
    """Format a byte count with a binary unit prefix."""
    unit = 1024
    if num_bytes < unit:
        return f"{num_bytes} B"
    div, exp = unit, 0
    remaining = num_bytes // unit
    while remaining >= unit:
        div *= unit
        exp += 1
        remaining //= unit
    return f"{num_bytes / div:.1f} {'KMGTPE'[exp]}B"


def format_uptime(seconds: int) -> str:
    """Format a duration in seconds as days, hours and minutes."""
    total_hours = seconds // 3600
    days = total_hours // 24
    hours = total_hours % 24
    minutes = (seconds // 60) % 60
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"