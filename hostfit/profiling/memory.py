"""
Memory and CPU Metrics

Reads total/available memory, CPU core count and CPU model from the OS.

psutil occasionally reports zero available memory (seen on newer macOS
releases). When that happens the available figure is rebuilt from other
counters, then from vm_stat, and finally from a fixed share of total.
"""

import logging
import platform
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import psutil

from .commands import read_sysfs, run_command
from .host import HostContext

logger = logging.getLogger(__name__)

UNKNOWN_CPU = "Unknown CPU"
GIB = 1024**3

DEFAULT_PAGE_SIZE = 16384  # Apple Silicon pages are 16 KiB
CONSERVATIVE_AVAILABLE_SHARE = 0.8

_PAGE_SIZE_RE = re.compile(r"page size of (\d+) bytes")
_VM_STAT_KEYS = ("Pages free", "Pages inactive", "Pages purgeable")


@dataclass(frozen=True)
class MemoryReading:
    """Raw memory counters in bytes."""

    total: int
    available: int
    used: int = 0


def read_memory() -> MemoryReading:
    """Read memory counters via psutil."""
    mem = psutil.virtual_memory()
    return MemoryReading(total=int(mem.total), available=int(mem.available), used=int(mem.used))


def read_cpu(host: HostContext, timeout: Optional[float] = None) -> Tuple[int, str]:
    """
    Read logical core count and CPU model string.

    Returns:
        (cores, name); name is "Unknown CPU" when no cores are reported or
        the model string cannot be found.
    """
    cores = psutil.cpu_count(logical=True) or 0
    if cores == 0:
        return 0, UNKNOWN_CPU
    return cores, _cpu_brand(host, timeout) or UNKNOWN_CPU


def _cpu_brand(host: HostContext, timeout: Optional[float]) -> str:
    if host.is_macos:
        output = run_command(["sysctl", "-n", "machdep.cpu.brand_string"], timeout=timeout)
        if output and output.strip():
            return output.strip()
    elif host.is_linux:
        cpuinfo = read_sysfs(Path("/proc/cpuinfo")) or ""
        for line in cpuinfo.splitlines():
            if line.startswith("model name") and ":" in line:
                return line.split(":", 1)[1].strip()
    return platform.processor().strip()


def available_memory_fallback(
    reading: MemoryReading,
    host: HostContext,
    timeout: Optional[float] = None,
) -> int:
    """
    Rebuild an implausible available-memory reading.

    Args:
        reading: Counters whose available value is not trusted
        host: Running host, used to decide whether vm_stat applies
        timeout: Seconds allowed for vm_stat

    Returns:
        Available bytes, always in (0, total] when total > 0.
    """
    total = reading.total
    if 0 < reading.used < total:
        logger.debug("Available memory rebuilt from total - used")
        return total - reading.used

    if host.is_macos:
        from_vm_stat = available_from_vm_stat(timeout=timeout)
        if from_vm_stat:
            logger.debug("Available memory rebuilt from vm_stat")
            return min(from_vm_stat, total)

    logger.info(f"Available memory unknown, assuming {CONSERVATIVE_AVAILABLE_SHARE:.0%} of total")
    return max(int(total * CONSERVATIVE_AVAILABLE_SHARE), 1)


def available_from_vm_stat(timeout: Optional[float] = None) -> Optional[int]:
    """Available bytes as (free + inactive + purgeable) pages from vm_stat."""
    output = run_command(["vm_stat"], timeout=timeout)
    if output is None:
        return None
    return parse_vm_stat(output)


def parse_vm_stat(text: str) -> Optional[int]:
    lines = text.splitlines()
    if not lines:
        return None

    match = _PAGE_SIZE_RE.search(lines[0])
    page_size = int(match.group(1)) if match else DEFAULT_PAGE_SIZE

    pages = 0
    for line in lines[1:]:
        key, _, value = line.partition(":")
        if key.strip() in _VM_STAT_KEYS:
            try:
                pages += int(value.strip().rstrip("."))
            except ValueError:
                continue

    available = pages * page_size
    return available if available > 0 else None


def read_available(reading: MemoryReading, host: HostContext, timeout: Optional[float] = None) -> int:
    """Available bytes, repaired when the OS reports zero with nonzero total."""
    if reading.available == 0 and reading.total > 0:
        return available_memory_fallback(reading, host, timeout=timeout)
    return reading.available
