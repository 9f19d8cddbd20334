"""
Hardware Detection

Builds a one-shot snapshot of the host's CPU, RAM and GPU for deciding
whether a model fits. Detection never fails: anything that cannot be read
falls back to a best-effort default.

Usage:
    from hostfit.profiling import detect_system

    specs = detect_system()
    print(f"{specs.cpu_name}: {specs.total_ram_gb:.1f} GB RAM, {specs.backend.label}")
    for line in specs.summary_lines():
        print(line)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from utils.logging_config import log_performance

from .backends import Backend, cpu_backend
from .host import DetectionContext, HostContext
from .memory import GIB, read_available, read_cpu, read_memory
from .probes import PROBE_CHAIN, Probe, run_probe_chain
from .records import DetectionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SystemSpecs:
    """Immutable hardware snapshot for the current process."""

    # Memory
    total_ram_gb: float
    available_ram_gb: float

    # CPU
    cpu_cores: int
    cpu_name: str

    # Accelerator
    has_gpu: bool
    backend: Backend
    gpu_vram_gb: Optional[float] = None
    gpu_name: Optional[str] = None
    gpu_count: int = 0
    unified_memory: bool = False

    @classmethod
    def from_record(
        cls,
        record: DetectionRecord,
        total_ram_gb: float,
        available_ram_gb: float,
        cpu_cores: int,
        cpu_name: str,
    ) -> "SystemSpecs":
        return cls(
            total_ram_gb=total_ram_gb,
            available_ram_gb=available_ram_gb,
            cpu_cores=cpu_cores,
            cpu_name=cpu_name,
            has_gpu=record.has_gpu,
            backend=record.backend,
            gpu_vram_gb=record.vram_gb,
            gpu_name=record.gpu_name,
            gpu_count=record.gpu_count,
            unified_memory=record.unified_memory,
        )

    def gpu_summary(self) -> str:
        """One line describing the accelerator, or its absence."""
        if not self.has_gpu:
            return "GPU: Not detected"

        label = self.gpu_name or "Unknown"
        vram = self.gpu_vram_gb
        if self.unified_memory:
            return f"GPU: {label} (unified memory, {vram or 0.0:.2f} GB shared)"
        if vram is None:
            return f"GPU: {label} (VRAM unknown)"
        if vram <= 0:
            return f"GPU: {label} (shared system memory)"
        if self.gpu_count > 1:
            return f"GPU: {label} x{self.gpu_count} ({vram:.2f} GB VRAM total)"
        return f"GPU: {label} ({vram:.2f} GB VRAM)"

    def summary_lines(self) -> List[str]:
        """Human-readable report: CPU, total RAM, available RAM, backend, GPU."""
        return [
            f"CPU: {self.cpu_name} ({self.cpu_cores} cores)",
            f"Total RAM: {self.total_ram_gb:.2f} GB",
            f"Available RAM: {self.available_ram_gb:.2f} GB",
            f"Backend: {self.backend.label}",
            self.gpu_summary(),
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "cpu": {
                "name": self.cpu_name,
                "cores": self.cpu_cores,
            },
            "memory": {
                "total_gb": self.total_ram_gb,
                "available_gb": self.available_ram_gb,
            },
            "gpu": {
                "detected": self.has_gpu,
                "name": self.gpu_name,
                "vram_gb": self.gpu_vram_gb,
                "count": self.gpu_count,
                "unified_memory": self.unified_memory,
            },
            "backend": self.backend.label,
        }


@log_performance()
def detect_system(
    timeout: Optional[float] = None,
    host: Optional[HostContext] = None,
) -> SystemSpecs:
    """
    Auto-detect CPU, memory and GPU.

    Args:
        timeout: Seconds allowed per external tool; None waits indefinitely
        host: Host facts to use instead of the running host's

    Returns:
        SystemSpecs with every field populated.
    """
    host = host or HostContext.current()

    reading = read_memory()
    available_bytes = min(read_available(reading, host, timeout=timeout), reading.total)
    total_ram_gb = reading.total / GIB
    available_ram_gb = max(available_bytes, 0) / GIB

    cpu_cores, cpu_name = read_cpu(host, timeout=timeout)

    ctx = DetectionContext(
        host=host,
        total_ram_gb=total_ram_gb,
        cpu_name=cpu_name,
        timeout=timeout,
    )
    record = detect_gpu(ctx)

    return SystemSpecs.from_record(
        record,
        total_ram_gb=total_ram_gb,
        available_ram_gb=available_ram_gb,
        cpu_cores=cpu_cores,
        cpu_name=cpu_name,
    )


def detect_gpu(ctx: DetectionContext, chain: Sequence[Probe] = PROBE_CHAIN) -> DetectionRecord:
    """Run the probe chain, falling back to a CPU-only backend."""
    record = run_probe_chain(ctx, chain)
    if record is not None:
        return record

    backend = cpu_backend(ctx.cpu_name, ctx.host.machine)
    logger.info(f"No GPU detected, using {backend.label}")
    return DetectionRecord.absent(backend)
