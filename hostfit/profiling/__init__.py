"""
Hardware Profiling Module

Detects the host's CPU, memory and GPU accelerator in one pass.

Usage:
    from hostfit.profiling import detect_system

    specs = detect_system()
    print(f"Running on {specs.gpu_name or specs.cpu_name} with {specs.total_ram_gb:.0f}GB RAM")
"""

from .backends import Backend, cpu_backend, infer_gpu_backend
from .hardware import SystemSpecs, detect_gpu, detect_system
from .host import DetectionContext, HostContext, is_running_in_wsl
from .probes import PROBE_CHAIN, run_probe_chain
from .records import DetectionRecord
from .vram_table import estimate_vram_from_name

__all__ = [
    "detect_system",
    "detect_gpu",
    "run_probe_chain",
    "estimate_vram_from_name",
    "infer_gpu_backend",
    "cpu_backend",
    "is_running_in_wsl",
    "SystemSpecs",
    "DetectionRecord",
    "DetectionContext",
    "HostContext",
    "Backend",
    "PROBE_CHAIN",
]
