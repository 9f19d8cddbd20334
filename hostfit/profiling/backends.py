"""
Inference Backends

The closed set of acceleration targets a snapshot can report, and the
keyword rules that map a device name (or its absence) onto one of them.
"""

import re
from enum import Enum


class Backend(Enum):
    """Acceleration backend used for inference on the detected hardware."""

    CUDA = "cuda"
    METAL = "metal"
    ROCM = "rocm"
    VULKAN = "vulkan"  # AMD/other GPUs without ROCm (e.g. Windows AMD, older AMD)
    SYCL = "sycl"  # Intel oneAPI
    CPU_ARM = "cpu_arm"
    CPU_X86 = "cpu_x86"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_cpu(self) -> bool:
        return self in (Backend.CPU_ARM, Backend.CPU_X86)


_LABELS = {
    Backend.CUDA: "CUDA",
    Backend.METAL: "Metal",
    Backend.ROCM: "ROCm",
    Backend.VULKAN: "Vulkan",
    Backend.SYCL: "SYCL",
    Backend.CPU_ARM: "CPU (ARM)",
    Backend.CPU_X86: "CPU (x86)",
}

_NVIDIA_RE = re.compile(r"nvidia|geforce|quadro|tesla|rtx")
# "ati" and "arc" need word boundaries: "Corporation" and "search" contain them
_AMD_RE = re.compile(r"amd|radeon|\bati\b")
_INTEL_RE = re.compile(r"intel|\barc\b")

ARM_CPU_MARKERS = ("apple", "arm", "aarch64", "snapdragon", "neoverse", "cortex")
ARM_MACHINES = ("arm64", "aarch64")


def infer_gpu_backend(name: str) -> Backend:
    """
    Infer the most likely inference backend from a GPU name string.

    Unrecognised names fall back to Vulkan, which runs on any vendor.
    """
    lower = name.lower()
    if _NVIDIA_RE.search(lower):
        return Backend.CUDA
    if _AMD_RE.search(lower):
        # ROCm on Windows is limited; Vulkan is the practical path for AMD here
        return Backend.VULKAN
    if _INTEL_RE.search(lower):
        return Backend.SYCL
    return Backend.VULKAN


def is_arm_machine(machine: str) -> bool:
    lower = machine.lower()
    return lower in ARM_MACHINES or lower.startswith("armv")


def cpu_backend(cpu_name: str, machine: str = "") -> Backend:
    """
    Pick a CPU-only backend when no accelerator was found.

    Args:
        cpu_name: CPU brand string
        machine: Architecture string as reported by platform.machine()

    Returns:
        Backend.CPU_ARM for ARM-family signals, Backend.CPU_X86 otherwise.
    """
    lower = cpu_name.lower()
    if any(marker in lower for marker in ARM_CPU_MARKERS) or is_arm_machine(machine):
        return Backend.CPU_ARM
    return Backend.CPU_X86
