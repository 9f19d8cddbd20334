"""
GPU Probe Chain

Each probe inspects one vendor or platform and returns a DetectionRecord
when it recognises an accelerator, or None to let the next probe try. The
chain order is the priority order when a machine matches several probes:

1. nvidia-smi (NVIDIA, any OS, multi-GPU)
2. rocm-smi (AMD with ROCm)
3. /sys/class/drm with AMD vendor id (AMD without ROCm, Linux)
4. Win32_VideoController via PowerShell or wmic (any vendor, Windows)
5. /sys/class/drm with Intel vendor id, then lspci (Intel Arc)
6. system_profiler (Apple Silicon, unified memory)

Probes parse plain text from third-party tools. Output they cannot read
counts as "nothing found", never as an error.
"""

import logging
import re
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .backends import Backend, infer_gpu_backend
from .commands import read_sysfs, run_command
from .host import DetectionContext
from .records import DetectionRecord
from .vram_table import estimate_vram_from_name

logger = logging.getLogger(__name__)

Probe = Callable[[DetectionContext], Optional[DetectionRecord]]

GIB = 1024**3
MIB_PER_GIB = 1024
MIN_PLAUSIBLE_VRAM_GB = 0.1

AMD_VENDOR_ID = "0x1002"
INTEL_VENDOR_ID = "0x8086"

NVIDIA_SMI_ARGS = ["--query-gpu=memory.total,name", "--format=csv,noheader,nounits"]
WSL_NVIDIA_SMI = Path("/usr/lib/wsl/lib/nvidia-smi")
NVIDIA_NOT_AVAILABLE = ("[n/a]", "n/a", "[not supported]")

# Win32_VideoController.AdapterRAM is a uint32, so it saturates near 4 GiB
ADAPTER_RAM_CAP_GB = 4.1
VIRTUAL_ADAPTER_MARKERS = ("microsoft", "basic", "virtual")
POWERSHELL_QUERY = (
    "Get-CimInstance Win32_VideoController | Select-Object Name,AdapterRAM | "
    "ForEach-Object { $_.Name + '|' + $_.AdapterRAM }"
)
WMIC_ARGS = ["wmic", "path", "win32_VideoController", "get", "Name,AdapterRAM", "/format:csv"]

ROCM_NAME_KEYS = ("card series", "card model")

_LSPCI_DISPLAY_RE = re.compile(
    r"\b(?:vga compatible controller|3d controller|display controller)(?:\s*\[[0-9a-f]{4}\])?:\s*(.*)$",
    re.IGNORECASE,
)
_LSPCI_REV_RE = re.compile(r"\s*\(rev [0-9a-f]+\)\s*$", re.IGNORECASE)
_LSPCI_AMD_RE = re.compile(r"amd|\bati\b")
_LSPCI_ARC_RE = re.compile(r"\barc\b")
_AMD_VENDOR_TAGS = ("AMD/ATI", "AMD")
_BRACKETED_RE = re.compile(r"\[([^\]]+)\]")
_PCI_ID_RE = re.compile(r"^[0-9a-f]{4}(:[0-9a-f]{4})?$", re.IGNORECASE)
_DRM_CARD_RE = re.compile(r"^card(\d+)$")
_APPLE_GPU_MARKERS = ("apple m", "apple gpu")


# -- NVIDIA -------------------------------------------------------------------


def probe_nvidia_smi(ctx: DetectionContext) -> Optional[DetectionRecord]:
    """Detect NVIDIA GPUs via nvidia-smi, summing VRAM across devices."""
    output = run_command(["nvidia-smi", *NVIDIA_SMI_ARGS], timeout=ctx.timeout)
    if output is None and ctx.host.is_wsl and WSL_NVIDIA_SMI.exists():
        # WSL ships the Windows driver's nvidia-smi outside of PATH
        output = run_command([str(WSL_NVIDIA_SMI), *NVIDIA_SMI_ARGS], timeout=ctx.timeout)
    if output is None:
        return None
    return parse_nvidia_smi(output)


def parse_nvidia_smi(text: str) -> Optional[DetectionRecord]:
    """
    Parse `memory.total,name` CSV lines, one per GPU.

    Args:
        text: nvidia-smi output with units stripped (MiB)

    Returns:
        Aggregate record for all listed GPUs, or None if none parsed.
    """
    total_mib = 0.0
    count = 0
    first_name: Optional[str] = None

    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        vram_field, _, name = line.partition(",")
        vram_field = vram_field.strip()
        if vram_field.lower() in NVIDIA_NOT_AVAILABLE:
            vram_mib = 0.0
        else:
            try:
                vram_mib = float(vram_field)
            except ValueError:
                continue
        total_mib += vram_mib
        count += 1
        if first_name is None and name.strip():
            first_name = name.strip()

    if count == 0:
        return None

    vram_gb = total_mib / MIB_PER_GIB
    if vram_gb < MIN_PLAUSIBLE_VRAM_GB and first_name:
        vram_gb = estimate_vram_from_name(first_name)

    return DetectionRecord(
        has_gpu=True,
        backend=Backend.CUDA,
        vram_gb=vram_gb if vram_gb > 0 else None,
        gpu_name=first_name,
        gpu_count=count,
    )


# -- AMD ----------------------------------------------------------------------


def probe_rocm_smi(ctx: DetectionContext) -> Optional[DetectionRecord]:
    """Detect AMD GPUs via rocm-smi memory and product-name reports."""
    vram_text = run_command(["rocm-smi", "--showmeminfo", "vram"], timeout=ctx.timeout)
    if vram_text is None:
        return None

    total_bytes, count = parse_rocm_vram(vram_text)
    if count == 0:
        # rocm-smi ran, so a GPU exists even if its memory report was unreadable
        count = 1

    name_text = run_command(["rocm-smi", "--showproductname"], timeout=ctx.timeout)
    gpu_name = parse_rocm_product_name(name_text) if name_text else None

    vram_gb: Optional[float] = None
    if total_bytes > 0:
        vram_gb = total_bytes / GIB
    elif gpu_name:
        estimated = estimate_vram_from_name(gpu_name)
        vram_gb = estimated if estimated > 0 else None

    return DetectionRecord(
        has_gpu=True,
        backend=Backend.ROCM,
        vram_gb=vram_gb,
        gpu_name=gpu_name,
        gpu_count=count,
    )


def parse_rocm_vram(text: str) -> Tuple[int, int]:
    """Sum nonzero "Total" (not "Used") memory lines; returns (bytes, devices)."""
    total_bytes = 0
    count = 0
    for line in text.splitlines():
        lower = line.lower()
        if "total" not in lower or "used" in lower:
            continue
        numbers = [int(tok) for tok in line.split() if tok.isascii() and tok.isdigit()]
        if numbers and numbers[-1] > 0:
            total_bytes += numbers[-1]
            count += 1
    return total_bytes, count


def parse_rocm_product_name(text: str) -> Optional[str]:
    for line in text.splitlines():
        lower = line.lower()
        for key in ROCM_NAME_KEYS:
            idx = lower.find(key)
            if idx < 0:
                continue
            _, sep, value = line[idx + len(key):].partition(":")
            if sep and value.strip():
                return value.strip()
    return None


def probe_amd_sysfs(ctx: DetectionContext) -> Optional[DetectionRecord]:
    """Detect AMD GPUs from the kernel DRM tree; works without ROCm."""
    if not ctx.host.is_linux:
        return None

    for device in drm_devices(ctx.drm_root):
        if read_sysfs(device / "vendor") != AMD_VENDOR_ID:
            continue

        vram_gb = read_vram_total(device)
        lspci = run_command(["lspci"], timeout=ctx.timeout)
        gpu_name = parse_lspci_amd_name(lspci) if lspci else None

        if vram_gb is None and gpu_name:
            estimated = estimate_vram_from_name(gpu_name)
            vram_gb = estimated if estimated > 0 else None

        # Without ROCm, Vulkan is the most likely inference path
        return DetectionRecord(
            has_gpu=True,
            backend=Backend.VULKAN,
            vram_gb=vram_gb,
            gpu_name=gpu_name,
            gpu_count=1,
        )
    return None


def parse_lspci_amd_name(text: str) -> Optional[str]:
    """Pull the bracketed product name from an AMD display-class lspci line.

    Falls back to the whole device description when the line carries no
    product bracket, e.g. "Advanced Micro Devices, Inc. [AMD/ATI] Device 73bf".
    """
    for line in text.splitlines():
        match = _LSPCI_DISPLAY_RE.search(line)
        if match is None:
            continue
        desc = _LSPCI_REV_RE.sub("", match.group(1)).strip()
        if not _LSPCI_AMD_RE.search(desc.lower()):
            continue
        # `lspci -nn` adds [vendor:device] groups next to the name
        names = [
            group for group in _BRACKETED_RE.findall(desc)
            if not _PCI_ID_RE.match(group) and group.upper() not in _AMD_VENDOR_TAGS
        ]
        return names[-1] if names else desc
    return None


# -- Windows ------------------------------------------------------------------


def probe_windows_wmi(ctx: DetectionContext) -> Optional[DetectionRecord]:
    """Detect any vendor's GPU through Win32_VideoController."""
    if not ctx.host.is_windows:
        return None

    output = run_command(["powershell", "-NoProfile", "-Command", POWERSHELL_QUERY], timeout=ctx.timeout)
    if output is not None:
        return select_windows_adapter(parse_powershell_adapters(output))

    # wmic is deprecated but still present on older Windows builds
    output = run_command(WMIC_ARGS, timeout=ctx.timeout)
    if output is None:
        return None
    return select_windows_adapter(parse_wmic_adapters(output), count_devices=False)


def parse_powershell_adapters(text: str) -> List[Tuple[str, int]]:
    """Parse `Name|AdapterRAM` lines."""
    entries = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        name, _, ram = line.partition("|")
        entries.append((name.strip(), _to_int(ram)))
    return entries


def parse_wmic_adapters(text: str) -> List[Tuple[str, int]]:
    """Parse `Node,AdapterRAM,Name` CSV rows."""
    entries = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split(",")
        if len(parts) < 3 or parts[0].strip().lower() == "node":
            continue
        entries.append((",".join(parts[2:]).strip(), _to_int(parts[1])))
    return entries


def is_virtual_adapter(name: str) -> bool:
    lower = name.lower()
    return any(marker in lower for marker in VIRTUAL_ADAPTER_MARKERS)


def select_windows_adapter(
    entries: Sequence[Tuple[str, int]],
    count_devices: bool = True,
) -> Optional[DetectionRecord]:
    """
    Pick the adapter with the most AdapterRAM, skipping virtual adapters.

    Args:
        entries: (name, adapter RAM in bytes) pairs in enumeration order
        count_devices: Report every real adapter in gpu_count, else report 1

    Returns:
        Record for the best adapter, or None if only virtual ones exist.
    """
    best_name: Optional[str] = None
    best_ram = 0
    count = 0

    for name, ram in entries:
        if not name or is_virtual_adapter(name):
            continue
        count += 1
        if best_name is None or ram > best_ram:
            best_name = name
            best_ram = ram

    if best_name is None:
        return None

    vram_gb = best_ram / GIB
    estimated = estimate_vram_from_name(best_name)
    if vram_gb < MIN_PLAUSIBLE_VRAM_GB or (vram_gb <= ADAPTER_RAM_CAP_GB and estimated > ADAPTER_RAM_CAP_GB):
        if estimated > 0:
            vram_gb = estimated

    return DetectionRecord(
        has_gpu=True,
        backend=infer_gpu_backend(best_name),
        vram_gb=vram_gb if vram_gb > 0 else None,
        gpu_name=best_name,
        gpu_count=count if count_devices else 1,
    )


# -- Intel --------------------------------------------------------------------


def probe_intel_gpu(ctx: DetectionContext) -> Optional[DetectionRecord]:
    """Detect Intel Arc GPUs, discrete via sysfs VRAM or integrated via lspci.

    Integrated Arc parts share system RAM, so they report vram_gb = 0.0.
    """
    for device in drm_devices(ctx.drm_root):
        if read_sysfs(device / "vendor") != INTEL_VENDOR_ID:
            continue
        vram_gb = read_vram_total(device)
        if vram_gb:
            return _intel_record(vram_gb)

    lspci = run_command(["lspci"], timeout=ctx.timeout)
    if lspci and has_intel_arc(lspci):
        return _intel_record(0.0)
    return None


def has_intel_arc(text: str) -> bool:
    for line in text.splitlines():
        lower = line.lower()
        if "intel" in lower and _LSPCI_ARC_RE.search(lower):
            return True
    return False


def _intel_record(vram_gb: float) -> DetectionRecord:
    return DetectionRecord(
        has_gpu=True,
        backend=Backend.SYCL,
        vram_gb=vram_gb,
        gpu_name="Intel Arc",
        gpu_count=1,
    )


# -- Apple --------------------------------------------------------------------


def probe_apple_silicon(ctx: DetectionContext) -> Optional[DetectionRecord]:
    """Detect Apple Silicon; its GPU shares the whole RAM pool."""
    if not ctx.host.is_macos:
        return None

    output = run_command(["system_profiler", "SPDisplaysDataType"], timeout=ctx.timeout)
    if output is None or not is_apple_gpu(output):
        return None

    name = ctx.cpu_name if "apple" in ctx.cpu_name.lower() else "Apple Silicon"
    # Total, not available, RAM: pool capacity must not move with memory pressure
    return DetectionRecord(
        has_gpu=True,
        backend=Backend.METAL,
        vram_gb=ctx.total_ram_gb,
        gpu_name=name,
        gpu_count=1,
        unified_memory=True,
    )


def is_apple_gpu(text: str) -> bool:
    """Discrete AMD/Intel GPUs in older Macs do not match."""
    lower = text.lower()
    return any(marker in lower for marker in _APPLE_GPU_MARKERS)


# -- Shared sysfs helpers -----------------------------------------------------


def drm_devices(drm_root: Path) -> List[Path]:
    """`device` dirs of cardN entries in card-number order.

    Connector aliases like card0-DP-1 are skipped.
    """
    try:
        entries = list(drm_root.iterdir())
    except OSError:
        return []
    cards = []
    for entry in entries:
        match = _DRM_CARD_RE.match(entry.name)
        if match:
            cards.append((int(match.group(1)), entry / "device"))
    return [device for _, device in sorted(cards)]


def read_vram_total(device: Path) -> Optional[float]:
    """VRAM in GiB from mem_info_vram_total, or None if missing or zero."""
    raw = read_sysfs(device / "mem_info_vram_total")
    vram_bytes = _to_int(raw) if raw else 0
    return vram_bytes / GIB if vram_bytes > 0 else None


def _to_int(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return 0


# -- Chain --------------------------------------------------------------------

PROBE_CHAIN: Tuple[Probe, ...] = (
    probe_nvidia_smi,
    probe_rocm_smi,
    probe_amd_sysfs,
    probe_windows_wmi,
    probe_intel_gpu,
    probe_apple_silicon,
)


def run_probe_chain(ctx: DetectionContext, chain: Sequence[Probe] = PROBE_CHAIN) -> Optional[DetectionRecord]:
    """
    Run probes in priority order and return the first record found.

    Args:
        ctx: Host facts and limits shared by all probes
        chain: Probes to try, highest priority first

    Returns:
        The first probe's record, or None when every probe defers.
    """
    for probe in chain:
        try:
            record = probe(ctx)
        except Exception as e:
            logger.debug(f"{probe.__name__} failed: {e}")
            continue
        if record is not None:
            logger.info(f"{probe.__name__} detected {record.gpu_name or 'a GPU'} ({record.backend.label})")
            return record
        logger.debug(f"{probe.__name__} found nothing")
    return None
