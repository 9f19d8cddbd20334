"""
Host Context

Facts about the running host that probes branch on. They are read once and
handed to each probe explicitly instead of being looked up ad hoc.
"""

import functools
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DRM_ROOT = Path("/sys/class/drm")

_WSL_RELEASE_FILES = (Path("/proc/sys/kernel/osrelease"), Path("/proc/version"))


@functools.lru_cache(maxsize=None)
def is_running_in_wsl() -> bool:
    """Whether this Linux process runs under Windows Subsystem for Linux.

    Computed on first call and cached for the life of the process.
    """
    if platform.system() != "Linux":
        return False

    if os.environ.get("WSL_INTEROP") or os.environ.get("WSL_DISTRO_NAME"):
        return True

    for path in _WSL_RELEASE_FILES:
        try:
            if "microsoft" in path.read_text().lower():
                return True
        except OSError:
            continue
    return False


@dataclass(frozen=True)
class HostContext:
    """Operating system identity of the running host."""

    system: str  # platform.system(): "Linux", "Darwin", "Windows"
    machine: str  # platform.machine(): "x86_64", "arm64", ...
    is_wsl: bool = False

    @classmethod
    def current(cls) -> "HostContext":
        return cls(
            system=platform.system(),
            machine=platform.machine(),
            is_wsl=is_running_in_wsl(),
        )

    @property
    def is_linux(self) -> bool:
        return self.system == "Linux"

    @property
    def is_macos(self) -> bool:
        return self.system == "Darwin"

    @property
    def is_windows(self) -> bool:
        return self.system == "Windows"


@dataclass(frozen=True)
class DetectionContext:
    """Everything a GPU probe may consult besides the outside world."""

    host: HostContext
    total_ram_gb: float = 0.0
    cpu_name: str = ""
    timeout: Optional[float] = None
    drm_root: Path = DRM_ROOT
