"""Result type shared by every GPU probe."""

from dataclasses import dataclass
from typing import Optional

from .backends import Backend


@dataclass(frozen=True)
class DetectionRecord:
    """Outcome of a successful probe, or of the whole chain finding nothing.

    vram_gb is in GiB and summed across devices. 0.0 means a device exists
    but its memory size is unspecified; None means the size is unknown.
    When unified_memory is set, vram_gb is the total system RAM.
    """

    has_gpu: bool
    backend: Backend
    vram_gb: Optional[float] = None
    gpu_name: Optional[str] = None
    gpu_count: int = 0
    unified_memory: bool = False

    @classmethod
    def absent(cls, backend: Backend) -> "DetectionRecord":
        return cls(has_gpu=False, backend=backend)
