"""
Shared test fixtures for hostfit.

Provides common setup: host contexts for each OS, a fake /sys/class/drm
tree, and a scripted stand-in for external commands.
"""

from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

import pytest

from hostfit.profiling.host import DetectionContext, HostContext

LINUX = HostContext(system="Linux", machine="x86_64")
MACOS = HostContext(system="Darwin", machine="arm64")
WINDOWS = HostContext(system="Windows", machine="AMD64")


@pytest.fixture
def mock_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Set environment variables pointing to temporary directories."""
    monkeypatch.setenv("HOSTFIT_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("HOSTFIT_PROBE_TIMEOUT", raising=False)
    return tmp_path


@pytest.fixture
def drm_root(tmp_path: Path) -> Path:
    root = tmp_path / "drm"
    root.mkdir()
    return root


@pytest.fixture
def add_card(drm_root: Path) -> Callable[..., Path]:
    """Create /sys/class/drm/<name>/device with vendor and optional VRAM files."""

    def _add(name: str, vendor: str, vram_bytes: Optional[int] = None) -> Path:
        device = drm_root / name / "device"
        device.mkdir(parents=True)
        (device / "vendor").write_text(f"{vendor}\n")
        if vram_bytes is not None:
            (device / "mem_info_vram_total").write_text(f"{vram_bytes}\n")
        return device

    return _add


@pytest.fixture
def make_ctx(drm_root: Path) -> Callable[..., DetectionContext]:
    def _make(host: HostContext = LINUX, total_ram_gb: float = 32.0, cpu_name: str = "Test CPU") -> DetectionContext:
        return DetectionContext(host=host, total_ram_gb=total_ram_gb, cpu_name=cpu_name, drm_root=drm_root)

    return _make


class FakeCommands:
    """Replacement for run_command that answers from a table of outputs.

    Keys are the command name, or the full argument tuple for tools that
    are invoked more than once with different arguments.
    """

    def __init__(self, outputs: Dict[object, Optional[str]]):
        self.outputs = outputs
        self.calls = []

    def __call__(self, args, timeout=None):
        self.calls.append(tuple(args))
        key: Tuple[str, ...] = tuple(args)
        if key in self.outputs:
            return self.outputs[key]
        return self.outputs.get(args[0])

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)
