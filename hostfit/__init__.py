"""
hostfit: Local Hardware Snapshot for Model Sizing

Detects CPU, RAM and GPU accelerator capacity so callers can judge whether
a large model fits on this machine.

Main components:
- profiling: Memory/CPU metrics, GPU probe chain, VRAM estimation, backend selection
- cli: Command-line report of the detected hardware
"""

__version__ = "0.1.0"
