"""
VRAM Estimation Table

Maps a free-text GPU name to a typical VRAM capacity in GiB. Used when a
tool reports no memory size, or one known to be truncated.

Entries are checked in order and the first substring hit wins, so every
variant token ("5070 ti", "7900 xtx") sits above its shorter base token.
"""

from typing import Tuple

VRAM_TABLE: Tuple[Tuple[str, float], ...] = (
    # NVIDIA RTX 50 series
    ("5090", 32.0),
    ("5080", 16.0),
    ("5070 ti", 16.0),
    ("5070", 12.0),
    ("5060 ti", 16.0),
    ("5060", 8.0),
    # NVIDIA RTX 40 series
    ("4090", 24.0),
    ("4080", 16.0),
    ("4070 ti super", 16.0),
    ("4070 ti", 12.0),
    ("4070", 12.0),
    ("4060 ti", 16.0),
    ("4060", 8.0),
    # NVIDIA RTX 30 series
    ("3090", 24.0),
    ("3080 ti", 12.0),
    ("3080", 10.0),
    ("3070", 8.0),
    ("3060 ti", 8.0),
    ("3060", 12.0),
    ("3050", 8.0),
    # NVIDIA RTX 20 / GTX 10 series
    ("2080 ti", 11.0),
    ("2080", 8.0),
    ("2070", 8.0),
    ("2060", 6.0),
    ("1080 ti", 11.0),
    ("1080", 8.0),
    ("1070", 8.0),
    ("1060", 6.0),
    # NVIDIA data center
    ("h200", 141.0),
    ("h100", 80.0),
    ("a100", 80.0),
    ("l40", 48.0),
    ("a10", 24.0),
    ("t4", 16.0),
    # NVIDIA workstation
    ("a6000", 48.0),
    ("a5000", 24.0),
    ("a4000", 16.0),
    # Intel Arc
    ("b580", 12.0),
    ("a770", 16.0),
    ("a750", 8.0),
    ("a380", 6.0),
    # AMD RX 9000 series
    ("9070 xt", 16.0),
    ("9070", 12.0),
    # AMD RX 7000 series
    ("7900 xtx", 24.0),
    ("7900 gre", 16.0),
    ("7900", 20.0),
    ("7800", 16.0),
    ("7700", 12.0),
    ("7600", 8.0),
    # AMD RX 6000 series
    ("6950", 16.0),
    ("6900", 16.0),
    ("6800", 16.0),
    ("6750", 12.0),
    ("6700", 12.0),
    ("6650", 8.0),
    ("6600", 8.0),
    ("6500", 4.0),
    # AMD RX 5000 series
    ("5700 xt", 8.0),
    ("5700", 8.0),
    ("5600", 6.0),
    ("5500", 4.0),
    # Generic fallbacks
    ("rtx", 8.0),
    ("gtx", 4.0),
    ("rx ", 8.0),
    ("radeon", 8.0),
)


def estimate_vram_from_name(name: str) -> float:
    """
    Estimate VRAM in GiB from a GPU model name.

    Args:
        name: Device name as reported by a vendor tool, lspci or WMI

    Returns:
        Typical capacity for the matched model, or 0.0 when unknown.
    """
    lower = " ".join(name.lower().split())
    for token, vram_gb in VRAM_TABLE:
        if token in lower:
            return vram_gb
    return 0.0
