"""
External command and sysfs helpers.

Every probe reads the outside world through these two functions. Both
collapse failures to None so that a missing tool, a nonzero exit status,
undecodable output and a tool that never found a device all look the same
to the caller.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

# Tool output is parsed as English text with "." decimals
_C_LOCALE = {"LC_ALL": "C", "LANG": "C"}


def run_command(args: List[str], timeout: Optional[float] = None) -> Optional[str]:
    """
    Run an external tool and return its stdout.

    Args:
        args: Command and arguments
        timeout: Seconds before the tool is abandoned; None waits forever

    Returns:
        Decoded stdout on exit status 0, otherwise None.
    """
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            timeout=timeout,
            env={**os.environ, **_C_LOCALE},
        )
    except FileNotFoundError:
        logger.debug(f"{args[0]} not found")
        return None
    except subprocess.TimeoutExpired:
        logger.warning(f"{args[0]} timed out after {timeout}s")
        return None
    except OSError as e:
        logger.debug(f"{args[0]} could not be started: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"{args[0]} exited with status {result.returncode}")
        return None

    try:
        return result.stdout.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug(f"{args[0]} produced non-UTF-8 output")
        return None


def read_sysfs(path: Path) -> Optional[str]:
    """Read a small attribute file, stripped; None if it cannot be read."""
    try:
        return path.read_text().strip()
    except (OSError, UnicodeDecodeError):
        return None
