"""
hostfit CLI

Command-line report of the detected hardware.

Usage:
    # Human-readable report
    python -m hostfit hardware

    # Machine-readable report
    python -m hostfit hardware --json

    # Give up on any probe tool after 5 seconds
    python -m hostfit hardware --timeout 5
"""

import argparse
import json
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape

import config
from utils.exceptions import ConfigError
from utils.logging_config import setup_logging

console = Console()


def timeout_arg(value: str) -> float:
    """argparse type for --timeout, validated like HOSTFIT_PROBE_TIMEOUT."""
    try:
        seconds = config.parse_timeout(value, "--timeout")
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e))
    if seconds is None:
        raise argparse.ArgumentTypeError("--timeout needs a number of seconds")
    return seconds


def cmd_hardware(args: argparse.Namespace) -> int:
    """Show the hardware snapshot."""
    from .profiling import detect_system

    timeout: Optional[float] = args.timeout
    if timeout is None:
        try:
            timeout = config.probe_timeout()
        except ConfigError as e:
            console.print(f"[red]Error: {e}[/red]")
            return 2

    specs = detect_system(timeout=timeout)

    if args.json:
        print(json.dumps(specs.to_dict(), indent=2))
        return 0

    console.print("[cyan]System Specifications[/cyan]\n")
    cpu, total, available, backend, gpu = specs.summary_lines()
    for line in (cpu, total, available, backend):
        label, _, value = line.partition(": ")
        console.print(f"[bold]{label}:[/bold] {escape(value)}")
    label, _, value = gpu.partition(": ")
    style = "green" if specs.has_gpu else "yellow"
    console.print(f"[bold]{label}:[/bold] [{style}]{escape(value)}[/{style}]")
    console.print()
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="hostfit",
        description="Detect CPU, RAM and GPU capacity for local model inference",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log probe activity to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # hardware
    hw_parser = subparsers.add_parser("hardware", help="Show hardware snapshot")
    hw_parser.add_argument("--json", action="store_true", help="Print the snapshot as JSON")
    hw_parser.add_argument(
        "--timeout", "-t", type=timeout_arg, default=None, help="Seconds allowed per probe tool"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    config.validate_config()
    level = "DEBUG" if args.verbose or config.DEBUG else config.LOG_LEVEL
    setup_logging(level=level, log_dir=config.LOG_DIR)

    if args.command == "hardware":
        return cmd_hardware(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
