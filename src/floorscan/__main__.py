"""Application entry point and CLI for floorscan.

Parses command-line arguments, layers them over an optional YAML
configuration file, configures logging, runs the scan, and hands the
results to the requested sink.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn

from floorscan.core.config import (
    ConcurrencyMode,
    ConfigurationError,
    ExportFormat,
    MainConfig,
    SortOrder,
    load_main_config,
)
from floorscan.core.depth_filter import DepthMode, ItemType
from floorscan.core.errors import FloorScanError
from floorscan.core.orchestrator import ScanOrchestrator, ScanResult
from floorscan.core.size_resolver import SizeMode
from floorscan.export import export_entries
from floorscan.utils.formatting import format_elapsed
from floorscan.utils.logging import configure_logging

__all__ = ["build_parser", "collect_overrides", "main"]

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUNTIME_ERROR = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Every option defaults to None so that only flags given explicitly
    override configuration file values.
    """
    parser = argparse.ArgumentParser(
        prog="floorscan",
        description="Report the cumulative size of entries at a given depth below a directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  floorscan /srv/data
  floorscan /srv/data --floor 2 --min-size-mb 500 --unit GB --sort desc
  floorscan /srv/data --item-type both --output sizes.csv
  floorscan /srv/data --mode fixed --threads 16
        """,
    )

    _ = parser.add_argument("path", type=Path, help="Base directory to scan")

    selection = parser.add_argument_group("selection")
    _ = selection.add_argument("--floor", "-f", type=int, help="Target depth below the base path (default: 1)")
    _ = selection.add_argument(
        "--item-type",
        choices=[item.value for item in ItemType],
        help="Entry kinds to report (default: directory)",
    )
    _ = selection.add_argument(
        "--depth-mode",
        choices=[mode.value for mode in DepthMode],
        help="Match entries at depth <= floor (at-most, default) or == floor (exact)",
    )
    _ = selection.add_argument(
        "--shallow",
        action="store_true",
        default=None,
        help="Only inspect immediate children during discovery",
    )
    _ = selection.add_argument("--min-size-mb", type=float, help="Minimum size in MB (default: 0)")

    display = parser.add_argument_group("display")
    _ = display.add_argument("--unit", "-u", help="B, KB..TB, KiB..TiB, auto, auto-decimal or auto-binary")
    _ = display.add_argument("--unit-family", choices=["decimal", "binary"], help="Explicit unit family")
    _ = display.add_argument("--sort", choices=[order.value for order in SortOrder], help="Order by size")
    _ = display.add_argument(
        "--size-mode",
        choices=[mode.value for mode in SizeMode],
        help="Apparent file size or allocated disk usage",
    )

    workers = parser.add_argument_group("concurrency")
    _ = workers.add_argument("--mode", choices=[mode.value for mode in ConcurrencyMode], help="Worker allocation")
    _ = workers.add_argument("--threads", type=int, help="Pool size for fixed mode")
    _ = workers.add_argument("--min-threads", type=int, help="Lower worker bound (adaptive)")
    _ = workers.add_argument("--max-threads", type=int, help="Upper worker bound (adaptive)")
    _ = workers.add_argument("--queue-high", type=float, help="Disk queue depth that removes a worker")
    _ = workers.add_argument("--queue-low", type=float, help="Disk queue depth that adds a worker")
    _ = workers.add_argument("--batch-size", type=int, help="Targets per batch")

    output = parser.add_argument_group("output")
    _ = output.add_argument("--output", "-o", type=Path, help="Export file (csv, json or text)")
    _ = output.add_argument("--format", choices=[fmt.value for fmt in ExportFormat], help="Export format")
    _ = output.add_argument("--config", "-c", type=Path, help="YAML configuration file")
    _ = output.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING)",
    )
    _ = output.add_argument("--log-file", type=Path, help="Also write logs to this file")

    return parser


def collect_overrides(args: argparse.Namespace) -> dict[str, object]:
    """Map parsed arguments onto the nested configuration layout."""
    # argparse boundary: values are checked by Pydantic afterwards
    values: dict[str, object] = vars(args)
    return {
        "scan": {
            "floor": values["floor"],
            "item_type": values["item_type"],
            "depth_mode": values["depth_mode"],
            "shallow": values["shallow"],
            "min_size_mb": values["min_size_mb"],
            "unit": values["unit"],
            "unit_family": values["unit_family"],
            "sort": values["sort"],
            "size_mode": values["size_mode"],
        },
        "concurrency": {
            "mode": values["mode"],
            "threads": values["threads"],
            "min_threads": values["min_threads"],
            "max_threads": values["max_threads"],
            "queue_high": values["queue_high"],
            "queue_low": values["queue_low"],
            "batch_size": values["batch_size"],
        },
        "output": {
            "path": values["output"],
            "format": values["format"],
        },
        "application": {
            "log_level": values["log_level"],
            "log_file": values["log_file"],
        },
    }


async def async_main(config: MainConfig, base_path: Path) -> ScanResult:
    """Run the scan with SIGINT/SIGTERM stopping before the next batch."""
    orchestrator = ScanOrchestrator(scan=config.scan, concurrency=config.concurrency)
    loop = asyncio.get_running_loop()
    handled: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, orchestrator.request_stop)
            handled.append(sig)
        except (NotImplementedError, RuntimeError):
            # Signal handlers are unavailable on some platforms and threads
            continue
    try:
        return await orchestrator.run(base_path)
    finally:
        for sig in handled:
            _ = loop.remove_signal_handler(sig)


def report(result: ScanResult, config: MainConfig) -> None:
    """Hand results to the configured sink and warn about notable conditions."""
    logger = logging.getLogger(__name__)
    if result.is_empty:
        logger.warning("No entries matched the given floor and filters", extra={"base_path": str(result.base_path)})
    if result.stopped:
        logger.warning(
            "Scan stopped early; results are partial",
            extra={"resolved": result.resolved, "candidates": result.candidates},
        )

    destination = config.output.path
    if destination is not None:
        export_entries(result.entries, destination, config.output.format)
    elif result.entries:
        export_entries(result.entries, sys.stdout, config.output.format)

    print(
        f"{len(result.entries)} entries, {result.failure_count} inaccessible item(s) skipped, "
        f"{format_elapsed(result.elapsed_seconds)}",
        file=sys.stderr,
    )


def main(argv: Sequence[str] | None = None) -> NoReturn:
    """Main entry point for floorscan.

    Exit Codes:
        0: Scan completed (including an empty result)
        1: Configuration or input error
        2: Runtime error
        130: Interrupted (including a scan stopped by SIGINT/SIGTERM)
    """
    args = build_parser().parse_args(argv)
    config_path: Path | None = args.config  # pyright: ignore[reportAny]  # argparse boundary
    base_path: Path = args.path  # pyright: ignore[reportAny]  # argparse boundary

    try:
        config = load_main_config(config_path, overrides=collect_overrides(args))
        configure_logging(
            log_level=config.application.log_level,
            log_file=config.application.log_file,
        )
        result = asyncio.run(async_main(config, base_path))
        report(result, config)

    except ConfigurationError as exc:
        print(f"Configuration error:\n{exc}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    except FloorScanError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)

    except OSError as exc:
        print(f"Runtime error: {exc}", file=sys.stderr)
        sys.exit(EXIT_RUNTIME_ERROR)

    sys.exit(EXIT_INTERRUPTED if result.stopped else EXIT_SUCCESS)


if __name__ == "__main__":
    main()
