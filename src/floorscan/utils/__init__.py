"""Shared utility modules for logging and human-readable formatting."""

from floorscan.utils.formatting import format_elapsed, format_size
from floorscan.utils.logging import (
    configure_logging,
    get_scan_id,
    reset_scan_id,
    set_scan_id,
)

__all__ = [
    "configure_logging",
    "format_elapsed",
    "format_size",
    "get_scan_id",
    "reset_scan_id",
    "set_scan_id",
]
