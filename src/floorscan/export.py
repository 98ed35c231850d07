"""Result sinks: CSV, JSON, and plain-text table serialization.

All writers emit the same three columns (Size, Unit, Path) and carry no
scan logic of their own.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path
from typing import TextIO

from floorscan.core.config import ExportFormat
from floorscan.types.models import DisplayEntry

__all__ = [
    "COLUMNS",
    "export_entries",
    "infer_format",
    "render_table",
    "to_string",
    "write_csv",
    "write_json",
    "write_text",
]

logger = logging.getLogger(__name__)

COLUMNS: tuple[str, str, str] = ("Size", "Unit", "Path")


def _json_size(size: Decimal | int) -> float | int:
    return size if isinstance(size, int) else float(size)


def write_csv(entries: Sequence[DisplayEntry], stream: TextIO) -> None:
    writer = csv.writer(stream)
    writer.writerow(COLUMNS)
    for entry in entries:
        writer.writerow((str(entry.size), entry.unit, entry.path))


def write_json(entries: Sequence[DisplayEntry], stream: TextIO) -> None:
    payload = [
        {"Size": _json_size(entry.size), "Unit": entry.unit, "Path": entry.path}
        for entry in entries
    ]
    json.dump(payload, stream, indent=2)
    stream.write("\n")


def render_table(entries: Sequence[DisplayEntry]) -> str:
    """Render entries as a right-aligned size table.

    Example:
        >>> print(render_table([DisplayEntry("/srv/a", Decimal("600.00"), "MB", 600_000_000)]))
          Size Unit Path
        ------ ---- ------
        600.00 MB   /srv/a
    """
    rows = [(str(entry.size), entry.unit, entry.path) for entry in entries]
    widths = [len(column) for column in COLUMNS]
    for row in rows:
        widths = [max(width, len(cell)) for width, cell in zip(widths, row, strict=True)]

    def line(size: str, unit: str, path: str) -> str:
        return f"{size:>{widths[0]}} {unit:<{widths[1]}} {path}".rstrip()

    lines = [line(*COLUMNS), line(*("-" * width for width in widths))]
    lines.extend(line(*row) for row in rows)
    return "\n".join(lines)


def write_text(entries: Sequence[DisplayEntry], stream: TextIO) -> None:
    stream.write(render_table(entries))
    stream.write("\n")


_WRITERS = {
    ExportFormat.CSV: write_csv,
    ExportFormat.JSON: write_json,
    ExportFormat.TEXT: write_text,
}


def infer_format(path: Path) -> ExportFormat:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return ExportFormat.CSV
    if suffix == ".json":
        return ExportFormat.JSON
    return ExportFormat.TEXT


def export_entries(
    entries: Sequence[DisplayEntry],
    destination: Path | TextIO,
    fmt: ExportFormat | None = None,
) -> None:
    """Serialize entries to a file path or an open text stream.

    Args:
        entries: Display entries to write
        destination: File path (created or overwritten) or text stream
        fmt: Output format; inferred from the file suffix when None, text
            for streams
    """
    if isinstance(destination, Path):
        resolved_fmt = fmt or infer_format(destination)
        # newline="" lets the csv module control line endings
        with destination.open("w", encoding="utf-8", newline="") as f:
            _WRITERS[resolved_fmt](entries, f)
        logger.info(
            "Results exported",
            extra={"path": str(destination), "format": resolved_fmt.value, "entries": len(entries)},
        )
        return
    _WRITERS[fmt or ExportFormat.TEXT](entries, destination)


def to_string(entries: Sequence[DisplayEntry], fmt: ExportFormat = ExportFormat.TEXT) -> str:
    buffer = io.StringIO()
    export_entries(entries, buffer, fmt)
    return buffer.getvalue()
