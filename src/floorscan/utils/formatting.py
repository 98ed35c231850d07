"""Pure formatting helpers for log and summary messages."""

from floorscan.core.units import UnitFamily, convert


def format_size(size_bytes: int, *, family: UnitFamily = UnitFamily.BINARY) -> str:
    """Render a byte count with an auto-selected unit.

    Examples:
        >>> format_size(512)
        '512 B'
        >>> format_size(1536)
        '1.50 KiB'
    """
    conversion = convert(size_bytes, "auto", family=family)
    return f"{conversion.value} {conversion.symbol}"


def format_elapsed(seconds: float) -> str:
    """Render an elapsed duration.

    Examples:
        >>> format_elapsed(0.25)
        '0.25s'
        >>> format_elapsed(95)
        '1m 35s'
        >>> format_elapsed(3725)
        '1h 2m'
    """
    if seconds < 0:
        msg = "seconds must be non-negative"
        raise ValueError(msg)
    if seconds < 60:
        return f"{seconds:.2f}s"

    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m {secs}s"
