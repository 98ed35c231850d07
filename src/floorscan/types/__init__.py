"""Type definitions and protocols for floorscan.

This package provides:
- Data models (immutable dataclasses)
- Protocol definitions (structural subtyping interfaces)
"""

from floorscan.types.models import (
    AccessFailure,
    ControllerState,
    DisplayEntry,
    EntryKind,
    ScanTarget,
    SizedEntry,
)
from floorscan.types.protocols import (
    IOLoadSignal,
    ScanListener,
)

__all__ = [
    # Data models
    "AccessFailure",
    "ControllerState",
    "DisplayEntry",
    "EntryKind",
    "ScanTarget",
    "SizedEntry",
    # Protocols
    "IOLoadSignal",
    "ScanListener",
]
