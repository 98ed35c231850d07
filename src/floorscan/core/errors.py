"""Error taxonomy for scan operations.

Validation failures on explicit inputs are raised to the caller. Filesystem
access problems during traversal are never raised; they are collected as
``AccessFailure`` records instead.
"""

from __future__ import annotations

from typing import Any


class FloorScanError(Exception):
    """Base exception for all floorscan errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:  # pyright: ignore[reportExplicitAny]
        """Initialize FloorScanError.

        Args:
            message: Error message
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.context: dict[str, Any] = context or {}  # pyright: ignore[reportExplicitAny]


class InvalidInputError(FloorScanError, ValueError):
    """Raised for invalid explicit inputs (negative sizes, bad floor, missing base path)."""


class InvalidUnitError(FloorScanError, ValueError):
    """Raised when a unit token is unknown or incompatible with the requested family."""

    def __init__(self, message: str, unit: str | None = None) -> None:
        """Initialize InvalidUnitError.

        Args:
            message: Error message
            unit: The offending unit token
        """
        super().__init__(message, {"unit": unit} if unit is not None else None)
        self.unit: str | None = unit
