"""Byte-count to display-unit conversion.

Two unit families are supported:

- decimal: B, KB, MB, GB, TB (base 1000)
- binary:  B, KiB, MiB, GiB, TiB (base 1024)

A unit token is parsed once into a :class:`UnitSelection` and then applied
to every entry of a scan, so per-item conversion never re-parses strings.

Rounding: values in any unit other than ``B`` are rounded to two decimal
places with ``ROUND_HALF_UP`` on a ``Decimal``, which is round-half-away-
from-zero for the non-negative inputs accepted here. ``B`` values are the
exact integer byte count.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum, StrEnum
from typing import Final

from floorscan.core.errors import InvalidInputError, InvalidUnitError

__all__ = [
    "MEGABYTE",
    "Conversion",
    "DisplayUnit",
    "UnitFamily",
    "UnitSelection",
    "convert",
    "resolve_unit",
    "unit_index_for",
]

# Size threshold unit used by the minimum-size filter, independent of display unit
MEGABYTE: Final[int] = 1000**2

_TWO_PLACES: Final[Decimal] = Decimal("0.01")


class UnitFamily(StrEnum):
    """Unit family with its associated base."""

    DECIMAL = "decimal"
    BINARY = "binary"

    @property
    def base(self) -> int:
        return 1000 if self is UnitFamily.DECIMAL else 1024


class DisplayUnit(Enum):
    """Concrete display unit: symbol, owning family (None for B), and tier."""

    B = ("B", None, 0)
    KB = ("KB", UnitFamily.DECIMAL, 1)
    MB = ("MB", UnitFamily.DECIMAL, 2)
    GB = ("GB", UnitFamily.DECIMAL, 3)
    TB = ("TB", UnitFamily.DECIMAL, 4)
    KIB = ("KiB", UnitFamily.BINARY, 1)
    MIB = ("MiB", UnitFamily.BINARY, 2)
    GIB = ("GiB", UnitFamily.BINARY, 3)
    TIB = ("TiB", UnitFamily.BINARY, 4)

    def __init__(self, symbol: str, family: UnitFamily | None, tier: int) -> None:
        self.symbol: str = symbol
        self.family: UnitFamily | None = family
        self.tier: int = tier

    def belongs_to(self, family: UnitFamily) -> bool:
        return self.family is None or self.family is family

    def scale(self, family: UnitFamily) -> int:
        """Number of bytes in one of this unit."""
        return (self.family or family).base ** self.tier


UNITS_BY_FAMILY: Final[dict[UnitFamily, tuple[DisplayUnit, ...]]] = {
    UnitFamily.DECIMAL: (DisplayUnit.B, DisplayUnit.KB, DisplayUnit.MB, DisplayUnit.GB, DisplayUnit.TB),
    UnitFamily.BINARY: (DisplayUnit.B, DisplayUnit.KIB, DisplayUnit.MIB, DisplayUnit.GIB, DisplayUnit.TIB),
}

_UNITS_BY_TOKEN: Final[dict[str, DisplayUnit]] = {unit.symbol.lower(): unit for unit in DisplayUnit}

_AUTO_TOKENS: Final[dict[str, UnitFamily | None]] = {
    "auto": None,
    "auto-decimal": UnitFamily.DECIMAL,
    "auto-binary": UnitFamily.BINARY,
}


@dataclass(slots=True, frozen=True)
class UnitSelection:
    """Resolved unit request: a fixed unit, or auto-selection within a family."""

    family: UnitFamily
    unit: DisplayUnit | None = None

    @property
    def is_auto(self) -> bool:
        return self.unit is None

    def __str__(self) -> str:
        if self.unit is None:
            return f"auto-{self.family.value}"
        return self.unit.symbol


@dataclass(slots=True, frozen=True)
class Conversion:
    """Result of converting a byte count into a display unit."""

    value: Decimal | int
    unit: DisplayUnit

    @property
    def symbol(self) -> str:
        return self.unit.symbol


def _coerce_family(family: UnitFamily | str | None) -> UnitFamily | None:
    if family is None or isinstance(family, UnitFamily):
        return family
    try:
        return UnitFamily(family.lower())
    except ValueError as e:
        msg = f"Unknown unit family: {family!r} (expected 'decimal' or 'binary')"
        raise InvalidUnitError(msg, unit=family) from e


def resolve_unit(token: str, family: UnitFamily | str | None = None) -> UnitSelection:
    """Parse a unit token into a :class:`UnitSelection`.

    Args:
        token: Unit symbol (``B``, ``KB`` .. ``TiB``, case-insensitive) or one of
            ``auto``, ``auto-decimal``, ``auto-binary``
        family: Optional explicit family; must agree with the token

    Returns:
        Resolved unit selection

    Raises:
        InvalidUnitError: If the token is unknown or belongs to another family

    Examples:
        >>> resolve_unit("MiB").family
        <UnitFamily.BINARY: 'binary'>
        >>> resolve_unit("auto", "binary").is_auto
        True
    """
    explicit = _coerce_family(family)
    normalized = token.strip().lower()

    if normalized in _AUTO_TOKENS:
        implied = _AUTO_TOKENS[normalized]
        if implied is not None and explicit is not None and implied is not explicit:
            msg = f"Unit {token!r} conflicts with requested {explicit.value} family"
            raise InvalidUnitError(msg, unit=token)
        return UnitSelection(family=implied or explicit or UnitFamily.DECIMAL)

    unit = _UNITS_BY_TOKEN.get(normalized)
    if unit is None:
        known = ", ".join(u.symbol for u in DisplayUnit)
        msg = f"Unknown unit {token!r}. Expected one of: {known}, auto, auto-decimal, auto-binary"
        raise InvalidUnitError(msg, unit=token)

    resolved_family = explicit or unit.family or UnitFamily.DECIMAL
    if not unit.belongs_to(resolved_family):
        msg = f"Unit {unit.symbol!r} does not belong to the {resolved_family.value} family"
        raise InvalidUnitError(msg, unit=token)

    return UnitSelection(family=resolved_family, unit=unit)


def unit_index_for(size_bytes: int, family: UnitFamily) -> int:
    """Return the tier auto mode selects for ``size_bytes`` in ``family``.

    Walks upward while ``size_bytes >= base ** (index + 1)``, capped at the
    family's largest unit.
    """
    units = UNITS_BY_FAMILY[family]
    index = 0
    while index < len(units) - 1 and size_bytes >= family.base ** (index + 1):
        index += 1
    return index


def convert(
    size_bytes: int,
    unit: str | UnitSelection = "auto",
    *,
    family: UnitFamily | str | None = None,
) -> Conversion:
    """Convert a byte count into a value in the requested unit.

    Args:
        size_bytes: Byte count (must be non-negative)
        unit: Unit token or an already resolved selection
        family: Optional explicit family when ``unit`` is a token

    Returns:
        Conversion with the display value and the unit used

    Raises:
        InvalidInputError: If ``size_bytes`` is negative or not an integer
        InvalidUnitError: If the unit cannot be resolved

    Examples:
        >>> convert(1536, "KiB").value
        Decimal('1.50')
        >>> convert(999, "auto").symbol
        'B'
        >>> str(convert(2_500_000, "auto").value)
        '2.50'
    """
    if isinstance(size_bytes, bool) or not isinstance(size_bytes, int):
        msg = f"size_bytes must be an integer, got: {type(size_bytes).__name__}"
        raise InvalidInputError(msg)
    if size_bytes < 0:
        msg = f"size_bytes must be non-negative, got: {size_bytes}"
        raise InvalidInputError(msg, {"size_bytes": size_bytes})

    selection = unit if isinstance(unit, UnitSelection) else resolve_unit(unit, family)
    target = selection.unit or UNITS_BY_FAMILY[selection.family][unit_index_for(size_bytes, selection.family)]

    if target is DisplayUnit.B:
        return Conversion(value=size_bytes, unit=target)

    with localcontext() as ctx:
        # Wide enough for any 64-bit byte count plus two decimal places
        ctx.prec = 50
        value = (Decimal(size_bytes) / Decimal(target.scale(selection.family))).quantize(
            _TWO_PLACES, rounding=ROUND_HALF_UP
        )
    return Conversion(value=value, unit=target)
