"""18-decimal fixed-point arithmetic with explicit round-down semantics.

Every function operates on plain Python ints and rounds toward zero (all inputs
are non-negative, so ``//`` is floor == truncation). The truncation residue is
observable: reward-per-share values are always rounded in favour of the pool,
never the staker, so a ledger can under-distribute by a few base units but can
never over-distribute.
"""

from __future__ import annotations

from dataclasses import dataclass

DECIMALS: int = 18
WAD: int = 10**DECIMALS
BPS_DENOM: int = 10_000


def _require_uint(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def mul_div_down(a: int, b: int, denominator: int) -> int:
    """``floor(a * b / denominator)`` without intermediate rounding."""
    _require_uint("a", a)
    _require_uint("b", b)
    _require_uint("denominator", denominator)
    if denominator == 0:
        raise ZeroDivisionError("mul_div_down: zero denominator")
    return (a * b) // denominator


def wad_mul_down(a: int, b: int) -> int:
    return mul_div_down(a, b, WAD)


def wad_div_down(a: int, b: int) -> int:
    return mul_div_down(a, WAD, b)


def bps_of(amount: int, bps: int) -> int:
    """Basis-point share of *amount*, rounded down."""
    return mul_div_down(amount, bps, BPS_DENOM)


# -- Decimal strings ---------------------------------------------------------

def parse_units(value: str | int, decimals: int = DECIMALS) -> int:
    """Parse a decimal token amount (``"0.01"``, ``"1000"``, ``5``) into base units.

    Raises ValueError for negative values, malformed strings, or more fractional
    digits than *decimals* allows (no silent rounding).
    """
    if isinstance(value, bool):
        raise TypeError("value must be str or int, not bool")
    if isinstance(value, int):
        _require_uint("value", value)
        return value * 10**decimals
    if not isinstance(value, str):
        raise TypeError(f"value must be str or int, got {type(value).__name__}")

    text = value.strip()
    whole, sep, frac = text.partition(".")
    if not whole and not frac:
        raise ValueError(f"invalid decimal amount: {value!r}")
    if not whole:
        whole = "0"
    if not whole.isdecimal() or (sep and frac and not frac.isdecimal()):
        raise ValueError(f"invalid decimal amount: {value!r}")
    if len(frac) > decimals:
        raise ValueError(f"too many fractional digits for {decimals} decimals: {value!r}")
    return int(whole) * 10**decimals + int(frac.ljust(decimals, "0") or "0")


def format_units(value: int, decimals: int = DECIMALS) -> str:
    """Inverse of ``parse_units``: ``9999999999999999998400 -> "9999.9999999999999984"``."""
    _require_uint("value", value)
    whole, frac = divmod(value, 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0") or "0"
    return f"{whole}.{frac_str}"


# -- Fixed-point type --------------------------------------------------------

@dataclass(frozen=True, order=True)
class Wad:
    """Non-negative 18-decimal fixed-point number (``raw / 1e18``)."""

    raw: int = 0

    def __post_init__(self) -> None:
        _require_uint("raw", self.raw)

    @classmethod
    def ratio(cls, amount: int, total: int) -> "Wad":
        """``amount / total`` as a Wad, rounded down."""
        return cls(wad_div_down(amount, total))

    @classmethod
    def from_units(cls, value: str | int) -> "Wad":
        return cls(parse_units(value))

    def __add__(self, other: "Wad") -> "Wad":
        if not isinstance(other, Wad):
            return NotImplemented
        return Wad(self.raw + other.raw)

    def __sub__(self, other: "Wad") -> "Wad":
        if not isinstance(other, Wad):
            return NotImplemented
        if other.raw > self.raw:
            raise ValueError(f"Wad underflow: {self.raw} - {other.raw}")
        return Wad(self.raw - other.raw)

    def mul_amount(self, amount: int) -> int:
        """``amount * self``, rounded down to base units."""
        return wad_mul_down(amount, self.raw)

    def __str__(self) -> str:
        return format_units(self.raw)


ZERO = Wad(0)
