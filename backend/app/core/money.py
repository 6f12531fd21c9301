"""Money Conversion — decimal major units <-> integer minor units.

Invariants:
    - to_minor_units rounds ROUND_HALF_UP to the smallest currency unit
    - from_minor_units always returns a Decimal with exactly 2 places
    - from_minor_units(to_minor_units(x)) == x for any x with <= 2 decimal places

Design Decisions:
    - Decimal, never float: 19.99 must survive the gateway round-trip exactly
    - Single 2-decimal currency (multi-currency is out of scope)
"""

from decimal import Decimal, ROUND_HALF_UP

from app.core.domain_types import MinorAmount

MINOR_UNITS_PER_MAJOR = 100
_CENT = Decimal("0.01")


def to_minor_units(amount: Decimal | int | str) -> MinorAmount:
    """Major units (19.99) -> minor units (1999)."""
    value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    return MinorAmount(int(value * MINOR_UNITS_PER_MAJOR))


def from_minor_units(amount_minor: int) -> Decimal:
    """Minor units (1999) -> major units (Decimal('19.99'))."""
    return (Decimal(amount_minor) / MINOR_UNITS_PER_MAJOR).quantize(_CENT)
