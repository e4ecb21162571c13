from __future__ import annotations

from decimal import ROUND_DOWN, Decimal

DEFAULT_TOKEN_DECIMALS = 18


def to_fixed_point(amount: Decimal | int | str, decimals: int = DEFAULT_TOKEN_DECIMALS) -> int:
    """Scale a decimal amount to an integer in the token's smallest unit.

    Args:
        amount: Human-readable amount (e.g. tonnes of TCO2).
        decimals: Decimal precision of the token.

    Returns:
        The amount as an integer with ``decimals`` implied decimal places.

    Notes:
        - Digits beyond ``decimals`` are truncated toward zero.
        - Works on ``Decimal`` throughout, so values such as 3.6e-7 keep
          full precision.
    """
    value = Decimal(str(amount)) if not isinstance(amount, Decimal) else amount
    if value < 0:
        raise ValueError(f"Fixed-point amounts must be non-negative, got {value}")
    scaled = (value * (Decimal(10) ** decimals)).to_integral_value(ROUND_DOWN)
    return int(scaled)


def from_fixed_point(value: int, decimals: int = DEFAULT_TOKEN_DECIMALS) -> Decimal:
    """Convert an integer in the token's smallest unit back to a Decimal."""
    if decimals == 0:
        return Decimal(value)
    return Decimal(value).scaleb(-decimals)
