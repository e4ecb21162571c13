from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Iterable

from ..constants import RESERVE_TOKEN_SYMBOL
from ..domain import TokenBalance
from ..logger import get_logger

logger = get_logger(__name__)


def _to_decimal(value: object) -> Decimal | None:
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def eligible_tokens(
    balances: Iterable[TokenBalance],
    required_amount: Decimal | str | int,
    reserve_symbol: str = RESERVE_TOKEN_SYMBOL,
) -> list[TokenBalance]:
    """Return the tokens that can settle ``required_amount``, in input order.

    A token qualifies when it has a non-zero balance, is not the reserve
    token, and its balance is strictly greater than the required amount.
    ``required_amount`` is in tonnes, the unit TCO2 balances are held in.
    Comparisons use exact decimals.
    """
    required = _to_decimal(required_amount)
    if required is None or required <= 0:
        return []

    eligible: list[TokenBalance] = []
    for token in balances:
        balance = _to_decimal(token.balance)
        if balance is None:
            logger.warning(
                "Ignoring token %s (%s): unparseable balance %r",
                token.symbol,
                token.address,
                token.balance,
            )
            continue
        if balance == 0:
            continue
        if token.symbol == reserve_symbol:
            continue
        if balance > required:
            eligible.append(token)

    return eligible
