"""Domain models for footprint aggregation and offset settlement."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TypedDict

from ..constants import NONCE_DECIMALS, TONNES_DISPLAY_WIDTH
from ..units import DEFAULT_TOKEN_DECIMALS, to_fixed_point


class RawTransaction(TypedDict, total=False):
    """Transaction record as handed over by the history provider."""

    hash: str
    gasUsed: str
    nonce: str
    isError: str
    offsetStatus: bool


class TransactionStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class FormattedTransaction:
    """Normalized transaction record."""

    hash: str
    gas_used: int
    nonce: int
    status: TransactionStatus
    offset: bool


def format_tonnes(tonnes: Decimal, width: int = TONNES_DISPLAY_WIDTH) -> str:
    """Render tonnes as fixed-point text, truncated to ``width`` characters.

    Never falls back to scientific notation, so 3.6e-7 renders as
    "0.00000036".
    """
    if tonnes == 0:
        return "0"
    text = format(tonnes.normalize(), "f")
    return text[:width]


@dataclass(frozen=True)
class FootprintSnapshot:
    """Footprint derived from a batch of formatted transactions."""

    overall_gas_used: int
    overall_emissions_kg: Decimal
    overall_emissions_tonnes: Decimal
    unoffset_count: int = 0

    @property
    def emissions_tonnes_display(self) -> str:
        return format_tonnes(self.overall_emissions_tonnes)

    @property
    def has_outstanding_footprint(self) -> bool:
        return self.overall_emissions_tonnes > 0


EMPTY_FOOTPRINT = FootprintSnapshot(
    overall_gas_used=0,
    overall_emissions_kg=Decimal(0),
    overall_emissions_tonnes=Decimal(0),
)


@dataclass(frozen=True)
class TokenBalance:
    """Token held by the connected wallet. ``balance`` is a decimal string."""

    address: str
    symbol: str
    balance: str
    decimals: int = DEFAULT_TOKEN_DECIMALS


def nonce_key(nonce: int) -> int:
    """ContractOffsetter key for a transaction nonce.

    The contract stores offset nonces scaled by 10^18; both ``offset`` and
    ``nonceStatus`` must use this form.
    """
    return to_fixed_point(nonce, NONCE_DECIMALS)


@dataclass(frozen=True)
class OffsetRequest:
    """Arguments of a single ``offset`` call, built fresh per attempt."""

    token_address: str
    amount_tonnes: Decimal
    beneficiary_address: str
    nonces: tuple[int, ...]
    token_decimals: int = DEFAULT_TOKEN_DECIMALS

    @property
    def amount_fixed_point(self) -> int:
        return to_fixed_point(self.amount_tonnes, self.token_decimals)

    @property
    def nonces_fixed_point(self) -> list[int]:
        return [nonce_key(nonce) for nonce in self.nonces]

    def contract_args(self) -> tuple[str, int, str, list[int]]:
        """Positional arguments for ``ContractOffsetter.offset``."""
        return (
            self.token_address,
            self.amount_fixed_point,
            self.beneficiary_address,
            self.nonces_fixed_point,
        )


__all__ = [
    "EMPTY_FOOTPRINT",
    "FootprintSnapshot",
    "FormattedTransaction",
    "OffsetRequest",
    "RawTransaction",
    "TokenBalance",
    "TransactionStatus",
    "format_tonnes",
    "nonce_key",
]
