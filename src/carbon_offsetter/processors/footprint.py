from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from ..constants import KG_PER_TONNE, PER_TRANSACTION_EMISSIONS_KG, TONNES_QUANTUM
from ..domain import FootprintSnapshot, FormattedTransaction


def compute_footprint(
    transactions: Sequence[FormattedTransaction],
) -> FootprintSnapshot:
    """Derive gas totals and the emissions estimate for a batch.

    Gas counts every transaction. Emissions only count transactions that
    have not been offset yet, at a flat 0.00036 kg each.
    """
    overall_gas_used = sum(tx.gas_used for tx in transactions)
    unoffset_count = sum(1 for tx in transactions if not tx.offset)

    emissions_kg = PER_TRANSACTION_EMISSIONS_KG * unoffset_count
    emissions_tonnes = (emissions_kg / KG_PER_TONNE).quantize(
        TONNES_QUANTUM, rounding=ROUND_HALF_UP
    )

    return FootprintSnapshot(
        overall_gas_used=overall_gas_used,
        overall_emissions_kg=emissions_kg,
        overall_emissions_tonnes=emissions_tonnes,
        unoffset_count=unoffset_count,
    )
