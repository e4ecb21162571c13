"""Application and view state containers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum

from .domain import EMPTY_FOOTPRINT, FootprintSnapshot, FormattedTransaction, TokenBalance
from .settings import OffsetterSettings


@dataclass
class AppState:
    """Container for application-wide settings and dependencies.

    Passed through the workflow to avoid global state and enable testing.
    """

    settings: OffsetterSettings
    logger: logging.Logger


class Phase(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    READY = "ready"
    SUBMITTING = "submitting"
    CONFIRMING = "confirming"
    SETTLED = "settled"
    FAILED = "failed"


@dataclass(frozen=True)
class ViewSnapshot:
    """Immutable view of the derived values for one inspected address.

    ``transactions`` is ``None`` until a fetch succeeds. ``history_truncated``
    is set when the provider returned a full page, in which case the
    footprint is a lower bound.
    """

    address: str | None = None
    phase: Phase = Phase.IDLE
    transactions: tuple[FormattedTransaction, ...] | None = None
    footprint: FootprintSnapshot = EMPTY_FOOTPRINT
    eligible_tokens: tuple[TokenBalance, ...] = ()
    selected_token: str = ""
    history_truncated: bool = False

    @property
    def transactions_loaded(self) -> bool:
        return self.transactions is not None

    @property
    def unoffset_nonces(self) -> tuple[int, ...]:
        if not self.transactions:
            return ()
        return tuple(
            dict.fromkeys(tx.nonce for tx in self.transactions if not tx.offset)
        )

    @property
    def selected_token_balance(self) -> TokenBalance | None:
        for token in self.eligible_tokens:
            if token.address.lower() == self.selected_token.lower():
                return token
        return None


class ViewState:
    """Holds the current ``ViewSnapshot``.

    Every write swaps the whole snapshot, so readers never see transactions
    paired with a footprint from another batch.
    """

    def __init__(self) -> None:
        self._snapshot = ViewSnapshot()

    @property
    def snapshot(self) -> ViewSnapshot:
        return self._snapshot

    def set_phase(self, phase: Phase) -> ViewSnapshot:
        self._snapshot = replace(self._snapshot, phase=phase)
        return self._snapshot

    def begin_fetch(self, address: str) -> ViewSnapshot:
        """Point the view at ``address``, keeping loaded data only for the same address."""
        if self._snapshot.address is not None and (
            self._snapshot.address.lower() != address.lower()
        ):
            self._snapshot = ViewSnapshot(address=address, phase=Phase.FETCHING)
        else:
            self._snapshot = replace(
                self._snapshot, address=address, phase=Phase.FETCHING
            )
        return self._snapshot

    def load(
        self,
        address: str,
        transactions: list[FormattedTransaction],
        footprint: FootprintSnapshot,
        eligible_tokens: list[TokenBalance],
        history_truncated: bool = False,
    ) -> ViewSnapshot:
        """Store a freshly computed batch and move to READY.

        The selected token survives a reload only while it is still eligible.
        """
        selected = self._snapshot.selected_token
        if selected and not any(
            token.address.lower() == selected.lower() for token in eligible_tokens
        ):
            selected = ""

        self._snapshot = ViewSnapshot(
            address=address,
            phase=Phase.READY,
            transactions=tuple(transactions),
            footprint=footprint,
            eligible_tokens=tuple(eligible_tokens),
            selected_token=selected,
            history_truncated=history_truncated,
        )
        return self._snapshot

    def clear(self, address: str | None) -> ViewSnapshot:
        """Drop all derived values and return to IDLE."""
        self._snapshot = ViewSnapshot(address=address, phase=Phase.IDLE)
        return self._snapshot

    def select_token(self, token_address: str) -> ViewSnapshot:
        self._snapshot = replace(self._snapshot, selected_token=token_address)
        return self._snapshot
