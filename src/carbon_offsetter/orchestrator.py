"""Footprint loading and offset settlement workflow."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from eth_account.signers.local import LocalAccount

from .clients.history import TransactionHistoryProvider
from .clients.settlement import SettlementContract, TransactionHandle
from .constants import RESERVE_TOKEN_SYMBOL
from .domain import OffsetRequest, TokenBalance
from .errors import OffsetterError, ValidationError
from .logger import get_logger
from .notifications import Notification, NotificationLevel, Notifier
from .processors import compute_footprint, eligible_tokens, format_transactions
from .session import WalletSession
from .state import Phase, ViewSnapshot, ViewState
from .units import DEFAULT_TOKEN_DECIMALS

logger = get_logger(__name__)

OFFSET_SUCCESS_MESSAGE = "You've successfully offset all your footprint 🌳"


class OutcomeStatus(str, Enum):
    SETTLED = "settled"
    FAILED = "failed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class OffsetOutcome:
    """Result of one ``submit()`` call."""

    status: OutcomeStatus
    message: str
    tx_hash: str | None = None
    request: OffsetRequest | None = None

    @property
    def settled(self) -> bool:
        return self.status is OutcomeStatus.SETTLED


class OffsetOrchestrator:
    """Drives IDLE → FETCHING → READY → SUBMITTING → CONFIRMING → SETTLED/FAILED.

    Only one workflow runs at a time. Every fetch is tagged with a sequence
    number and the address it targets; a response that is no longer the
    latest request for the view's address is discarded. After every offset
    attempt the address is re-fetched, so offset status always comes from
    the chain rather than from local bookkeeping.

    Errors never escape ``fetch()`` or ``submit()``: they are logged and
    turned into a single error notification.
    """

    def __init__(
        self,
        provider: TransactionHistoryProvider,
        settlement: SettlementContract,
        session: WalletSession,
        notifier: Notifier,
        *,
        view: ViewState | None = None,
        reserve_token_symbol: str = RESERVE_TOKEN_SYMBOL,
        confirmation_timeout: float = 180.0,
        confirmation_poll_latency: float = 1.0,
        on_phase_change: Callable[[Phase], None] | None = None,
        refresh_balances: Callable[[], Awaitable[list[TokenBalance]]] | None = None,
    ):
        self.provider = provider
        self.settlement = settlement
        self.session = session
        self.notifier = notifier
        self.view = view or ViewState()
        self.reserve_token_symbol = reserve_token_symbol
        self.confirmation_timeout = confirmation_timeout
        self.confirmation_poll_latency = confirmation_poll_latency
        self.on_phase_change = on_phase_change
        self.refresh_balances = refresh_balances

        self._fetch_seq = 0
        self._submitting = False

    @property
    def snapshot(self) -> ViewSnapshot:
        return self.view.snapshot

    def _transition(self, phase: Phase) -> None:
        self.view.set_phase(phase)
        logger.debug("Phase → %s (address=%s)", phase.value, self.snapshot.address)
        if self.on_phase_change is not None:
            self.on_phase_change(phase)

    def _notify_error(self, message: str) -> None:
        self.notifier.notify(Notification(NotificationLevel.ERROR, message))

    def _notify_success(self, message: str) -> None:
        self.notifier.notify(Notification(NotificationLevel.SUCCESS, message))

    def _is_stale(self, request_id: int, address: str) -> bool:
        current = self.snapshot.address
        return request_id != self._fetch_seq or (
            current is None or current.lower() != address.lower()
        )

    def _is_viewing(self, address: str) -> bool:
        current = self.snapshot.address
        return current is not None and current.lower() == address.lower()

    async def fetch(self, address: str) -> ViewSnapshot:
        """Load transactions for ``address`` and recompute everything derived.

        On provider failure the view is cleared back to IDLE and an error
        notification is raised. Superseded responses are dropped.
        """
        if self._submitting:
            self._notify_error("An offset is in progress; wait for it to finish.")
            return self.snapshot

        self._fetch_seq += 1
        request_id = self._fetch_seq
        self.view.begin_fetch(address)
        self._transition(Phase.FETCHING)
        logger.info("Loading transactions for %s", address)

        try:
            history = await self.provider.fetch_transactions(address)
        except Exception as e:
            if self._is_stale(request_id, address):
                logger.debug("Discarding failed stale fetch for %s: %s", address, e)
                return self.snapshot
            if isinstance(e, OffsetterError):
                logger.error("Failed to load transactions for %s: %s", address, e)
            else:
                logger.exception("Unexpected error loading transactions for %s", address)
            self.view.clear(address)
            self._transition(Phase.IDLE)
            self._notify_error(str(e) or e.__class__.__name__)
            return self.snapshot

        if self._is_stale(request_id, address):
            logger.info("Discarding stale transactions response for %s", address)
            return self.snapshot

        transactions = format_transactions(history.transactions)
        footprint = compute_footprint(transactions)
        # Token balances are denominated in tonnes of CO2, not kg.
        eligible = eligible_tokens(
            self.session.token_balances,
            footprint.overall_emissions_tonnes,
            self.reserve_token_symbol,
        )

        self.view.load(
            address,
            transactions,
            footprint,
            eligible,
            history_truncated=history.truncated,
        )
        self._transition(Phase.READY)
        logger.info(
            "Loaded %d transactions for %s: gas=%d, %s kg CO2 (%s TCO2) left to offset, %d eligible tokens",
            len(transactions),
            address,
            footprint.overall_gas_used,
            footprint.overall_emissions_kg,
            footprint.emissions_tonnes_display,
            len(eligible),
        )
        return self.snapshot

    def select_token(self, token_address: str) -> ViewSnapshot:
        """Select the settlement token. An empty string clears the selection.

        A token that is not eligible for the current footprint is refused with
        an error notification and the snapshot is returned unchanged.
        """
        if not token_address:
            return self.view.select_token("")

        for token in self.snapshot.eligible_tokens:
            if token.address.lower() == token_address.lower():
                logger.debug("Selected settlement token %s (%s)", token.symbol, token.address)
                return self.view.select_token(token.address)

        message = (
            f"Token {token_address} cannot be used: it is not held in a quantity "
            "that covers the current footprint."
        )
        logger.warning("Token selection refused: %s", message)
        self._notify_error(message)
        return self.snapshot

    def _build_request(
        self, snapshot: ViewSnapshot
    ) -> tuple[OffsetRequest, LocalAccount]:
        """Check submission preconditions in order and build the request.

        Raises:
            ValidationError: On the first precondition that does not hold
        """
        if not self.session.connected_address:
            raise ValidationError("Connect your wallet first.")

        signer = self.session.signer
        if signer is None:
            raise ValidationError("A signer is required to submit an offset.")

        if not snapshot.transactions_loaded or snapshot.address is None:
            raise ValidationError("No transactions were loaded.")

        if not snapshot.selected_token:
            raise ValidationError("You forgot to pick a token.")

        if not snapshot.footprint.has_outstanding_footprint:
            raise ValidationError("You need to accumulate more CO2 to offset.")

        token = snapshot.selected_token_balance
        request = OffsetRequest(
            token_address=snapshot.selected_token,
            amount_tonnes=snapshot.footprint.overall_emissions_tonnes,
            beneficiary_address=snapshot.address,
            nonces=snapshot.unoffset_nonces,
            token_decimals=token.decimals if token else DEFAULT_TOKEN_DECIMALS,
        )
        return request, signer

    async def submit(self) -> OffsetOutcome:
        """Offset the whole outstanding footprint with the selected token.

        Always re-fetches the inspected address afterwards, whatever the
        outcome, unless the view has moved on to another address.
        """
        if self._submitting:
            message = "An offset is already in progress."
            self._notify_error(message)
            return OffsetOutcome(OutcomeStatus.REJECTED, message)
        if self.snapshot.phase is Phase.FETCHING:
            message = "Transactions are still loading."
            self._notify_error(message)
            return OffsetOutcome(OutcomeStatus.REJECTED, message)

        self._submitting = True
        snapshot = self.snapshot
        address = snapshot.address
        request: OffsetRequest | None = None
        handle: TransactionHandle | None = None

        try:
            request, signer = self._build_request(snapshot)

            self._transition(Phase.SUBMITTING)
            handle = await self.settlement.offset(request, signer)

            self._transition(Phase.CONFIRMING)
            await handle.wait(
                self.confirmation_timeout, self.confirmation_poll_latency
            )

            self._transition(Phase.SETTLED)
            logger.info("Offset hash: %s", handle.tx_hash)
            self._notify_success(OFFSET_SUCCESS_MESSAGE)
            outcome = OffsetOutcome(
                OutcomeStatus.SETTLED, OFFSET_SUCCESS_MESSAGE, handle.tx_hash, request
            )
        except ValidationError as e:
            logger.warning("Offset not submitted: %s", e)
            self._notify_error(str(e))
            outcome = OffsetOutcome(OutcomeStatus.REJECTED, str(e), request=request)
        except Exception as e:
            if isinstance(e, OffsetterError):
                logger.error("Offset failed: %s", e)
            else:
                logger.exception("Unexpected error while offsetting")
            self._transition(Phase.FAILED)
            message = str(e) or e.__class__.__name__
            self._notify_error(message)
            outcome = OffsetOutcome(
                OutcomeStatus.FAILED,
                message,
                handle.tx_hash if handle else None,
                request,
            )
        finally:
            self._submitting = False

        if address is not None and self._is_viewing(address):
            await self._reload_balances()
            if self._is_viewing(address):
                await self.fetch(address)
        return outcome

    async def _reload_balances(self) -> None:
        """Re-read wallet balances so eligibility reflects tokens spent on-chain."""
        if self.refresh_balances is None:
            return
        try:
            self.session.token_balances = await self.refresh_balances()
        except Exception as e:
            logger.warning("Failed to refresh token balances, keeping previous ones: %s", e)
