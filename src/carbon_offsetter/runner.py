"""Wiring of settings into an orchestrator, and the CLI workflows."""

from __future__ import annotations

from functools import partial

from eth_typing import URI
from web3 import Web3

from .clients import ExplorerClient, ExplorerHistoryProvider, SettlementContract
from .notifications import ConsoleNotifier, Notifier
from .orchestrator import OffsetOrchestrator, OffsetOutcome, OutcomeStatus
from .report import format_view
from .session import fetch_token_balances, load_wallet_session
from .state import AppState, ViewSnapshot


async def build_orchestrator(
    state: AppState, notifier: Notifier | None = None
) -> OffsetOrchestrator:
    """Create the orchestrator and its collaborators from settings."""
    s = state.settings

    w3 = Web3(
        Web3.HTTPProvider(URI(s.rpc_url_resolved), request_kwargs={"timeout": 15})
    )
    settlement = SettlementContract(
        w3, s.contract_offsetter_address_required, chain_id=s.chain_id
    )
    explorer = ExplorerClient(
        s.explorer_api_url_resolved,
        s.explorer_api_key.get_secret_value() if s.explorer_api_key else None,
        max_records=s.provider_max_records,
        request_timeout=s.provider_request_timeout,
    )
    provider = ExplorerHistoryProvider(
        explorer, settlement, max_concurrent_calls=s.rpc_max_concurrent_calls
    )
    session = await load_wallet_session(s, w3)
    refresh_balances = None
    if session.connected_address:
        refresh_balances = partial(
            fetch_token_balances, w3, s.credit_token_addresses, session.connected_address
        )

    return OffsetOrchestrator(
        provider,
        settlement,
        session,
        notifier or ConsoleNotifier(),
        reserve_token_symbol=s.reserve_token_symbol,
        confirmation_timeout=s.confirmation_timeout,
        confirmation_poll_latency=s.confirmation_poll_latency,
        on_phase_change=lambda phase: state.logger.debug("Workflow phase: %s", phase.value),
        refresh_balances=refresh_balances,
    )


async def run_footprint(state: AppState, address: str) -> ViewSnapshot:
    """Load and print the footprint of ``address``."""
    orchestrator = await build_orchestrator(state)
    snapshot = await orchestrator.fetch(address)
    format_view(snapshot, state.settings.explorer_url)
    return snapshot


async def run_offset(state: AppState, address: str, token: str) -> OffsetOutcome:
    """Load ``address``, select ``token`` and offset the outstanding footprint."""
    log = state.logger
    orchestrator = await build_orchestrator(state)

    snapshot = await orchestrator.fetch(address)
    if not snapshot.transactions_loaded:
        return OffsetOutcome(OutcomeStatus.REJECTED, "No transactions were loaded.")

    snapshot = orchestrator.select_token(token)
    if token and not snapshot.selected_token:
        log.error("Cannot offset %s with token %s", address, token)
        format_view(snapshot, state.settings.explorer_url)
        return OffsetOutcome(OutcomeStatus.REJECTED, f"Token {token} is not eligible.")

    outcome = await orchestrator.submit()
    format_view(orchestrator.snapshot, state.settings.explorer_url)
    return outcome
