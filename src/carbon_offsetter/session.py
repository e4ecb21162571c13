"""Wallet/session context handed to the orchestrator."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .abi import load_erc20_abi
from .domain import TokenBalance
from .logger import get_logger
from .settings import OffsetterSettings
from .units import from_fixed_point

logger = get_logger(__name__)


@dataclass
class WalletSession:
    """Connected address, signing capability and token balances.

    ``signer`` is ``None`` for a read-only session. ``token_balances`` is a
    snapshot; the orchestrator replaces it after each offset attempt when
    given a ``refresh_balances`` loader.
    """

    connected_address: str | None = None
    signer: LocalAccount | None = None
    token_balances: list[TokenBalance] = field(default_factory=list)

    @classmethod
    def from_signer(
        cls, signer: LocalAccount, token_balances: list[TokenBalance] | None = None
    ) -> "WalletSession":
        return cls(
            connected_address=signer.address,
            signer=signer,
            token_balances=list(token_balances or []),
        )


async def fetch_token_balance(w3: Web3, token_address: str, owner: str) -> TokenBalance:
    """Read symbol, decimals and balance of ``owner`` for an ERC20 token."""
    checksum_token = Web3.to_checksum_address(token_address)
    contract = w3.eth.contract(address=checksum_token, abi=load_erc20_abi())

    symbol, decimals, raw_balance = await asyncio.gather(
        asyncio.to_thread(contract.functions.symbol().call),
        asyncio.to_thread(contract.functions.decimals().call),
        asyncio.to_thread(
            contract.functions.balanceOf(Web3.to_checksum_address(owner)).call
        ),
    )
    balance = from_fixed_point(int(raw_balance), int(decimals))
    return TokenBalance(
        address=checksum_token,
        symbol=str(symbol),
        balance=format(balance, "f"),
        decimals=int(decimals),
    )


async def fetch_token_balances(
    w3: Web3, token_addresses: list[str], owner: str
) -> list[TokenBalance]:
    """Fetch balances of ``owner`` for each configured credit token.

    Tokens whose reads fail are logged and skipped.
    """
    results = await asyncio.gather(
        *[fetch_token_balance(w3, address, owner) for address in token_addresses],
        return_exceptions=True,
    )

    balances: list[TokenBalance] = []
    for address, result in zip(token_addresses, results):
        if isinstance(result, Exception):
            logger.error("Failed to fetch balance of token %s: %s", address, result)
        elif isinstance(result, TokenBalance):
            balances.append(result)
    return balances


async def load_wallet_session(settings: OffsetterSettings, w3: Web3) -> WalletSession:
    """Build the session from configuration.

    Without a private key the session is disconnected: footprints can be
    inspected but offsets cannot be submitted.
    """
    if settings.private_key is None:
        logger.info("No private key configured; running without a connected wallet")
        return WalletSession()

    signer: LocalAccount = Account.from_key(settings.private_key.get_secret_value())
    logger.info("Connected wallet: %s", signer.address)

    balances = await fetch_token_balances(
        w3, settings.credit_token_addresses, signer.address
    )
    logger.debug("Loaded %d credit token balances", len(balances))
    return WalletSession.from_signer(signer, balances)
