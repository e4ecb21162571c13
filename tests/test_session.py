from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from pydantic import SecretStr

from carbon_offsetter.domain import TokenBalance
from carbon_offsetter.session import (
    WalletSession,
    fetch_token_balance,
    fetch_token_balances,
    load_wallet_session,
)
from carbon_offsetter.settings import OffsetterSettings

from conftest import BCT_ADDRESS, TCO2_ADDRESS, WALLET_ADDRESS

# Well-known anvil/hardhat development key #0.
DEV_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEV_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def _token_contract(symbol: str, decimals: int, balance: int) -> MagicMock:
    contract = MagicMock()
    contract.functions.symbol.return_value.call.return_value = symbol
    contract.functions.decimals.return_value.call.return_value = decimals
    contract.functions.balanceOf.return_value.call.return_value = balance
    return contract


def _w3(contracts: dict[str, MagicMock]) -> MagicMock:
    w3 = MagicMock()
    w3.eth.contract.side_effect = lambda address, abi: contracts[address]
    return w3


@pytest.mark.asyncio
async def test_fetch_token_balance_scales_by_decimals():
    w3 = _w3({TCO2_ADDRESS: _token_contract("TCO2-VCS-439-2008", 18, 1_500_000_000_000_000_000)})

    balance = await fetch_token_balance(w3, TCO2_ADDRESS.lower(), WALLET_ADDRESS)

    assert balance == TokenBalance(
        address=TCO2_ADDRESS, symbol="TCO2-VCS-439-2008", balance="1.500000000000000000", decimals=18
    )


@pytest.mark.asyncio
async def test_fetch_token_balance_passes_checksummed_owner():
    token = _token_contract("BCT", 6, 2_500_000)
    w3 = _w3({BCT_ADDRESS: token})

    balance = await fetch_token_balance(w3, BCT_ADDRESS, WALLET_ADDRESS.lower())

    assert balance.balance == "2.500000"
    assert balance.decimals == 6
    token.functions.balanceOf.assert_called_once_with(WALLET_ADDRESS)


@pytest.mark.asyncio
async def test_fetch_token_balances_skips_failed_reads():
    broken = _token_contract("TCO2", 18, 0)
    broken.functions.symbol.return_value.call.side_effect = ValueError("execution reverted")
    w3 = _w3({TCO2_ADDRESS: broken, BCT_ADDRESS: _token_contract("BCT", 18, 10**18)})

    balances = await fetch_token_balances(w3, [TCO2_ADDRESS, BCT_ADDRESS], WALLET_ADDRESS)

    assert [b.symbol for b in balances] == ["BCT"]


@pytest.mark.asyncio
async def test_load_wallet_session_without_key_is_disconnected():
    w3 = MagicMock()

    session = await load_wallet_session(OffsetterSettings(), w3)

    assert session == WalletSession()
    assert session.connected_address is None
    assert session.signer is None
    w3.eth.contract.assert_not_called()


@pytest.mark.asyncio
async def test_load_wallet_session_with_key_reads_balances():
    w3 = _w3({TCO2_ADDRESS: _token_contract("TCO2", 18, 3 * 10**18)})
    settings = OffsetterSettings(
        private_key=SecretStr(DEV_PRIVATE_KEY),
        credit_token_addresses=[TCO2_ADDRESS],
    )

    session = await load_wallet_session(settings, w3)

    assert session.connected_address == DEV_ADDRESS
    assert session.signer is not None
    assert session.signer.address == DEV_ADDRESS
    assert session.token_balances == [
        TokenBalance(address=TCO2_ADDRESS, symbol="TCO2", balance="3.000000000000000000")
    ]
