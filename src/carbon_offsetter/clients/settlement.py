"""Web3 wrapper around the ContractOffsetter settlement contract."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress
from web3 import Web3
from web3.exceptions import TimeExhausted, Web3Exception
from web3.types import TxReceipt

from ..abi import load_contract_offsetter_abi
from ..domain import OffsetRequest
from ..errors import ConfirmationTimeout, ContractError
from ..logger import get_logger

logger = get_logger(__name__)


@dataclass
class TransactionHandle:
    """A submitted transaction whose receipt can be awaited."""

    tx_hash: str
    w3: Web3

    async def wait(self, timeout: float, poll_latency: float = 1.0) -> TxReceipt:
        """Wait for the receipt of this specific transaction.

        Raises:
            ConfirmationTimeout: If no receipt shows up within ``timeout``
            ContractError: If the transaction was mined but reverted
        """
        try:
            receipt = await asyncio.to_thread(
                self.w3.eth.wait_for_transaction_receipt,
                self.tx_hash,
                timeout=timeout,
                poll_latency=poll_latency,
            )
        except TimeExhausted as e:
            raise ConfirmationTimeout(self.tx_hash, timeout) from e

        if receipt.get("status") == 0:
            raise ContractError(f"Offset transaction {self.tx_hash} reverted")

        logger.debug(
            "Transaction %s confirmed in block %s",
            self.tx_hash,
            receipt.get("blockNumber"),
        )
        return receipt


class SettlementContract:
    """Reads offset status from, and submits offsets to, ContractOffsetter."""

    def __init__(self, w3: Web3, address: str, *, chain_id: int | None = None):
        self.w3 = w3
        self.chain_id = chain_id
        self.address: ChecksumAddress = Web3.to_checksum_address(address)
        self.contract = w3.eth.contract(
            address=self.address, abi=load_contract_offsetter_abi()
        )

    async def nonce_status(self, user: str, key: int) -> bool:
        """Return whether ``key`` of ``user`` has already been offset.

        ``key`` is the scaled form produced by ``domain.nonce_key``.
        """
        fn = self.contract.functions.nonceStatus(Web3.to_checksum_address(user), key)
        return bool(await asyncio.to_thread(fn.call))

    async def offset(
        self, request: OffsetRequest, signer: LocalAccount
    ) -> TransactionHandle:
        """Sign and broadcast an ``offset`` call.

        Raises:
            ContractError: If the node rejects the call (e.g. gas estimation revert)
        """
        token, amount, beneficiary, nonces = request.contract_args()
        logger.info(
            "Submitting offset of %s tonnes (%d units) of %s for %s covering %d nonces",
            request.amount_tonnes,
            amount,
            token,
            beneficiary,
            len(nonces),
        )

        def _send() -> str:
            tx_params: dict[str, Any] = {
                "from": signer.address,
                "nonce": self.w3.eth.get_transaction_count(signer.address, "pending"),
            }
            if self.chain_id is not None:
                tx_params["chainId"] = self.chain_id
            tx = self.contract.functions.offset(
                Web3.to_checksum_address(token),
                amount,
                Web3.to_checksum_address(beneficiary),
                nonces,
            ).build_transaction(tx_params)
            signed = signer.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
            return Web3.to_hex(tx_hash)

        try:
            tx_hash = await asyncio.to_thread(_send)
        except (Web3Exception, ValueError) as e:
            raise ContractError(str(e)) from e

        logger.info("Offset transaction sent: %s", tx_hash)
        return TransactionHandle(tx_hash=tx_hash, w3=self.w3)
