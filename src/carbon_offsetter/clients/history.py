"""Transaction history provider: explorer records joined with on-chain offset status."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol

import backoff
from web3.exceptions import ProviderConnectionError, Web3Exception

from ..domain import RawTransaction, nonce_key
from ..errors import ProviderError, ProviderUnavailable
from ..logger import TRACE, get_logger
from .explorer import ExplorerClient, ExplorerTransaction
from .settlement import SettlementContract

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransactionHistory:
    """One fetched batch. ``truncated`` means older history was cut off."""

    transactions: list[RawTransaction]
    truncated: bool = False


class TransactionHistoryProvider(Protocol):
    async def fetch_transactions(self, address: str) -> TransactionHistory: ...


class ExplorerHistoryProvider:
    """Fetches outgoing transactions of an address with their offset status.

    Nonces are per sender, so only transactions sent *from* the address are
    kept. Offset status is read from ContractOffsetter's ``nonceStatus``.
    """

    def __init__(
        self,
        explorer: ExplorerClient,
        settlement: SettlementContract,
        *,
        max_concurrent_calls: int = 5,
    ):
        self.explorer = explorer
        self.settlement = settlement
        self._rpc_sem = asyncio.Semaphore(max_concurrent_calls)

    async def fetch_transactions(self, address: str) -> TransactionHistory:
        """Fetch the raw transaction batch for ``address``.

        Raises:
            ProviderError: If the explorer or the offset status reads fail
        """
        records = await asyncio.to_thread(self.explorer.fetch_transactions, address)

        outgoing = [
            record
            for record in records
            if str(record.get("from", "")).lower() == address.lower()
        ]
        logger.debug(
            "%d of %d explorer records were sent by %s",
            len(outgoing),
            len(records),
            address,
        )

        results = await asyncio.gather(
            *[self._offset_status(address, record) for record in outgoing],
            return_exceptions=True,
        )

        raw_transactions: list[RawTransaction] = []
        for record, result in zip(outgoing, results):
            if isinstance(result, BaseException):
                raise ProviderUnavailable(
                    f"Failed to read offset status for nonce {record.get('nonce')}: {result}"
                ) from result
            raw_transactions.append(
                RawTransaction(
                    hash=record.get("hash", ""),
                    gasUsed=record.get("gasUsed", ""),
                    nonce=record.get("nonce", ""),
                    isError=record.get("isError", "0"),
                    offsetStatus=result,
                )
            )

        truncated = len(records) >= self.explorer.max_records
        if truncated:
            logger.warning(
                "Explorer returned the maximum of %d records for %s; older history "
                "is not included and the footprint is a lower bound",
                self.explorer.max_records,
                address,
            )
        return TransactionHistory(transactions=raw_transactions, truncated=truncated)

    async def _offset_status(self, address: str, record: ExplorerTransaction) -> bool:
        nonce = str(record.get("nonce", "")).strip()
        if not nonce.isdigit():
            # Left for the formatter to drop as malformed.
            return False
        key = nonce_key(int(nonce))
        async with self._rpc_sem:
            logger.log(TRACE, "nonceStatus(%s, %s) for nonce %s", address, key, nonce)
            return await self._read_nonce_status(address, key)

    @backoff.on_exception(
        backoff.expo, ProviderConnectionError, max_time=30, jitter=backoff.full_jitter
    )
    async def _read_nonce_status(self, address: str, nonce: int) -> bool:
        try:
            return await self.settlement.nonce_status(address, nonce)
        except ProviderConnectionError:
            raise
        except (Web3Exception, ValueError) as e:
            raise ProviderError(f"nonceStatus({address}, {nonce}) failed: {e}") from e
