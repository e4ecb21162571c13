"""Normalization of raw provider records."""

from __future__ import annotations

from typing import Any, Iterable

from ..domain import FormattedTransaction, RawTransaction, TransactionStatus
from ..errors import MalformedRecord
from ..logger import get_logger

logger = get_logger(__name__)

_STATUS_BY_IS_ERROR = {
    "0": TransactionStatus.SUCCESS,
    "1": TransactionStatus.FAILURE,
}


def _parse_uint(value: Any, field: str) -> int:
    """Coerce a decimal or 0x-prefixed string (or int) to a non-negative int."""
    if isinstance(value, bool):
        raise MalformedRecord(f"{field} must be numeric, got {value!r}")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith("0x"):
                parsed = int(text, 16)
            elif text.isdigit():
                parsed = int(text)
            else:
                raise ValueError(text)
        except ValueError:
            raise MalformedRecord(f"{field} must be numeric, got {value!r}") from None
    else:
        raise MalformedRecord(f"{field} must be numeric, got {value!r}")

    if parsed < 0:
        raise MalformedRecord(f"{field} must be non-negative, got {value!r}")
    return parsed


def format_transaction(raw: RawTransaction) -> FormattedTransaction:
    """Normalize a single record.

    Raises:
        MalformedRecord: If the hash is missing or a numeric field is not numeric
    """
    tx_hash = raw.get("hash")
    if not isinstance(tx_hash, str) or not tx_hash.strip():
        raise MalformedRecord("transaction has no hash", record=raw)

    try:
        gas_used = _parse_uint(raw.get("gasUsed"), "gasUsed")
        nonce = _parse_uint(raw.get("nonce"), "nonce")
    except MalformedRecord as e:
        raise MalformedRecord(f"{tx_hash}: {e}", record=raw) from None

    is_error = str(raw.get("isError", "0") or "0").strip()
    status = _STATUS_BY_IS_ERROR.get(is_error)
    if status is None:
        raise MalformedRecord(
            f"{tx_hash}: unknown isError value {is_error!r}", record=raw
        )

    return FormattedTransaction(
        hash=tx_hash.strip(),
        gas_used=gas_used,
        nonce=nonce,
        status=status,
        offset=bool(raw.get("offsetStatus", False)),
    )


def format_transactions(
    raw_transactions: Iterable[RawTransaction],
) -> list[FormattedTransaction]:
    """Normalize a batch of provider records, preserving order.

    Malformed records (including repeated hashes) are dropped with a warning;
    the rest of the batch is kept.
    """
    formatted: list[FormattedTransaction] = []
    seen_hashes: set[str] = set()
    dropped = 0

    for index, raw in enumerate(raw_transactions):
        try:
            tx = format_transaction(raw)
            key = tx.hash.lower()
            if key in seen_hashes:
                raise MalformedRecord(f"duplicate transaction hash {tx.hash}", record=raw)
        except MalformedRecord as e:
            dropped += 1
            logger.warning("Dropping malformed transaction #%d: %s", index, e)
            continue

        seen_hashes.add(key)
        formatted.append(tx)

    if dropped:
        logger.info(
            "Formatted %d transactions (%d malformed dropped)", len(formatted), dropped
        )
    return formatted
