"""Polygonscan (Etherscan-compatible) client for an address' transaction list."""

from __future__ import annotations

from typing import Any, TypedDict

import backoff
import requests

from ..constants import PROVIDER_MAX_RECORDS
from ..errors import ProviderUnavailable, RateLimited
from ..logger import get_logger

logger = get_logger(__name__)

NO_RECORDS_MESSAGES = {"no transactions found", "no records found"}


# Raw txlist entry. Only the fields used downstream are listed.
ExplorerTransaction = TypedDict(
    "ExplorerTransaction",
    {
        "blockNumber": str,
        "hash": str,
        "nonce": str,
        "from": str,
        "to": str,
        "gasUsed": str,
        "isError": str,
    },
    total=False,
)


class ExplorerResponse(TypedDict):
    status: str
    message: str
    result: list[ExplorerTransaction] | str


class ExplorerClient:
    """Client for the ``account/txlist`` endpoint.

    A single page of up to ``max_records`` (10,000) entries is requested; the
    API does not serve older history beyond that window.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None = None,
        *,
        max_records: int = PROVIDER_MAX_RECORDS,
        request_timeout: int = 15,
    ):
        self._api_url = api_url
        self._api_key = api_key
        self._max_records = max(1, min(max_records, PROVIDER_MAX_RECORDS))
        self._request_timeout = request_timeout
        self._session = requests.Session()

    @property
    def max_records(self) -> int:
        return self._max_records

    def fetch_transactions(self, address: str) -> list[ExplorerTransaction]:
        """Fetch the transaction list of ``address`` (oldest first).

        Raises:
            RateLimited: If the API keeps rate limiting after retries
            ProviderUnavailable: If the API is unreachable or returns an error
        """
        try:
            payload = self._call(address)
        except requests.RequestException as e:
            raise ProviderUnavailable(
                f"Transaction history provider unavailable: {e}"
            ) from e

        result = self._check_payload(payload)
        logger.debug("Explorer returned %d transactions for %s", len(result), address)
        return result

    @backoff.on_exception(
        backoff.expo,
        (requests.RequestException, RateLimited),
        max_time=30,
        jitter=backoff.full_jitter,
    )
    def _call(self, address: str) -> ExplorerResponse:
        params: dict[str, Any] = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": 0,
            "endblock": 99999999,
            "page": 1,
            "offset": self._max_records,
            "sort": "asc",
        }
        if self._api_key:
            params["apikey"] = self._api_key

        response = self._session.get(
            self._api_url,
            params=params,
            timeout=self._request_timeout,
        )
        if response.status_code == 429:
            raise RateLimited("Transaction history provider rate limit reached")
        response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderUnavailable("Unexpected explorer payload format") from e
        if not isinstance(payload, dict):
            raise ProviderUnavailable("Unexpected explorer payload format")

        result = payload.get("result", "")
        if isinstance(result, str) and "rate limit" in result.lower():
            raise RateLimited(result)

        return payload  # type: ignore[return-value]

    @staticmethod
    def _check_payload(payload: ExplorerResponse) -> list[ExplorerTransaction]:
        """Validate an API response and return its records."""
        status = str(payload.get("status", "")).strip()
        message = str(payload.get("message", "")).strip()
        result = payload.get("result")

        if status != "1":
            if isinstance(result, list) and not result:
                return []
            if message.lower() in NO_RECORDS_MESSAGES:
                return []
            detail = result if isinstance(result, str) and result else message
            if isinstance(detail, str) and "rate limit" in detail.lower():
                raise RateLimited(detail)
            raise ProviderUnavailable(f"Explorer error: {detail or 'unknown error'}")

        if not isinstance(result, list):
            raise ProviderUnavailable(f"Unexpected explorer result: {result!r}")
        return result
