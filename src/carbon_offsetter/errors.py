"""Error taxonomy for the footprint and offset workflow."""

from __future__ import annotations


class OffsetterError(Exception):
    """Base class for errors surfaced to the user as a notification."""

    retry_recommended: bool = False

    def __init__(self, message: str, retry_recommended: bool | None = None):
        super().__init__(message)
        if retry_recommended is not None:
            self.retry_recommended = retry_recommended


class ValidationError(OffsetterError):
    """A precondition was not met before submission."""


class ProviderError(OffsetterError):
    """The transaction history could not be fetched."""

    retry_recommended = True


class ProviderUnavailable(ProviderError):
    """The history provider could not be reached or returned garbage."""


class RateLimited(ProviderError):
    """The history provider rejected the request with a rate limit."""


class ContractError(OffsetterError):
    """The node rejected the call or the transaction reverted."""


class ConfirmationTimeout(OffsetterError):
    """No receipt was observed for a submitted transaction in time."""

    def __init__(self, tx_hash: str, timeout: float):
        super().__init__(
            f"Transaction {tx_hash} was not confirmed within {timeout:g}s. "
            "It may still be mined; reload the transactions to check."
        )
        self.tx_hash = tx_hash
        self.timeout = timeout


class MalformedRecord(OffsetterError):
    """A single provider record could not be normalized."""

    def __init__(self, message: str, record: object = None):
        super().__init__(message)
        self.record = record
