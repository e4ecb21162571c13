from __future__ import annotations

from typing import Any

import pytest

from carbon_offsetter.domain import FormattedTransaction, RawTransaction, TransactionStatus
from carbon_offsetter.notifications import Notification, NotificationLevel

INSPECTED_ADDRESS = "0x1234567890123456789012345678901234567890"
WALLET_ADDRESS = "0x3234567890123456789012345678901234567890"
OFFSETTER_ADDRESS = "0x2234567890123456789012345678901234567890"
TCO2_ADDRESS = "0xaAaAaAaaAaAaAaaAaAAAAAAAAaaaAaAaAaaAaaAa"
BCT_ADDRESS = "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"


class RecordingNotifier:
    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def errors(self) -> list[str]:
        return [
            n.message for n in self.notifications if n.level is NotificationLevel.ERROR
        ]

    @property
    def successes(self) -> list[str]:
        return [
            n.message
            for n in self.notifications
            if n.level is NotificationLevel.SUCCESS
        ]


def raw_tx(
    nonce: int,
    gas_used: int | str = 21000,
    *,
    offset: bool = False,
    tx_hash: str | None = None,
    is_error: str = "0",
) -> RawTransaction:
    return RawTransaction(
        hash=tx_hash if tx_hash is not None else f"0x{nonce:064x}",
        gasUsed=str(gas_used),
        nonce=str(nonce),
        isError=is_error,
        offsetStatus=offset,
    )


def formatted_tx(
    nonce: int, gas_used: int = 21000, *, offset: bool = False
) -> FormattedTransaction:
    return FormattedTransaction(
        hash=f"0x{nonce:064x}",
        gas_used=gas_used,
        nonce=nonce,
        status=TransactionStatus.SUCCESS,
        offset=offset,
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def scenario_a_raw() -> list[RawTransaction]:
    """Five transactions, the first two already offset."""
    gas: list[Any] = [100, 200, 150, 50, 300]
    return [raw_tx(i, g, offset=i < 2) for i, g in enumerate(gas)]


@pytest.fixture(autouse=True)
def _isolated_settings_env(monkeypatch, tmp_path):
    """Keep local config files and CARBON_OFFSETTER_* variables out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("CARBON_OFFSETTER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
