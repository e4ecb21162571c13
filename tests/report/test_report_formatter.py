from __future__ import annotations

from decimal import Decimal

from rich.console import Console

from carbon_offsetter.domain import TokenBalance
from carbon_offsetter.processors import compute_footprint
from carbon_offsetter.report import format_view
from carbon_offsetter.report.formatter import build_footprint_table, build_transactions_table
from carbon_offsetter.state import Phase, ViewSnapshot

from conftest import INSPECTED_ADDRESS, TCO2_ADDRESS, formatted_tx


def _render(renderable) -> str:
    console = Console(record=True, width=200)
    console.print(renderable)
    return console.export_text()


def _snapshot(**overrides) -> ViewSnapshot:
    transactions = (formatted_tx(0, 100, offset=True), formatted_tx(1, 21000))
    values = {
        "address": INSPECTED_ADDRESS,
        "phase": Phase.READY,
        "transactions": transactions,
        "footprint": compute_footprint(list(transactions)),
    }
    values.update(overrides)
    return ViewSnapshot(**values)


def test_footprint_table_shows_gas_kg_and_tonnes():
    text = _render(build_footprint_table(compute_footprint([formatted_tx(0, 21000)])))

    assert "21,000 wei" in text
    assert "0.00036 kg" in text
    assert "~ 0.00000036 TCO2" in text
    assert "e-" not in text


def test_transactions_table_truncates_hashes():
    tx = formatted_tx(7, 50)
    text = _render(build_transactions_table((tx,), "https://polygonscan.com"))

    assert tx.hash[:15] + "..." in text
    assert tx.hash not in text
    assert "success" in text
    assert "false" in text


def test_format_view_prints_tokens_and_truncation_note():
    console = Console(record=True, width=200)
    snapshot = _snapshot(
        eligible_tokens=(TokenBalance(address=TCO2_ADDRESS, symbol="TCO2-VCS-1", balance="2.5"),),
        history_truncated=True,
    )

    format_view(snapshot, "https://polygonscan.com", console=console)
    text = console.export_text()

    assert f"Offset - {INSPECTED_ADDRESS}" in text
    assert "History truncated by the provider" in text
    assert "TCO2-VCS-1" in text
    assert "You have 2.5 deposited" in text
    assert "Transactions" in text


def test_format_view_without_transactions():
    console = Console(record=True, width=200)

    format_view(ViewSnapshot(address=INSPECTED_ADDRESS), console=console)

    assert f"No transactions loaded for {INSPECTED_ADDRESS}." in console.export_text()


def test_format_view_without_eligible_tokens():
    console = Console(record=True, width=200)
    snapshot = _snapshot(footprint=compute_footprint([]), transactions=())

    format_view(snapshot, console=console)
    text = console.export_text()

    assert "No tokens held that cover the current footprint." in text
    assert "~ 0 TCO2" in text
    assert snapshot.footprint.overall_emissions_kg == Decimal(0)
