"""Rich console rendering of a loaded view."""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..domain import FootprintSnapshot, FormattedTransaction, TokenBalance
from ..state import ViewSnapshot


def _truncate_hash(tx_hash: str) -> str:
    return tx_hash[:15] + "..."


def _format_gas(gas: int) -> str:
    return f"{gas:,} wei"


def build_footprint_table(footprint: FootprintSnapshot) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="green")
    table.add_row("Overall Gas Used (All transactions)", _format_gas(footprint.overall_gas_used))
    table.add_row("CO2 Left To Offset", f"{footprint.overall_emissions_kg.normalize():f} kg")
    table.add_row("Left To Offset", f"~ {footprint.emissions_tonnes_display} TCO2")
    return table


def build_transactions_table(
    transactions: tuple[FormattedTransaction, ...], explorer_url: str | None = None
) -> Table:
    table = Table(title="Transactions", header_style="bold", expand=False)
    table.add_column("Hash")
    table.add_column("Gas Used", justify="right")
    table.add_column("Nonce", justify="right")
    table.add_column("Transaction Status")
    table.add_column("Offset Status")

    for tx in transactions:
        hash_text = Text(_truncate_hash(tx.hash), style="cyan")
        if explorer_url:
            hash_text.stylize(f"link {explorer_url}/tx/{tx.hash}")
        table.add_row(
            hash_text,
            str(tx.gas_used),
            str(tx.nonce),
            tx.status.value,
            Text(str(tx.offset).lower(), style="green" if tx.offset else "red underline"),
        )
    return table


def build_tokens_table(tokens: tuple[TokenBalance, ...]) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Token", style="cyan")
    table.add_column("Details", style="dim")
    for token in tokens:
        table.add_row(token.symbol, f"{token.address} (You have {token.balance} deposited)")
    return table


def format_view(
    snapshot: ViewSnapshot,
    explorer_url: str | None = None,
    console: Console | None = None,
) -> None:
    """Print the footprint summary, eligible tokens and transaction table."""
    console = console or Console()

    if snapshot.transactions is None:
        console.print(f"No transactions loaded for {snapshot.address or '-'}.")
        return

    title = f"[bold]Offset - {snapshot.address}[/]"
    parts: list[Table | Text] = [build_footprint_table(snapshot.footprint)]
    if snapshot.history_truncated:
        parts.append(
            Text(
                "History truncated by the provider: figures are lower bounds.",
                style="yellow",
            )
        )
    console.print(Panel(Group(*parts), title=title, border_style="green"))

    if snapshot.eligible_tokens:
        console.print(
            Panel(
                build_tokens_table(snapshot.eligible_tokens),
                title="[bold]Tokens usable for offsetting[/]",
                border_style="blue",
            )
        )
    else:
        console.print("[dim]No tokens held that cover the current footprint.[/]")

    if snapshot.transactions:
        console.print(build_transactions_table(snapshot.transactions, explorer_url))
