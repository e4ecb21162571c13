"""CLI entrypoint for carbon-offsetter."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer

from .logger import setup_logging
from .orchestrator import OutcomeStatus
from .settings import Network, OffsetterSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Inspect the carbon footprint of an address and offset it with TCO2.",
)


def _build_logger() -> logging.Logger:
    return logging.getLogger("carbon_offsetter")


def _state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if not isinstance(state, AppState):
        raise typer.BadParameter("settings were not initialised")
    return state


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [carbon_offsetter] table).",
        ),
    ] = None,
    network: Annotated[
        Network | None,
        typer.Option("--network", "-n", help="Network to use (polygon, mumbai or amoy)."),
    ] = None,
    rpc_url: Annotated[
        str | None,
        typer.Option("--rpc-url", help="RPC endpoint; overrides the network default."),
    ] = None,
    contract_offsetter_address: Annotated[
        str | None,
        typer.Option("--contract-offsetter", help="ContractOffsetter address."),
    ] = None,
    confirmation_timeout: Annotated[
        float | None,
        typer.Option(
            "--confirmation-timeout",
            help="Seconds to wait for the offset transaction to be mined.",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Load configuration shared by all commands."""
    if config_path:
        os.environ["CARBON_OFFSETTER_CONFIG"] = str(config_path)

    init_kwargs: dict[str, Network | float | str] = {}
    if network is not None:
        init_kwargs["network"] = network
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if contract_offsetter_address is not None:
        init_kwargs["contract_offsetter_address"] = contract_offsetter_address
    if confirmation_timeout is not None:
        init_kwargs["confirmation_timeout"] = confirmation_timeout
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = OffsetterSettings(**init_kwargs)

    setup_logging(settings.log_level)
    ctx.obj = AppState(settings=settings, logger=_build_logger())

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)

    if not settings.contract_offsetter_address:
        raise typer.BadParameter(
            "contract_offsetter_address must be configured",
            param_hint=["--contract-offsetter", "CARBON_OFFSETTER_CONTRACT_OFFSETTER_ADDRESS"],
        )


@app.command()
def footprint(
    ctx: typer.Context,
    address: Annotated[str, typer.Argument(help="Address whose transactions to load.")],
):
    """Load the transactions of ADDRESS and show its footprint."""
    from .runner import run_footprint

    snapshot = asyncio.run(run_footprint(_state(ctx), address))
    if not snapshot.transactions_loaded:
        raise typer.Exit(code=1)


@app.command()
def offset(
    ctx: typer.Context,
    address: Annotated[str, typer.Argument(help="Address whose footprint to offset.")],
    token: Annotated[
        str,
        typer.Option("--token", "-t", help="TCO2 token address to spend."),
    ] = "",
):
    """Offset the whole outstanding footprint of ADDRESS."""
    state = _state(ctx)
    if not state.settings.private_key:
        raise typer.BadParameter(
            "private_key is required to submit an offset.",
            param_hint=["CARBON_OFFSETTER_PRIVATE_KEY"],
        )

    from .runner import run_offset

    outcome = asyncio.run(run_offset(state, address, token))
    if outcome.status is not OutcomeStatus.SETTLED:
        raise typer.Exit(code=1)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
