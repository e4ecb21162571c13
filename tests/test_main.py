from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from carbon_offsetter.main import app
from carbon_offsetter.orchestrator import OffsetOutcome, OutcomeStatus
from carbon_offsetter.state import Phase, ViewSnapshot

from conftest import INSPECTED_ADDRESS, OFFSETTER_ADDRESS, TCO2_ADDRESS, formatted_tx

runner = CliRunner()


@pytest.fixture(autouse=True)
def log_levels(monkeypatch) -> list[str | None]:
    """Keep CliRunner's temporary stdout out of the root logging handlers."""
    levels: list[str | None] = []
    monkeypatch.setattr("carbon_offsetter.main.setup_logging", levels.append)
    return levels


@pytest.fixture
def contract_env(monkeypatch):
    monkeypatch.setenv("CARBON_OFFSETTER_CONTRACT_OFFSETTER_ADDRESS", OFFSETTER_ADDRESS)


def test_show_config_redacts_secrets(monkeypatch):
    monkeypatch.setenv("CARBON_OFFSETTER_PRIVATE_KEY", "0xdeadbeef")

    result = runner.invoke(app, ["--network", "polygon", "--show-config"])

    assert result.exit_code == 0
    config = json.loads(result.stdout)
    assert config["network"] == "polygon"
    assert config["private_key"] == "***redacted***"
    assert "0xdeadbeef" not in result.stdout


def test_config_file_values_are_loaded(tmp_path):
    config = tmp_path / "offsetter.toml"
    config.write_text(
        '[carbon_offsetter]\nnetwork = "amoy"\nreserve_token_symbol = "NCT"\n'
    )

    result = runner.invoke(app, ["--config", str(config), "--show-config"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["network"] == "amoy"
    assert data["reserve_token_symbol"] == "NCT"


def test_log_level_option_is_upper_cased(log_levels):
    result = runner.invoke(app, ["--log-level", "debug", "--show-config"])

    assert result.exit_code == 0
    assert log_levels == ["DEBUG"]
    assert json.loads(result.stdout)["log_level"] == "DEBUG"


def test_missing_contract_address_is_a_usage_error():
    result = runner.invoke(app, ["footprint", INSPECTED_ADDRESS])

    assert result.exit_code == 2


def test_offset_requires_private_key(contract_env):
    result = runner.invoke(app, ["offset", INSPECTED_ADDRESS, "--token", TCO2_ADDRESS])

    assert result.exit_code == 2


def test_footprint_exit_code_follows_loaded_state(contract_env):
    loaded = ViewSnapshot(
        address=INSPECTED_ADDRESS, phase=Phase.READY, transactions=(formatted_tx(0),)
    )
    with patch("carbon_offsetter.runner.run_footprint", new=AsyncMock(return_value=loaded)):
        assert runner.invoke(app, ["footprint", INSPECTED_ADDRESS]).exit_code == 0

    empty = ViewSnapshot(address=INSPECTED_ADDRESS)
    with patch("carbon_offsetter.runner.run_footprint", new=AsyncMock(return_value=empty)):
        assert runner.invoke(app, ["footprint", INSPECTED_ADDRESS]).exit_code == 1


@pytest.mark.parametrize(
    "status, exit_code",
    [
        (OutcomeStatus.SETTLED, 0),
        (OutcomeStatus.FAILED, 1),
        (OutcomeStatus.REJECTED, 1),
    ],
)
def test_offset_exit_code_follows_outcome(contract_env, monkeypatch, status, exit_code):
    monkeypatch.setenv("CARBON_OFFSETTER_PRIVATE_KEY", "0x" + "11" * 32)
    run_offset = AsyncMock(return_value=OffsetOutcome(status, "message"))

    with patch("carbon_offsetter.runner.run_offset", new=run_offset):
        result = runner.invoke(app, ["offset", INSPECTED_ADDRESS, "-t", TCO2_ADDRESS])

    assert result.exit_code == exit_code
    state, address, token = run_offset.await_args.args
    assert address == INSPECTED_ADDRESS
    assert token == TCO2_ADDRESS
    assert state.settings.contract_offsetter_address == OFFSETTER_ADDRESS
