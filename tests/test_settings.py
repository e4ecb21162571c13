"""Tests for settings configuration loading."""

from __future__ import annotations

from textwrap import dedent

import pytest

from carbon_offsetter.settings import Network, OffsetterSettings


def test_defaults_resolve_network_endpoints():
    settings = OffsetterSettings()

    assert settings.network is Network.MUMBAI
    assert settings.rpc_url_resolved == "https://rpc-mumbai.maticvigil.com"
    assert settings.explorer_api_url_resolved == "https://api-testnet.polygonscan.com/api"
    assert settings.provider_max_records == 10_000
    assert settings.reserve_token_symbol == "BCT"


def test_explicit_rpc_overrides_network_default():
    settings = OffsetterSettings(network=Network.POLYGON, rpc_url="https://rpc.example")

    assert settings.rpc_url_resolved == "https://rpc.example"
    assert settings.explorer_url == "https://polygonscan.com"
    assert settings.chain_id == 137


def test_loads_toml_config_table(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        dedent(
            """
            [carbon_offsetter]
            network = "amoy"
            contract_offsetter_address = "0x2234567890123456789012345678901234567890"
            credit_token_addresses = ["0xaAaAaAaaAaAaAaaAaAAAAAAAAaaaAaAaAaaAaaAa"]
            confirmation_timeout = 42.5
            """
        ).strip()
    )
    monkeypatch.setenv("CARBON_OFFSETTER_CONFIG", str(config_path))

    settings = OffsetterSettings()

    assert settings.network is Network.AMOY
    assert settings.contract_offsetter_address_required == (
        "0x2234567890123456789012345678901234567890"
    )
    assert settings.credit_token_addresses == [
        "0xaAaAaAaaAaAaAaaAaAAAAAAAAaaaAaAaAaaAaaAa"
    ]
    assert settings.confirmation_timeout == 42.5


def test_env_takes_precedence_over_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text('confirmation_timeout = 10\nlog_level = "debug"\n')
    monkeypatch.setenv("CARBON_OFFSETTER_CONFIG", str(config_path))
    monkeypatch.setenv("CARBON_OFFSETTER_CONFIRMATION_TIMEOUT", "99")

    settings = OffsetterSettings()

    assert settings.confirmation_timeout == 99
    assert settings.log_level == "DEBUG"


def test_secrets_in_config_file_are_rejected(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    config_path.write_text('private_key = "0xdead"\n')
    monkeypatch.setenv("CARBON_OFFSETTER_CONFIG", str(config_path))

    with pytest.raises(ValueError, match="Security violation"):
        OffsetterSettings()


def test_as_safe_dict_redacts_secrets():
    settings = OffsetterSettings(private_key="0x" + "a" * 64, explorer_api_key="KEY")

    data = settings.as_safe_dict()

    assert data["private_key"] == "***redacted***"
    assert data["explorer_api_key"] == "***redacted***"


def test_missing_contract_address_raises():
    with pytest.raises(ValueError, match="contract_offsetter_address"):
        OffsetterSettings().contract_offsetter_address_required


def test_provider_max_records_cannot_exceed_cap():
    with pytest.raises(ValueError):
        OffsetterSettings(provider_max_records=20_000)
