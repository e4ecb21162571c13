"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import tomllib

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    AMOY_ENDPOINTS,
    MUMBAI_ENDPOINTS,
    POLYGON_ENDPOINTS,
    PROVIDER_MAX_RECORDS,
    RESERVE_TOKEN_SYMBOL,
    NetworkEndpoints,
)

load_dotenv()

SECRET_FIELDS = {"private_key", "explorer_api_key"}


class Network(str, Enum):
    POLYGON = "polygon"
    MUMBAI = "mumbai"
    AMOY = "amoy"


NETWORK_ENDPOINTS: dict[Network, NetworkEndpoints] = {
    Network.POLYGON: POLYGON_ENDPOINTS,
    Network.MUMBAI: MUMBAI_ENDPOINTS,
    Network.AMOY: AMOY_ENDPOINTS,
}


class OffsetterSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with CARBON_OFFSETTER_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- network / endpoints ---
    network: Network = Network.MUMBAI
    rpc_url: str | None = None
    explorer_api_url: str | None = None

    # --- contracts / tokens ---
    contract_offsetter_address: str | None = None
    credit_token_addresses: list[str] = Field(default_factory=list)
    reserve_token_symbol: str = RESERVE_TOKEN_SYMBOL

    # --- signing / secrets ---
    private_key: SecretStr | None = None
    explorer_api_key: SecretStr | None = None

    # --- provider ---
    provider_max_records: int = Field(default=PROVIDER_MAX_RECORDS, gt=0, le=PROVIDER_MAX_RECORDS)
    provider_request_timeout: int = 15

    # --- RPC / confirmation ---
    rpc_max_concurrent_calls: int = Field(default=5, gt=0)
    confirmation_timeout: float = Field(
        default=180.0,
        gt=0,
        description="Seconds to wait for an offset transaction receipt before giving up.",
    )
    confirmation_poll_latency: float = Field(default=1.0, gt=0)

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CARBON_OFFSETTER_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("private_key", "explorer_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("CARBON_OFFSETTER_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("carbon-offsetter.toml")
                    user_config = (
                        Path.home() / ".config" / "carbon-offsetter" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [carbon_offsetter]
                body = data.get("carbon_offsetter", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def endpoints(self) -> NetworkEndpoints:
        return NETWORK_ENDPOINTS[self.network]

    @property
    def rpc_url_resolved(self) -> str:
        """RPC endpoint, falling back to the network default."""
        return self.rpc_url or self.endpoints["rpc_url"]

    @property
    def explorer_api_url_resolved(self) -> str:
        return self.explorer_api_url or self.endpoints["explorer_api_url"]

    @property
    def explorer_url(self) -> str:
        return self.endpoints["explorer_url"]

    @property
    def chain_id(self) -> int:
        return self.endpoints["chain_id"]

    @property
    def contract_offsetter_address_required(self) -> str:
        """Get contract_offsetter_address, raising ValueError if not set."""
        if self.contract_offsetter_address is None:
            raise ValueError("contract_offsetter_address must be configured")
        return self.contract_offsetter_address
