"""Configuration management for DealBook."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_DIR = Path(__file__).parent.parent / "config"


class DefaultsConfig(BaseModel):
    # Pre-filled form values for a new deal
    broker_fee_percent: float = 3.0
    other_costs_percent: float = 4.5
    property_type: str = "apartment"
    strategy: str = "buy_and_hold"


class AnalyticsConfig(BaseModel):
    min_bar_width: float = 6.0  # percent, keeps zero values visible


class ScenarioConfig(BaseModel):
    rent_shock_pct: float = 10.0  # only used in the labels
    worst_cashflow_factor: float = 0.90
    worst_equity_return_factor: float = 0.85
    best_cashflow_factor: float = 1.10
    best_equity_return_factor: float = 1.15


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///dealbook.db"


class ExportConfig(BaseModel):
    default_filename: str = "dealbook-deals.json"


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DEALBOOK_", env_nested_delimiter="__", extra="ignore")

    defaults: DefaultsConfig = DefaultsConfig()
    analytics: AnalyticsConfig = AnalyticsConfig()
    scenarios: ScenarioConfig = ScenarioConfig()
    database: DatabaseConfig = DatabaseConfig()
    export: ExportConfig = ExportConfig()

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        # DEALBOOK_* environment variables win over values read from TOML
        return env_settings, init_settings


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML files.

    Loads default.toml first, then merges local.toml or a custom path on top.
    DEALBOOK_* environment variables (e.g. DEALBOOK_DATABASE__URL) override
    both.
    """
    default_path = CONFIG_DIR / "default.toml"
    data: dict[str, Any] = {}

    if default_path.exists():
        with open(default_path, "rb") as f:
            data = tomllib.load(f)

    local_path = config_path or CONFIG_DIR / "local.toml"
    if local_path.exists():
        with open(local_path, "rb") as f:
            overrides = tomllib.load(f)
        data = _deep_merge(data, overrides)

    return AppConfig(**data)
