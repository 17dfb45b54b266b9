# src/fiberviability/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/fiberviability/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `GCP_PROJECT_ID`, `BIGQUERY_DATASET`, `BIGQUERY_REGION`)
- an external YAML file via `FIBERVIABILITY_CONFIG_PATH`

Design rule:
- Thresholds and caps live in YAML, not hard-coded in the resolver.
- `get_settings()` is called by entrypoints only (API lifespan, CLI); the resolver
  and stores receive the `Settings` object explicitly.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from fiberviability.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `fiberviability.config`."""
    text = resources.files("fiberviability.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "FTTH Viability API"
    version: str = "2.0.0"
    environment: str = "development"
    log_level: str = "INFO"


class BigQuerySettings(BaseModel):
    project_id: str = "elofiber"
    dataset: str = "viabilidade"
    location: str = "US"
    view: str = "vw_viabilidade"
    credentials_json: str | None = None
    credentials_file: str | None = None

    def full_table_name(self) -> str:
        """Backtick-quoted `project.dataset.view` reference for GoogleSQL."""
        return f"`{self.project_id}.{self.dataset}.{self.view}`"


class StoreSettings(BaseModel):
    backend: Literal["bigquery", "local"] = "bigquery"
    local_dataset_path: str = "data/nodes.sample.json"


class CapacityPlaceholder(BaseModel):
    # The dataset carries no per-node capacity yet; these values are reported for every node.
    total: int = Field(48, ge=0)
    available: int = Field(24, ge=0)
    status: str = "ATIVA"


class ViabilitySettings(BaseModel):
    default_radius_m: int = Field(300, gt=0)
    max_radius_m: int = Field(2000, gt=0)
    standard_radius_m: float = Field(300, gt=0)
    extended_radius_m: float = Field(500, gt=0)
    near_limit: int = Field(20, ge=1)
    bounds_limit: int = Field(100, ge=1)
    search_limit: int = Field(20, ge=1)
    min_search_length: int = Field(3, ge=1)
    capacity: CapacityPlaceholder = Field(default_factory=CapacityPlaceholder)

    @model_validator(mode="after")
    def _validate_break_points(self) -> "ViabilitySettings":
        if self.extended_radius_m < self.standard_radius_m:
            raise ValueError("viability.extended_radius_m must be >= viability.standard_radius_m")
        if self.default_radius_m > self.max_radius_m:
            raise ValueError("viability.default_radius_m must be <= viability.max_radius_m")
        return self


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    bigquery: BigQuerySettings = Field(default_factory=BigQuerySettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    viability: ViabilitySettings = Field(default_factory=ViabilitySettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small to avoid exposing unsafe overrides.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("FIBERVIABILITY_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    environment = os.getenv("FIBERVIABILITY_ENV")
    if environment:
        data.setdefault("app", {})["environment"] = environment

    backend = os.getenv("FIBERVIABILITY_STORE")
    if backend:
        data.setdefault("store", {})["backend"] = backend.strip().lower()

    local_dataset = os.getenv("FIBERVIABILITY_LOCAL_DATASET")
    if local_dataset:
        data.setdefault("store", {})["local_dataset_path"] = local_dataset

    bigquery_env = {
        "GCP_PROJECT_ID": "project_id",
        "BIGQUERY_DATASET": "dataset",
        "BIGQUERY_REGION": "location",
        "GOOGLE_APPLICATION_CREDENTIALS_JSON": "credentials_json",
        "GOOGLE_APPLICATION_CREDENTIALS": "credentials_file",
    }
    for env_name, key in bigquery_env.items():
        value = os.getenv(env_name)
        if value:
            data.setdefault("bigquery", {})[key] = value

    return data


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load and validate settings from YAML + environment (uncached)."""
    load_dotenv_if_present()
    config_path = config_path or os.getenv("FIBERVIABILITY_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings once per process (cached)."""
    return load_settings()


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
