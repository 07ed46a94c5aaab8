# src/firecast/core/config.py
"""
Configuration schema and loading for firecast.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import os
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

DEFAULT_CRITICAL_MODELS: tuple[str, ...] = ("wildfire-risk-v3", "fire-spread-v2")


class WorkerSettings(BaseModel):
    """Background execution context configuration."""

    model_config = {"frozen": True}

    enabled: bool = Field(
        default=True,
        description="Allow background execution contexts; false forces in-process simulation",
    )
    request_queue_size: int = Field(default=16, gt=0, description="Bounded request queue per context")
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Max total duration of one background request, progress included, before it is failed",
    )
    shutdown_timeout_seconds: float = Field(default=1.0, ge=0, description="Join timeout when terminating a context")


class LoadingSettings(BaseModel):
    """Critical-model loading configuration.

    Each model load is simulated by a delay drawn uniformly from
    [min_delay_seconds, max_delay_seconds].
    """

    model_config = {"frozen": True}

    critical_models: tuple[str, ...] = Field(
        default=DEFAULT_CRITICAL_MODELS,
        description="Models loaded when no priority list is given",
    )
    min_delay_seconds: float = Field(default=0.5, ge=0)
    max_delay_seconds: float = Field(default=1.5, ge=0)
    finalize_delay_seconds: float = Field(default=0.5, ge=0)

    @field_validator("critical_models")
    @classmethod
    def validate_critical_models(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if len(set(v)) != len(v):
            raise ValueError("critical_models must not contain duplicates")
        return v

    @model_validator(mode="after")
    def validate_delay_range(self) -> "LoadingSettings":
        if self.max_delay_seconds < self.min_delay_seconds:
            raise ValueError("max_delay_seconds must be >= min_delay_seconds")
        return self


class DataSettings(BaseModel):
    """Chunked data loading configuration."""

    model_config = {"frozen": True}

    chunk_size: int = Field(default=1000, gt=0)
    total_items: int = Field(default=10000, gt=0)
    worker_chunk_delay_seconds: float = Field(default=0.05, ge=0, description="Per-chunk delay inside the data context")
    simulated_chunks: int = Field(default=10, gt=0, description="Chunk count of the in-process fallback")
    chunk_delay_seconds: float = Field(default=0.1, ge=0, description="Per-chunk delay of the in-process fallback")


class TrainingSettings(BaseModel):
    """Background training configuration."""

    model_config = {"frozen": True}

    model_name: str = "wildfire-prediction"
    epochs: int = Field(default=10, gt=0)
    batch_size: int = Field(default=32, gt=0)
    epoch_delay_seconds: float = Field(default=0.2, ge=0, description="Per-epoch delay inside the training context")
    fallback_delay_seconds: float = Field(default=2.0, ge=0, description="Single delay of the in-process fallback")


class PredictionSettings(BaseModel):
    """Downstream prediction configuration."""

    model_config = {"frozen": True}

    batch_size: int = Field(default=10, gt=0, description="Inputs predicted concurrently per batch")
    seed: int | None = Field(default=None, description="Seed for the simulated predictor (None = random)")


class LoggingSettings(BaseModel):
    """Logging output configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_output: bool = False


class FirecastSettings(BaseModel):
    """Top-level firecast configuration.

    Every section has defaults, so an empty settings file is valid.

    Example YAML:
        workers:
          enabled: true
          request_timeout_seconds: 10
        loading:
          critical_models: [wildfire-risk-v3, fire-spread-v2]
        training:
          epochs: 5
    """

    model_config = {"frozen": True}

    workers: WorkerSettings = Field(default_factory=WorkerSettings)
    loading: LoadingSettings = Field(default_factory=LoadingSettings)
    data: DataSettings = Field(default_factory=DataSettings)
    training: TrainingSettings = Field(default_factory=TrainingSettings)
    prediction: PredictionSettings = Field(default_factory=PredictionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values."""

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            default = match.group(2)
            if default is not None:
                return default
            # No env var and no default - keep original (validation will likely reject it)
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def load_settings(config_path: Path | None = None) -> FirecastSettings:
    """Load settings from a YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (FIRECAST_*) - highest priority
    2. Config file (if given)
    3. Defaults from the Pydantic schema - lowest priority

    Environment variable format: FIRECAST_WORKERS__ENABLED=false for nested keys.

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config_path is given and doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="FIRECAST",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lower_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _expand_env_vars(raw_config)

    return FirecastSettings(**raw_config)
