# tests/unit/core/test_settings_loading.py
"""Tests for the settings schema and load_settings()."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from firecast.core.config import (
    DEFAULT_CRITICAL_MODELS,
    FirecastSettings,
    LoadingSettings,
    WorkerSettings,
    load_settings,
)


class TestSchemaDefaults:
    def test_empty_settings_are_valid(self) -> None:
        settings = FirecastSettings()

        assert settings.workers.enabled is True
        assert settings.loading.critical_models == DEFAULT_CRITICAL_MODELS
        assert settings.prediction.batch_size == 10
        assert settings.data.chunk_size == 1000
        assert settings.data.total_items == 10000
        assert settings.training.model_name == "wildfire-prediction"

    def test_settings_are_frozen(self) -> None:
        settings = FirecastSettings()
        with pytest.raises(ValidationError):
            settings.workers.enabled = False  # type: ignore[misc]

    def test_duplicate_critical_models_rejected(self) -> None:
        with pytest.raises(ValidationError, match="duplicates"):
            LoadingSettings(critical_models=("wildfire-risk-v3", "wildfire-risk-v3"))

    def test_inverted_delay_range_rejected(self) -> None:
        with pytest.raises(ValidationError, match="max_delay_seconds"):
            LoadingSettings(min_delay_seconds=2.0, max_delay_seconds=1.0)

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            WorkerSettings(request_timeout_seconds=0)


class TestLoadSettings:
    def test_no_file_gives_defaults(self) -> None:
        settings = load_settings()
        assert settings == FirecastSettings()

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_settings(tmp_path / "absent.yaml")

    def test_yaml_sections_override_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            "workers:\n"
            "  enabled: false\n"
            "loading:\n"
            "  critical_models: [fire-spread-v2]\n"
            "training:\n"
            "  epochs: 4\n"
        )

        settings = load_settings(config_file)

        assert settings.workers.enabled is False
        assert settings.loading.critical_models == ("fire-spread-v2",)
        assert settings.training.epochs == 4
        # Untouched sections keep their defaults
        assert settings.data.chunk_size == 1000

    def test_environment_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("prediction:\n  batch_size: 5\n")
        monkeypatch.setenv("FIRECAST_PREDICTION__BATCH_SIZE", "7")

        settings = load_settings(config_file)

        assert settings.prediction.batch_size == 7

    def test_env_var_placeholders_expand(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            "training:\n"
            "  model_name: ${WILDFIRE_MODEL_NAME}\n"
            "logging:\n"
            "  level: ${WILDFIRE_LOG_LEVEL:-WARNING}\n"
        )
        monkeypatch.setenv("WILDFIRE_MODEL_NAME", "wildfire-prediction-v2")
        monkeypatch.delenv("WILDFIRE_LOG_LEVEL", raising=False)

        settings = load_settings(config_file)

        assert settings.training.model_name == "wildfire-prediction-v2"
        assert settings.logging.level == "WARNING"

    def test_invalid_values_raise_validation_error(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("workers:\n  request_queue_size: 0\n")

        with pytest.raises(ValidationError):
            load_settings(config_file)
