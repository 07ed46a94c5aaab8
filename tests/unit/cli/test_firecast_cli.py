# tests/unit/cli/test_firecast_cli.py
"""Tests for the firecast CLI."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from firecast.cli import app

runner = CliRunner()

_FAST_SETTINGS = """
logging:
  level: ERROR
loading:
  min_delay_seconds: 0
  max_delay_seconds: 0
  finalize_delay_seconds: 0
data:
  chunk_delay_seconds: 0
  worker_chunk_delay_seconds: 0
training:
  epochs: 2
  epoch_delay_seconds: 0
  fallback_delay_seconds: 0
prediction:
  seed: 42
"""


@pytest.fixture(autouse=True)
def _detach_log_handlers() -> Iterator[None]:
    yield
    # The CLI binds a handler to the runner's stderr, which is closed after invoke
    logging.getLogger().handlers = []


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(_FAST_SETTINGS)
    return path


class TestCLIBasics:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "firecast version" in result.stdout

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "init" in result.stdout
        assert "predict" in result.stdout
        assert "config" in result.stdout


class TestInitCommand:
    def test_json_output_ends_ready(self, settings_file: Path) -> None:
        result = runner.invoke(
            app, ["--no-dotenv", "init", "--settings", str(settings_file), "--no-workers", "--format", "json"]
        )

        assert result.exit_code == 0, result.output
        events = [json.loads(line) for line in result.stdout.splitlines() if line.strip()]
        assert events[0] == {"event": "phase_started", "phase": "provision", "target": None}
        assert events[-1]["event"] == "run_finished"
        assert events[-1]["state"] == "ready"
        statuses = [e for e in events if e["event"] == "status"]
        assert statuses[-1]["progress"] == 100.0
        assert statuses[-1]["current_step"] == "Initialization complete"

    def test_console_output_with_background_contexts(self, settings_file: Path) -> None:
        result = runner.invoke(app, ["--no-dotenv", "init", "--settings", str(settings_file)])

        assert result.exit_code == 0, result.output
        assert "[CRITICAL_MODELS] Starting → wildfire-risk-v3, fire-spread-v2..." in result.stdout
        assert "100.0% | Initialization complete" in result.stdout
        assert "Initialization READY: 2 models loaded | 0 errors" in result.stdout

    def test_unknown_priority_model_reported_but_succeeds(self, settings_file: Path) -> None:
        result = runner.invoke(
            app,
            ["--no-dotenv", "init", "--settings", str(settings_file), "--no-workers", "--priority", "no-such-model"],
        )

        assert result.exit_code == 0
        assert "Failed to load model no-such-model: not in model catalog" in result.output

    def test_missing_settings_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--no-dotenv", "init", "--settings", str(tmp_path / "absent.yaml")])

        assert result.exit_code == 1
        assert "Settings file not found" in result.output

    def test_invalid_settings_reported(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("workers:\n  request_timeout_seconds: -1\n")

        result = runner.invoke(app, ["--no-dotenv", "init", "--settings", str(path)])

        assert result.exit_code == 1
        assert "Configuration errors:" in result.output
        assert "workers.request_timeout_seconds" in result.output


class TestPredictCommand:
    def test_predicts_each_input_in_order(self, settings_file: Path, tmp_path: Path) -> None:
        inputs = tmp_path / "inputs.json"
        inputs.write_text(
            json.dumps(
                [
                    {"latitude": 37.8, "longitude": -122.4, "windSpeed": 20},
                    {"latitude": 34.0, "longitude": -118.2, "humidity": 10},
                    {"latitude": 45.5, "longitude": -122.7},
                ]
            )
        )

        result = runner.invoke(
            app, ["--no-dotenv", "predict", str(inputs), "--settings", str(settings_file), "--no-workers"]
        )

        assert result.exit_code == 0, result.output
        results = json.loads(result.stdout)
        assert len(results) == 3
        assert all(0 <= r["fire_risk"] <= 100 for r in results)
        assert all(r["model_version"] == "3.0.0" for r in results)

    def test_single_object_input(self, settings_file: Path, tmp_path: Path) -> None:
        inputs = tmp_path / "one.json"
        inputs.write_text(json.dumps({"latitude": 37.8, "longitude": -122.4}))

        result = runner.invoke(
            app, ["--no-dotenv", "predict", str(inputs), "--settings", str(settings_file), "--no-workers"]
        )

        assert result.exit_code == 0, result.output
        assert len(json.loads(result.stdout)) == 1

    def test_invalid_input_rejected(self, settings_file: Path, tmp_path: Path) -> None:
        inputs = tmp_path / "bad.json"
        inputs.write_text(json.dumps([{"latitude": 137.0, "longitude": 0}]))

        result = runner.invoke(app, ["--no-dotenv", "predict", str(inputs), "--settings", str(settings_file)])

        assert result.exit_code == 1
        assert "Invalid prediction input" in result.output

    def test_malformed_json_rejected(self, settings_file: Path, tmp_path: Path) -> None:
        inputs = tmp_path / "broken.json"
        inputs.write_text("[{")

        result = runner.invoke(app, ["--no-dotenv", "predict", str(inputs), "--settings", str(settings_file)])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output


class TestConfigCommand:
    def test_yaml_output_reflects_file_and_env(
        self, settings_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FIRECAST_TRAINING__EPOCHS", "6")

        result = runner.invoke(app, ["--no-dotenv", "config", "--settings", str(settings_file)])

        assert result.exit_code == 0, result.output
        shown = yaml.safe_load(result.stdout)
        assert shown["training"]["epochs"] == 6
        assert shown["prediction"]["seed"] == 42
        assert shown["workers"]["enabled"] is True

    def test_json_output(self) -> None:
        result = runner.invoke(app, ["--no-dotenv", "config", "--format", "json"])

        assert result.exit_code == 0, result.output
        shown = json.loads(result.stdout)
        assert shown["loading"]["critical_models"] == ["wildfire-risk-v3", "fire-spread-v2"]
