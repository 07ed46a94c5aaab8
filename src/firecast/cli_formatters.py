# src/firecast/cli_formatters.py
"""CLI event formatter factories for initialization output.

Provides factory functions that return event handler maps for console
(human-readable) and JSON (structured) output formats. Each factory
returns a dict mapping event types to handler callables, suitable for
subscribing to an EventBus.
"""

from __future__ import annotations

import json
from collections.abc import Callable

import typer

from firecast.contracts.enums import InitState
from firecast.contracts.events import PhaseCompleted, PhaseFailed, PhaseStarted, RunFinished
from firecast.contracts.status import InitializationStatus
from firecast.core.events import EventBusProtocol, Subscription


def _format_duration(seconds: float) -> str:
    return f"{seconds:.2f}s" if seconds < 60 else f"{seconds / 60:.1f}m"


def create_console_formatters() -> dict[type, Callable[..., None]]:
    """Create console formatters for human-readable CLI output."""

    def _format_phase_started(event: PhaseStarted) -> None:
        target_info = f" → {event.target}" if event.target else ""
        typer.echo(f"[{event.phase.value.upper()}] Starting{target_info}...")

    def _format_phase_completed(event: PhaseCompleted) -> None:
        typer.echo(f"[{event.phase.value.upper()}] ✓ Completed in {_format_duration(event.duration_seconds)}")

    def _format_phase_failed(event: PhaseFailed) -> None:
        target_info = f" ({event.target})" if event.target else ""
        typer.echo(f"[{event.phase.value.upper()}] ✗ Error{target_info}: {event.error_message}", err=True)

    def _format_status(event: InitializationStatus) -> None:
        typer.echo(f"  {event.progress:5.1f}% | {event.current_step}")

    def _format_run_finished(event: RunFinished) -> None:
        symbol = "✓" if event.state is InitState.READY and event.error_count == 0 else "⚠"
        if event.state is InitState.FAILED_BUT_READY:
            symbol = "✗"
        typer.echo(
            f"\n{symbol} Initialization {event.state.value.upper()}: "
            f"{event.loaded_models} models loaded | "
            f"{event.error_count} errors | "
            f"{_format_duration(event.duration_seconds)} total"
        )

    return {
        PhaseStarted: _format_phase_started,
        PhaseCompleted: _format_phase_completed,
        PhaseFailed: _format_phase_failed,
        InitializationStatus: _format_status,
        RunFinished: _format_run_finished,
    }


def create_json_formatters() -> dict[type, Callable[..., None]]:
    """Create JSON formatters for structured CLI output (one object per line)."""

    def _format_phase_started_json(event: PhaseStarted) -> None:
        typer.echo(json.dumps({"event": "phase_started", "phase": event.phase.value, "target": event.target}))

    def _format_phase_completed_json(event: PhaseCompleted) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "phase_completed",
                    "phase": event.phase.value,
                    "duration_seconds": event.duration_seconds,
                }
            )
        )

    def _format_phase_failed_json(event: PhaseFailed) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "phase_failed",
                    "phase": event.phase.value,
                    "error": event.error_message,
                    "target": event.target,
                }
            ),
            err=True,
        )

    def _format_status_json(event: InitializationStatus) -> None:
        typer.echo(json.dumps({"event": "status", **event.to_dict()}))

    def _format_run_finished_json(event: RunFinished) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "run_finished",
                    "state": event.state.value,
                    "loaded_models": event.loaded_models,
                    "error_count": event.error_count,
                    "duration_seconds": event.duration_seconds,
                }
            )
        )

    return {
        PhaseStarted: _format_phase_started_json,
        PhaseCompleted: _format_phase_completed_json,
        PhaseFailed: _format_phase_failed_json,
        InitializationStatus: _format_status_json,
        RunFinished: _format_run_finished_json,
    }


def subscribe_formatters(
    event_bus: EventBusProtocol,
    formatters: dict[type, Callable[..., None]],
) -> list[Subscription]:
    """Subscribe all formatters to the event bus.

    Args:
        event_bus: The event bus to subscribe handlers to.
        formatters: Mapping from event type to handler callable.

    Returns:
        The subscriptions, so callers can detach the formatters again.
    """
    return [event_bus.subscribe(event_type, handler) for event_type, handler in formatters.items()]
