# src/firecast/workers/data.py
"""Data worker handlers.

Runs inside the data execution context thread. Supports:
- loadData: load items in chunks, posting a progress message per chunk
- processData: echo a payload back marked as processed
"""

from __future__ import annotations

import random
from collections.abc import Mapping
from datetime import UTC, datetime
from functools import partial
from typing import Any

from firecast.contracts.enums import MessageType
from firecast.contracts.protocol import WorkerMessage
from firecast.engine.context import Handler, WorkerPort


def load_data_chunks(
    payload: Mapping[str, Any],
    port: WorkerPort,
    *,
    chunk_delay: float,
    rng: random.Random,
) -> WorkerMessage:
    """Load ``totalItems`` records in chunks of ``chunkSize``.

    Posts ``{progress, message}`` after each chunk, where progress is the
    percentage of items loaded so far (capped at 100).
    """
    chunk_size = int(payload.get("chunkSize", 1000))
    total_items = int(payload.get("totalItems", 10000))
    if chunk_size <= 0:
        raise ValueError(f"chunkSize must be positive, got {chunk_size}")
    if total_items < 0:
        raise ValueError(f"totalItems must be non-negative, got {total_items}")

    chunks: list[list[dict[str, Any]]] = []
    for start in range(0, total_items, chunk_size):
        end = min(start + chunk_size, total_items)
        chunks.append([{"id": item_id, "value": rng.random() * 100} for item_id in range(start, end)])

        progress = min(100, round(end / total_items * 100))
        port.post(
            WorkerMessage(
                type=MessageType.PROGRESS,
                payload={"progress": progress, "message": f"Loaded {end} of {total_items} items"},
            )
        )
        port.sleep(chunk_delay)

    return WorkerMessage(
        type=MessageType.DATA_LOADED,
        payload={
            "success": True,
            "totalChunks": len(chunks),
            "totalItems": sum(len(chunk) for chunk in chunks),
        },
    )


def process_data(payload: Mapping[str, Any], port: WorkerPort) -> WorkerMessage:
    return WorkerMessage(
        type=MessageType.DATA_PROCESSED,
        payload={
            "processed": True,
            "timestamp": datetime.now(UTC).isoformat(),
            "data": dict(payload),
        },
    )


def data_handlers(*, chunk_delay: float = 0.05, seed: int | None = None) -> dict[MessageType, Handler]:
    """Build the data worker's handler table."""
    rng = random.Random(seed)
    return {
        MessageType.LOAD_DATA: partial(load_data_chunks, chunk_delay=chunk_delay, rng=rng),
        MessageType.PROCESS_DATA: process_data,
    }
