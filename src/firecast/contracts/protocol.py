# src/firecast/contracts/protocol.py
"""Background request/response protocol.

Two channels share one message shape:

Data channel:
    request  {type: "loadData", payload: {chunkSize, totalItems}}
    events   {type: "progress", payload: {progress, message}}   (zero or more)
    terminal {type: "dataLoaded", payload: ...} | {type: "error", error: str}

Training channel:
    request  {type: "trainModel", payload: {modelName, epochs, batchSize}}
    events   {type: "trainingProgress", payload: {epoch, totalEpochs,
              progress, metrics: {loss, accuracy}, message}}
    terminal {type: "trainingComplete", payload: ...} | {type: "error", error: str}

Payload keys keep the wire spelling (camelCase) so the wire form of a
message is exactly its to_dict() output.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from firecast.contracts.enums import MessageType


@dataclass(frozen=True, slots=True)
class WorkerRequest:
    """A request posted to an execution context."""

    type: MessageType
    payload: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "payload": dict(self.payload)}


@dataclass(frozen=True, slots=True)
class WorkerMessage:
    """A message posted back by an execution context.

    ``error`` is set only on ERROR messages; ``payload`` is empty on them.
    """

    type: MessageType
    payload: Mapping[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.type is MessageType.ERROR

    def to_dict(self) -> dict[str, Any]:
        if self.is_error:
            return {"type": self.type.value, "error": self.error}
        return {"type": self.type.value, "payload": dict(self.payload)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorkerMessage:
        """Parse the wire form. Unknown types raise ValueError."""
        message_type = MessageType(data["type"])
        if message_type is MessageType.ERROR:
            return cls(type=message_type, error=str(data.get("error") or "Unknown error"))
        return cls(type=message_type, payload=dict(data.get("payload") or {}))


def error_message(error: str) -> WorkerMessage:
    """Build an ERROR message."""
    return WorkerMessage(type=MessageType.ERROR, error=error)


def load_data_request(chunk_size: int, total_items: int) -> WorkerRequest:
    return WorkerRequest(
        type=MessageType.LOAD_DATA,
        payload={"chunkSize": chunk_size, "totalItems": total_items},
    )


def train_model_request(model_name: str, epochs: int, batch_size: int) -> WorkerRequest:
    return WorkerRequest(
        type=MessageType.TRAIN_MODEL,
        payload={"modelName": model_name, "epochs": epochs, "batchSize": batch_size},
    )


# Terminal message types per request type. ERROR terminates every request.
TERMINAL_TYPES: dict[MessageType, frozenset[MessageType]] = {
    MessageType.LOAD_DATA: frozenset({MessageType.DATA_LOADED, MessageType.ERROR}),
    MessageType.PROCESS_DATA: frozenset({MessageType.DATA_PROCESSED, MessageType.ERROR}),
    MessageType.TRAIN_MODEL: frozenset({MessageType.TRAINING_COMPLETE, MessageType.ERROR}),
    MessageType.VALIDATE_MODEL: frozenset({MessageType.VALIDATION_COMPLETE, MessageType.ERROR}),
}


def is_terminal(request_type: MessageType, message: WorkerMessage) -> bool:
    """Whether ``message`` ends the exchange started by a ``request_type`` request."""
    if message.is_error:
        return True
    return message.type in TERMINAL_TYPES.get(request_type, frozenset())
