"""Wire messages exchanged with clients.

Inbound frames are JSON objects of kind ``stt`` or ``ping``; outbound frames are
one of the envelopes built here. Every outbound envelope carries exactly one
``type`` and an ISO-8601 UTC ``timestamp``.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from voxintent.errors import ProtocolError
from voxintent.types import ActionResult, ToolCall

INVALID_FORMAT = "Invalid message format"
EMPTY_STT_TEXT = "Empty STT text"
KNOWN_KINDS = frozenset({"stt", "ping"})

EnvelopeType = Literal["system", "partial", "action_result", "error", "pong"]


class CommandRequest(BaseModel):
    """One inbound client message."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str = "stt"
    text: str | None = None
    partial: bool = False

    @property
    def is_final(self) -> bool:
        return self.type == "stt" and not self.partial


def parse_request(raw: str | bytes) -> CommandRequest:
    """Decode one inbound frame.

    Raises:
        ProtocolError: If the frame is not a JSON object of a known kind.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ProtocolError(INVALID_FORMAT) from exc
    if not isinstance(data, dict):
        raise ProtocolError(INVALID_FORMAT)

    try:
        request = CommandRequest.model_validate(data)
    except ValidationError as exc:
        raise ProtocolError(INVALID_FORMAT) from exc

    if request.type not in KNOWN_KINDS:
        raise ProtocolError(f"Unknown message type: {request.type}")
    return request


def timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _envelope(kind: EnvelopeType, **fields: Any) -> dict[str, Any]:
    return {"type": kind, **fields, "timestamp": timestamp()}


def system_envelope(message: str) -> dict[str, Any]:
    return _envelope("system", message=message)


def partial_envelope(text: str) -> dict[str, Any]:
    return _envelope("partial", message=text)


def error_envelope(message: str) -> dict[str, Any]:
    return _envelope("error", message=message)


def pong_envelope() -> dict[str, Any]:
    return _envelope("pong")


def assemble(command: ToolCall, result: ActionResult, elapsed_ms: float) -> dict[str, Any]:
    """Build the canonical ``action_result`` envelope for any tool."""
    intent = {
        "tool": command.tool.upper(),
        "params": dict(command.params or {}),
        "confidence": 1.0,
    }
    return _envelope(
        "action_result",
        intent=intent,
        result=result.to_payload(),
        processingTime=max(0, int(elapsed_ms)),
    )


def encode(envelope: dict[str, Any]) -> str:
    return json.dumps(envelope, ensure_ascii=False, separators=(",", ":"))
