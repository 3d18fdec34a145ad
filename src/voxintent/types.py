"""Shared dataclasses for the command pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

UNKNOWN_TOOL = "unknown"
FAILURE_ACTIONS = frozenset({"UNKNOWN", "ERROR"})


@dataclass(frozen=True)
class ToolCall:
    """Structured command produced by the interpreter."""

    tool: str
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def unknown(cls) -> ToolCall:
        return cls(tool=UNKNOWN_TOOL, params={})

    @property
    def normalized_tool(self) -> str:
        return self.tool.strip().casefold()


@dataclass(frozen=True)
class ActionResult:
    """Outcome of dispatching one tool call."""

    action: str
    success: bool
    target: str | None = None
    field: str | None = None
    value: str | None = None
    task_id: str | None = None
    metadata: dict[str, Any] | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if not self.success and self.error is None:
            raise ValueError("failed action results must carry an error")
        if self.success and self.action in FAILURE_ACTIONS:
            raise ValueError(f"{self.action} results cannot be successful")

    @classmethod
    def failure(cls, action: str, error: str, *, metadata: dict[str, Any] | None = None) -> ActionResult:
        return cls(action=action, success=False, error=error, metadata=metadata)

    def to_payload(self) -> dict[str, Any]:
        """Render non-null fields using wire names."""
        payload: dict[str, Any] = {"action": self.action, "success": self.success}
        optional = {
            "target": self.target,
            "field": self.field,
            "value": self.value,
            "taskId": self.task_id,
            "metadata": self.metadata,
            "error": self.error,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


@dataclass(frozen=True)
class Turn:
    """One completed exchange kept in session memory."""

    user_text: str
    tool: str
    action: str
    timestamp: datetime
