"""Dispatch table from tool names to action handlers."""

from __future__ import annotations

import inspect
import json
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from voxintent.errors import DispatchError
from voxintent.types import UNKNOWN_TOOL, ActionResult, ToolCall

UNINTERPRETED_ERROR = "Could not interpret the command"

ToolHandler = Callable[[Mapping[str, Any]], ActionResult | Awaitable[ActionResult]]


def _shorten_text(text: str, width: int = 30, placeholder: str = "...") -> str:
    """Shorten text to width characters, cutting in the middle of words if needed."""
    if len(text) <= width:
        return text

    available = width - len(placeholder)
    if available <= 0:
        return placeholder

    return text[:available] + placeholder


@dataclass(frozen=True)
class ToolDescriptor:
    """Tool metadata and its handler."""

    name: str
    description: str
    handler: ToolHandler
    required: tuple[str, ...] = ()


class ToolRegistry:
    """Registry mapping lower-cased tool names to handlers."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDescriptor] = {}

    def register(self, descriptor: ToolDescriptor) -> None:
        name = descriptor.name.strip().casefold()
        if name == UNKNOWN_TOOL:
            raise ValueError(f"'{UNKNOWN_TOOL}' is reserved for uninterpreted commands")
        self._tools[name] = descriptor

    def has(self, name: str) -> bool:
        return name.strip().casefold() in self._tools

    def get(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name.strip().casefold())

    def descriptors(self) -> list[ToolDescriptor]:
        return sorted(self._tools.values(), key=lambda item: item.name)

    async def execute(self, command: ToolCall, *, original_text: str | None = None) -> ActionResult:
        """Run the handler for ``command``; every failure becomes a result."""
        descriptor = self.get(command.tool)
        if descriptor is None:
            return self._uninterpreted(command, original_text)

        params = command.params or {}
        for name in descriptor.required:
            if params.get(name) is None:
                return self._error(f"Missing '{name}' parameter for {descriptor.name}")

        self._log_tool_call(descriptor.name, params)
        start = time.monotonic()
        try:
            result = descriptor.handler(params)
            if inspect.isawaitable(result):
                result = await result
        except DispatchError as exc:
            return self._error(str(exc))
        except Exception as exc:
            # Handlers are swappable business logic; keep the session loop resilient.
            logger.exception("tool.call.error name={}", descriptor.name)
            return self._error(f"execution failed: {exc!s}")
        finally:
            duration = time.monotonic() - start
            logger.info("tool.call.end name={} duration={:.3f}ms", descriptor.name, duration * 1000)
        if not isinstance(result, ActionResult):
            return self._error(f"{descriptor.name} handler returned no ActionResult")
        return result

    def _uninterpreted(self, command: ToolCall, original_text: str | None) -> ActionResult:
        if command.normalized_tool != UNKNOWN_TOOL:
            logger.warning("tool.call.unregistered name={}", command.tool)
        else:
            logger.warning("tool.call.unknown_intent")

        text = (command.params or {}).get("text") or original_text
        metadata = {"original_text": text} if text else {}
        return ActionResult.failure("UNKNOWN", UNINTERPRETED_ERROR, metadata=metadata)

    @staticmethod
    def _error(message: str) -> ActionResult:
        logger.error("tool.call.failed error={}", message)
        return ActionResult.failure("ERROR", message)

    @staticmethod
    def _log_tool_call(name: str, params: Mapping[str, Any]) -> None:
        rendered_params: list[str] = []
        for key, value in params.items():
            try:
                rendered = json.dumps(value, ensure_ascii=False)
            except TypeError:
                rendered = repr(value)
            value = _shorten_text(rendered, width=30, placeholder="...")
            if value.startswith('"') and not value.endswith('"'):
                value = value + '"'
            rendered_params.append(f"{key}={value}")
        logger.info("tool.call.start name={} {{ {} }}", name, ", ".join(rendered_params))
