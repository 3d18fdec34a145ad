"""Tool-call interpretation over an unreliable completion service."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from loguru import logger

from voxintent.completion import CompletionService
from voxintent.context import ContextStore
from voxintent.errors import ParseError
from voxintent.prompt import build_prompt
from voxintent.types import ToolCall
from voxintent.validation import is_valid, sanitize

DEFAULT_TIMEOUT_SECONDS = 30.0
FENCE = "```"


def strip_code_fence(raw: str) -> str:
    """Remove one leading ```/```json fence and one trailing fence."""
    cleaned = raw.strip()
    if cleaned[: len(FENCE) + 4].casefold() == f"{FENCE}json":
        cleaned = cleaned[len(FENCE) + 4 :]
    elif cleaned.startswith(FENCE):
        cleaned = cleaned[len(FENCE) :]
    if cleaned.endswith(FENCE):
        cleaned = cleaned[: -len(FENCE)]
    return cleaned.strip()


def parse_tool_call(raw: str) -> ToolCall:
    """Decode a completion reply into a tool call.

    Raises:
        ParseError: If the reply is not a JSON object with a non-empty ``tool``.
    """
    cleaned = strip_code_fence(raw)
    try:
        data: Any = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ParseError(f"reply is not JSON: {exc.msg}") from exc

    if not isinstance(data, dict):
        raise ParseError("reply is not a JSON object")

    tool = data.get("tool")
    if not isinstance(tool, str) or not tool.strip():
        raise ParseError("reply has no tool name")

    params = data.get("params")
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise ParseError("reply params is not an object")
    return ToolCall(tool=tool.strip(), params={str(key): value for key, value in params.items()})


class Interpreter:
    """Turns user text into a validated tool call; never raises."""

    def __init__(
        self,
        completion: CompletionService,
        store: ContextStore,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._completion = completion
        self._store = store
        self._timeout_seconds = timeout_seconds

    async def interpret(self, text: str, session_id: str | None = None) -> ToolCall:
        sanitized = sanitize(text)
        if not sanitized:
            logger.warning("interpreter.fallback reason=empty_after_sanitize")
            return ToolCall.unknown()

        summary = ""
        if session_id:
            summary = self._store.get_or_create(session_id).summary()
        prompt = build_prompt(sanitized, summary)

        reply = await self._generate(prompt)
        if reply is None:
            return ToolCall.unknown()

        try:
            command = parse_tool_call(reply)
        except ParseError as exc:
            logger.warning("interpreter.fallback reason=parse_error detail={} reply={!r}", exc, reply[:200])
            return ToolCall.unknown()

        if not is_valid(command):
            logger.warning("interpreter.fallback reason=invalid_tool_call tool={}", command.tool)
            return ToolCall.unknown()

        logger.info("interpreter.intent tool={} params={}", command.tool, command.params)
        return command

    async def _generate(self, prompt: str) -> str | None:
        try:
            async with asyncio.timeout(self._timeout_seconds):
                return await self._completion.generate(prompt)
        except TimeoutError:
            logger.warning("interpreter.fallback reason=timeout seconds={}", self._timeout_seconds)
        except Exception:
            # The completion backend is an external boundary; any failure degrades to unknown.
            logger.exception("interpreter.fallback reason=completion_error")
        return None
