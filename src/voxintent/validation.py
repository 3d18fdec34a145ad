"""Input sanitization and tool-call parameter checks."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

from loguru import logger

from voxintent.errors import InvalidToolCallError
from voxintent.types import ToolCall

MAX_TEXT_LENGTH = 1000
MAX_PARAM_LENGTH = 500

# Cc category minus tab, newline and carriage return.
CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


def sanitize(text: str | None, *, max_length: int = MAX_TEXT_LENGTH) -> str:
    """Strip control characters, trim and bound the length of user text."""
    if text is None:
        return ""

    sanitized = CONTROL_CHARS_RE.sub("", text).strip()
    if len(sanitized) > max_length:
        logger.warning("validation.truncate from={} to={}", len(sanitized), max_length)
        sanitized = sanitized[:max_length].rstrip()
    return sanitized


def check_tool_call(command: ToolCall | None) -> None:
    """Raise if a known tool call breaks its parameter rules.

    Tools outside the known set pass: routing fails open and the dispatcher
    turns them into a diagnostic result. Parameters of known tools fail closed.

    Raises:
        InvalidToolCallError: With the reason the call was rejected.
    """
    if command is None:
        raise InvalidToolCallError("missing tool call")

    tool = command.normalized_tool
    if not tool:
        raise InvalidToolCallError("empty tool name")

    check = _PARAM_CHECKS.get(tool)
    if check is None:
        if tool not in KNOWN_TOOLS:
            logger.warning("validation.unknown_tool tool={}", command.tool)
        return

    reason = check(command.params or {})
    if reason is not None:
        raise InvalidToolCallError(f"{tool}: {reason}")


def is_valid(command: ToolCall | None) -> bool:
    try:
        check_tool_call(command)
    except InvalidToolCallError as exc:
        logger.warning("validation.failed reason={}", exc)
        return False
    return True


def _required_text(params: Mapping[str, Any], name: str, limit: int) -> str | None:
    value = params.get(name)
    if value is None:
        return f"missing '{name}'"
    rendered = str(value)
    if not rendered or len(rendered) > limit:
        return f"invalid '{name}'"
    return None


def _optional_text(params: Mapping[str, Any], name: str, limit: int) -> str | None:
    value = params.get(name)
    if value is not None and len(str(value)) > limit:
        return f"'{name}' too long"
    return None


def _check_navigate(params: Mapping[str, Any]) -> str | None:
    return _required_text(params, "page", MAX_PARAM_LENGTH)


def _check_save_form(params: Mapping[str, Any]) -> str | None:
    return _required_text(params, "field", MAX_PARAM_LENGTH) or _required_text(params, "value", MAX_PARAM_LENGTH)


def _check_trigger_email(params: Mapping[str, Any]) -> str | None:
    return _optional_text(params, "subject", MAX_PARAM_LENGTH) or _optional_text(params, "body", MAX_TEXT_LENGTH)


_PARAM_CHECKS: dict[str, Callable[[Mapping[str, Any]], str | None]] = {
    "navigate": _check_navigate,
    "save_form": _check_save_form,
    "trigger_email": _check_trigger_email,
}
KNOWN_TOOLS = frozenset({*_PARAM_CHECKS, "submit_form", "unknown"})
