"""Runtime logging helpers."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Literal

import loguru
from loguru import logger

LogProfile = Literal["default", "json"]

_DEFAULT_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<6} | {name}:{function}:{line} | {extra[session]} | {message}"
)
_session_context: ContextVar[str] = ContextVar("session", default="-")
_CONFIGURED_PROFILE: LogProfile | None = None


def current_session() -> str:
    """Get the session id bound to the current task, or '-'."""
    return _session_context.get()


@contextmanager
def bind_session(session_id: str) -> Iterator[None]:
    """Tag log records emitted inside the block with one session id."""
    token = _session_context.set(session_id)
    try:
        yield
    finally:
        _session_context.reset(token)


def _inject_context(record: loguru.Record) -> None:
    record["extra"].setdefault("session", current_session())


def configure_logging(*, profile: LogProfile = "default", level: str = "INFO") -> None:
    """Configure process-level logging once."""
    global _CONFIGURED_PROFILE
    if profile == _CONFIGURED_PROFILE:
        return

    logger.remove()
    if profile == "json":
        logger.add(sys.stderr, level=level.upper(), serialize=True, backtrace=False, diagnose=False)
    else:
        logger.add(sys.stderr, level=level.upper(), format=_DEFAULT_FORMAT, backtrace=False, diagnose=False)
    logger.configure(patcher=_inject_context)
    _CONFIGURED_PROFILE = profile
