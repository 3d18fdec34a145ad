from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from voxintent.context import ContextStore
from voxintent.gateway import CommandPipeline, SessionGateway
from voxintent.interpreter import Interpreter
from voxintent.tools import build_default_registry

Reply = str | BaseException | Callable[[str], str]


class FakeCompletion:
    """Completion service answering from a script keyed by user command."""

    def __init__(self, replies: dict[str, Reply] | None = None, *, default: Reply = '{"tool":"unknown"}') -> None:
        self.replies = dict(replies or {})
        self.default = default
        self.delays: dict[str, float] = {}
        self.prompts: list[str] = []
        self.available = True

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        command = prompt.rsplit('User command: "', 1)[-1].split('"\n', 1)[0]
        delay = self.delays.get(command)
        if delay:
            await asyncio.sleep(delay)
        reply = self.replies.get(command, self.default)
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return reply(prompt)
        return reply

    async def is_available(self) -> bool:
        return self.available


class ManualClock:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def tool_reply(tool: str, **params: Any) -> str:
    return json.dumps({"tool": tool, "params": params})


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store(clock: ManualClock) -> ContextStore:
    return ContextStore(clock=clock)


@pytest.fixture
def completion() -> FakeCompletion:
    return FakeCompletion(
        {
            "open settings page": tool_reply("navigate", page="settings"),
            "save email john@example.com": tool_reply("save_form", field="email", value="john@example.com"),
            "submit the form": tool_reply("submit_form"),
        }
    )


@pytest.fixture
def interpreter(completion: FakeCompletion, store: ContextStore) -> Interpreter:
    return Interpreter(completion, store, timeout_seconds=0.5)


@pytest.fixture
def pipeline(interpreter: Interpreter, store: ContextStore) -> CommandPipeline:
    return CommandPipeline(interpreter, build_default_registry(), store)


@pytest.fixture
def gateway(pipeline: CommandPipeline) -> SessionGateway:
    return SessionGateway(pipeline)
