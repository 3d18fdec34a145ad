"""Connection lifecycle and per-session command ordering."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from voxintent.context import ContextStore
from voxintent.errors import EmptyInputError, ProtocolError
from voxintent.interpreter import Interpreter
from voxintent.logging_utils import bind_session
from voxintent.protocol import (
    EMPTY_STT_TEXT,
    assemble,
    encode,
    error_envelope,
    parse_request,
    partial_envelope,
    pong_envelope,
    system_envelope,
)
from voxintent.tools import ToolRegistry
from voxintent.types import ActionResult, ToolCall

WELCOME_MESSAGE = "Connected to voxintent command interpreter"

Envelope = dict[str, Any]
Sender = Callable[[Envelope], Awaitable[None]]


@dataclass(frozen=True)
class CommandOutcome:
    """Result of running one final command through the pipeline."""

    text: str
    command: ToolCall
    result: ActionResult
    elapsed_ms: float

    def envelope(self) -> Envelope:
        return assemble(self.command, self.result, self.elapsed_ms)


def failed_outcome(
    text: str,
    exc: BaseException,
    *,
    started: float,
    command: ToolCall | None = None,
) -> CommandOutcome:
    result = ActionResult.failure("ERROR", f"Failed to process command: {exc!s}")
    elapsed_ms = (time.monotonic() - started) * 1000
    return CommandOutcome(text=text, command=command or ToolCall.unknown(), result=result, elapsed_ms=elapsed_ms)


class CommandPipeline:
    """Interpret, dispatch and remember one final command."""

    def __init__(self, interpreter: Interpreter, registry: ToolRegistry, store: ContextStore) -> None:
        self._interpreter = interpreter
        self._registry = registry
        self._store = store

    @property
    def store(self) -> ContextStore:
        return self._store

    async def run(self, session_id: str, text: str, *, started: float | None = None) -> CommandOutcome:
        """Produce an outcome for ``text``; internal failures become ERROR results."""
        started = time.monotonic() if started is None else started
        command = ToolCall.unknown()
        try:
            command = await self._interpreter.interpret(text, session_id)
            result = await self._registry.execute(command, original_text=text)
        except Exception as exc:
            logger.exception("pipeline.error session={}", session_id)
            return failed_outcome(text, exc, started=started, command=command)
        elapsed_ms = (time.monotonic() - started) * 1000
        return CommandOutcome(text=text, command=command, result=result, elapsed_ms=elapsed_ms)

    def commit(self, session_id: str, outcome: CommandOutcome) -> None:
        self._store.add_turn(session_id, outcome.text, outcome.command.tool, outcome.result.action)


@dataclass(frozen=True)
class _FinalCommand:
    text: str
    received_at: float


@dataclass
class _Connection:
    session_id: str
    send: Sender
    queue: asyncio.Queue[_FinalCommand | None] = field(default_factory=asyncio.Queue)
    worker: asyncio.Task[None] | None = None
    closed: bool = False


class SessionGateway:
    """Owns client connections and serializes final commands per session.

    Pings and partial transcripts are answered inline. Final commands go to a
    FIFO queue drained by one worker task per connection, so a session never
    interprets two commands at once and its turns stay in arrival order.
    """

    def __init__(
        self,
        pipeline: CommandPipeline,
        *,
        welcome_message: str = WELCOME_MESSAGE,
    ) -> None:
        self._pipeline = pipeline
        self._welcome_message = welcome_message
        self._connections: dict[str, _Connection] = {}
        self._workers: set[asyncio.Task[None]] = set()

    @property
    def active_sessions(self) -> int:
        return len(self._connections)

    @property
    def store(self) -> ContextStore:
        return self._pipeline.store

    def is_connected(self, session_id: str) -> bool:
        return session_id in self._connections

    async def connect(self, session_id: str, send: Sender) -> None:
        if session_id in self._connections:
            raise ValueError(f"session already connected: {session_id}")
        connection = _Connection(session_id=session_id, send=send)
        self._connections[session_id] = connection
        connection.worker = asyncio.create_task(self._drain(connection), name=f"voxintent.session.{session_id}")
        self._workers.add(connection.worker)
        connection.worker.add_done_callback(self._workers.discard)
        logger.info("gateway.connect session={}", session_id)
        await self._send(connection, system_envelope(self._welcome_message))

    async def receive(self, session_id: str, raw: str | bytes) -> None:
        connection = self._connections.get(session_id)
        if connection is None:
            logger.warning("gateway.receive.unknown_session session={}", session_id)
            return

        received_at = time.monotonic()
        with bind_session(session_id):
            try:
                request = parse_request(raw)
                if request.type == "ping":
                    await self._send(connection, pong_envelope())
                    return

                text = request.text or ""
                if not text.strip():
                    raise EmptyInputError(EMPTY_STT_TEXT)
                if not request.is_final:
                    await self._send(connection, partial_envelope(text))
                    return
            except ProtocolError as exc:
                logger.warning("gateway.protocol_error session={} error={}", session_id, exc)
                await self._send(connection, error_envelope(str(exc)))
                return

            logger.info("gateway.final session={} text={!r}", session_id, text)
            connection.queue.put_nowait(_FinalCommand(text=text, received_at=received_at))

    async def disconnect(self, session_id: str) -> None:
        connection = self._connections.pop(session_id, None)
        self._pipeline.store.clear(session_id)
        if connection is None:
            return
        connection.closed = True
        # The worker exits once any in-flight command finishes.
        connection.queue.put_nowait(None)
        logger.info("gateway.disconnect session={}", session_id)

    async def join(self, session_id: str) -> None:
        """Wait until every final command queued so far has been handled."""
        connection = self._connections.get(session_id)
        if connection is None:
            return
        await connection.queue.join()

    async def close(self) -> None:
        for session_id in list(self._connections):
            await self.disconnect(session_id)
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)

    async def _drain(self, connection: _Connection) -> None:
        with bind_session(connection.session_id):
            while True:
                item = await connection.queue.get()
                if item is None:
                    connection.queue.task_done()
                    return
                try:
                    if connection.closed:
                        continue
                    await self._process(connection, item)
                except Exception as exc:
                    logger.exception("gateway.process.error session={}", connection.session_id)
                    outcome = failed_outcome(item.text, exc, started=item.received_at)
                    await self._send(connection, outcome.envelope())
                finally:
                    connection.queue.task_done()

    async def _process(self, connection: _Connection, item: _FinalCommand) -> None:
        outcome = await self._pipeline.run(connection.session_id, item.text, started=item.received_at)
        if connection.closed:
            logger.info("gateway.discard session={} tool={}", connection.session_id, outcome.command.tool)
            return
        self._pipeline.commit(connection.session_id, outcome)
        await self._send(connection, outcome.envelope())

    async def _send(self, connection: _Connection, envelope: Envelope) -> None:
        if connection.closed:
            return
        try:
            await connection.send(envelope)
        except Exception:
            # A failed write means the peer is gone; treat it as a disconnect.
            logger.exception("gateway.send.error session={}", connection.session_id)
            if self._connections.get(connection.session_id) is connection:
                await self.disconnect(connection.session_id)


class SpeechEvents:
    """Feed speech-recognition callbacks into one gateway session."""

    def __init__(self, gateway: SessionGateway, session_id: str) -> None:
        self._gateway = gateway
        self._session_id = session_id

    async def on_partial(self, text: str) -> None:
        await self._gateway.receive(self._session_id, encode({"type": "stt", "text": text, "partial": True}))

    async def on_final(self, text: str) -> None:
        await self._gateway.receive(self._session_id, encode({"type": "stt", "text": text, "partial": False}))
