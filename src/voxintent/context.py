"""Per-session conversation memory with inactivity expiry."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from loguru import logger

from voxintent.types import Turn

DEFAULT_MAX_TURNS = 5
DEFAULT_TTL = timedelta(minutes=30)
SUMMARY_HEADER = "Recent conversation history:"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Session:
    """Conversation memory of one connection."""

    session_id: str
    created_at: datetime
    last_accessed_at: datetime
    max_turns: int = DEFAULT_MAX_TURNS
    _turns: deque[Turn] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._turns = deque(maxlen=self.max_turns)

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)
        self.last_accessed_at = turn.timestamp

    def summary(self) -> str:
        if not self._turns:
            return ""
        lines = [SUMMARY_HEADER]
        lines.extend(
            f"User: {turn.user_text} → Intent: {turn.tool} → Action: {turn.action}" for turn in self._turns
        )
        return "\n".join(lines)


class ContextStore:
    """Session registry keyed by opaque session id.

    The store lives on one event loop and never awaits, so each call runs to
    completion without interleaving. Ordering within a session is the
    gateway's job.
    """

    def __init__(
        self,
        *,
        max_turns: int = DEFAULT_MAX_TURNS,
        ttl: timedelta = DEFAULT_TTL,
        clock: Clock = utc_now,
    ) -> None:
        self._max_turns = max_turns
        self._ttl = ttl
        self._clock = clock
        self._sessions: dict[str, Session] = {}

    def get_or_create(self, session_id: str) -> Session:
        self.sweep()
        existing = self._sessions.get(session_id)
        if existing is not None:
            return existing

        now = self._clock()
        session = Session(session_id=session_id, created_at=now, last_accessed_at=now, max_turns=self._max_turns)
        self._sessions[session_id] = session
        logger.info("context.create session={}", session_id)
        return session

    def get(self, session_id: str) -> Session | None:
        self.sweep()
        return self._sessions.get(session_id)

    def add_turn(self, session_id: str, user_text: str, tool: str, action: str) -> Turn:
        session = self.get_or_create(session_id)
        turn = Turn(user_text=user_text, tool=tool, action=action, timestamp=self._clock())
        session.append(turn)
        logger.debug("context.update session={} turns={}", session_id, len(session.turns))
        return turn

    def get_context_summary(self, session_id: str) -> str:
        session = self.get(session_id)
        if session is None:
            return ""
        return session.summary()

    def clear(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info("context.clear session={}", session_id)
        return removed

    def active_count(self) -> int:
        self.sweep()
        return len(self._sessions)

    def sweep(self) -> int:
        """Drop sessions idle for longer than the ttl; return how many."""
        now = self._clock()
        expired = [sid for sid, session in self._sessions.items() if now - session.last_accessed_at > self._ttl]
        for session_id in expired:
            del self._sessions[session_id]
            logger.info("context.expire session={}", session_id)
        return len(expired)
