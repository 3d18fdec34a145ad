"""Application runtime wiring."""

from __future__ import annotations

from datetime import timedelta

from loguru import logger

from voxintent.completion import CompletionService, OllamaCompletion, PatternCompletion
from voxintent.config import Settings
from voxintent.context import ContextStore
from voxintent.gateway import CommandPipeline, SessionGateway
from voxintent.interpreter import Interpreter
from voxintent.tools import ToolRegistry, build_default_registry


def build_completion(settings: Settings) -> CompletionService:
    """Build the completion client selected by ``settings.backend``."""

    if settings.backend == "pattern":
        return PatternCompletion()
    return OllamaCompletion(
        settings.ollama_url,
        settings.model,
        timeout_seconds=settings.completion_timeout_seconds,
        temperature=settings.temperature,
        num_predict=settings.num_predict,
    )


class AppRuntime:
    """Process-wide owner of the store, dispatch table and gateway."""

    def __init__(
        self,
        settings: Settings,
        *,
        completion: CompletionService | None = None,
        registry: ToolRegistry | None = None,
        store: ContextStore | None = None,
    ) -> None:
        self.settings = settings
        self.completion = completion if completion is not None else build_completion(settings)
        self.registry = registry if registry is not None else build_default_registry()
        self.store = store if store is not None else ContextStore(
            max_turns=settings.context_max_turns,
            ttl=timedelta(minutes=settings.context_ttl_minutes),
        )
        self.interpreter = Interpreter(
            self.completion,
            self.store,
            timeout_seconds=settings.completion_timeout_seconds,
        )
        self.pipeline = CommandPipeline(self.interpreter, self.registry, self.store)
        self.gateway = SessionGateway(self.pipeline)
        logger.info(
            "runtime.ready backend={} tools={}",
            settings.backend,
            [descriptor.name for descriptor in self.registry.descriptors()],
        )

    async def aclose(self) -> None:
        await self.gateway.close()
        close = getattr(self.completion, "aclose", None)
        if close is not None:
            await close()
