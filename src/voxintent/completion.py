"""Completion service clients."""

from __future__ import annotations

import json
import re
from typing import Any, Protocol

import httpx
from loguru import logger

from voxintent.errors import ExternalServiceError

DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_MODEL = "llama3.2:3b"
AVAILABILITY_TIMEOUT_SECONDS = 5.0


class CompletionService(Protocol):
    """Text generator that turns a prompt into free text."""

    async def generate(self, prompt: str) -> str: ...

    async def is_available(self) -> bool: ...


class OllamaCompletion:
    """Client for the Ollama ``/api/generate`` endpoint."""

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_URL,
        model: str = DEFAULT_MODEL,
        *,
        timeout_seconds: float = 30.0,
        temperature: float = 0.1,
        num_predict: int = 200,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout_seconds = timeout_seconds
        self._temperature = temperature
        self._num_predict = num_predict
        self._client = httpx.AsyncClient(base_url=self._base_url, timeout=timeout_seconds, transport=transport)
        logger.info("completion.ollama.init model={} url={}", model, self._base_url)

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, prompt: str) -> str:
        payload = {
            "model": self._model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
            "options": {"temperature": self._temperature, "num_predict": self._num_predict},
        }
        logger.debug("completion.request model={} chars={}", self._model, len(prompt))
        try:
            response = await self._client.post("/api/generate", json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(f"completion service returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"completion service unreachable: {exc!s}") from exc
        except ValueError as exc:
            raise ExternalServiceError("completion service returned a non-JSON body") from exc

        text = body.get("response") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise ExternalServiceError("completion service reply has no 'response' text")
        logger.debug("completion.response chars={}", len(text))
        return text

    async def is_available(self) -> bool:
        try:
            response = await self._client.get("/api/tags", timeout=AVAILABILITY_TIMEOUT_SECONDS)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("completion.unavailable url={} error={}", self._base_url, exc)
            return False
        return True

    async def aclose(self) -> None:
        await self._client.aclose()


_COMMAND_RE = re.compile(r'User command: "(?P<text>.*)"', re.DOTALL)


class PatternCompletion:
    """Offline stand-in that answers with rule-based tool calls.

    Reads the user command back out of the prompt, so it can be dropped in
    wherever a model-backed service is expected.
    """

    NAVIGATE_RE = re.compile(r"\b(?:open|go to|show|navigate to|take me to)\s+(?:the\s+)?(?P<page>[\w-]+)", re.I)
    SAVE_RE = re.compile(
        r"\b(?:save|set|store)\s+(?:my\s+)?(?P<field>\w+)\s+(?:to\s+|as\s+|is\s+)?(?P<value>\S.*)",
        re.I,
    )
    NAME_RE = re.compile(r"\bmy name is\s+(?P<value>\S.*)", re.I)
    EMAIL_RE = re.compile(
        r"^\s*(?:send (?:an? )?email|email)\s+(?:to\s+)?(?P<who>\w+)(?:\s+about\s+(?P<topic>.+))?",
        re.I,
    )
    SUBMIT_RE = re.compile(r"^\s*(?:submit(?: the form| it)?|send it)\s*[.!]?\s*$", re.I)

    async def generate(self, prompt: str) -> str:
        match = _COMMAND_RE.search(prompt)
        text = match.group("text") if match else prompt
        return json.dumps(self.match(text))

    async def is_available(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None

    def match(self, text: str) -> dict[str, Any]:
        cleaned = text.strip()
        if self.SUBMIT_RE.match(cleaned):
            return {"tool": "submit_form", "params": {}}
        if email := self.EMAIL_RE.search(cleaned):
            topic = (email.group("topic") or "").strip()
            subject = topic.capitalize() if topic else f"Message for {email.group('who')}"
            return {"tool": "trigger_email", "params": {"subject": subject, "body": cleaned}}
        if name := self.NAME_RE.search(cleaned):
            return {"tool": "save_form", "params": {"field": "name", "value": name.group("value").strip()}}
        if save := self.SAVE_RE.search(cleaned):
            return {
                "tool": "save_form",
                "params": {"field": save.group("field").lower(), "value": save.group("value").strip()},
            }
        if nav := self.NAVIGATE_RE.search(cleaned):
            return {"tool": "navigate", "params": {"page": nav.group("page").lower()}}
        return {"tool": "unknown", "params": {"text": cleaned}}
