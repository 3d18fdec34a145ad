"""voxintent CLI."""

from __future__ import annotations

import asyncio
import json

import typer
from loguru import logger

from voxintent.config import Settings, load_settings
from voxintent.errors import ConfigurationError
from voxintent.logging_utils import configure_logging
from voxintent.runtime import AppRuntime

app = typer.Typer(name="voxintent", help="Turn transcribed speech into structured commands.", add_completion=False)


def _settings(**overrides: object) -> Settings:
    try:
        settings = load_settings(**overrides)
    except ConfigurationError as exc:
        typer.echo(f"configuration error: {exc}", err=True)
        raise typer.Exit(2) from exc
    configure_logging(profile=settings.log_profile, level=settings.log_level)
    return settings


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    backend: str | None = typer.Option(None, "--backend", help="Completion backend: ollama or pattern"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model name"),
) -> None:
    """Serve the WebSocket endpoint."""

    import uvicorn

    from voxintent.server import WS_PATH, create_app

    settings = _settings(host=host, port=port, backend=backend, model=model)
    runtime = AppRuntime(settings)
    logger.info("server.start ws://{}:{}{}", settings.host, settings.port, WS_PATH)
    uvicorn.run(create_app(runtime), host=settings.host, port=settings.port, log_config=None)


@app.command()
def interpret(
    text: str = typer.Argument(..., help="Transcribed utterance"),
    backend: str | None = typer.Option(None, "--backend", help="Completion backend: ollama or pattern"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model name"),
    session_id: str = typer.Option("cli", "--session-id", help="Session id used for context"),
) -> None:
    """Run one utterance through the pipeline and print the action_result envelope."""

    settings = _settings(backend=backend, model=model)

    async def _run() -> dict:
        runtime = AppRuntime(settings)
        try:
            outcome = await runtime.pipeline.run(session_id, text)
            runtime.pipeline.commit(session_id, outcome)
            return outcome.envelope()
        finally:
            await runtime.aclose()

    envelope = asyncio.run(_run())
    typer.echo(json.dumps(envelope, ensure_ascii=False, indent=2))


@app.command()
def health(
    backend: str | None = typer.Option(None, "--backend", help="Completion backend: ollama or pattern"),
) -> None:
    """Check whether the completion service answers."""

    settings = _settings(backend=backend)

    async def _probe() -> bool:
        runtime = AppRuntime(settings)
        try:
            return await runtime.completion.is_available()
        finally:
            await runtime.aclose()

    available = asyncio.run(_probe())
    typer.echo(f"{settings.backend}: {'available' if available else 'unavailable'}")
    if not available:
        raise typer.Exit(1)
