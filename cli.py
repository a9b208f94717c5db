#!/usr/bin/env python
"""CLI entry point for the Swarm Chat backend."""

import asyncio
import logging
from typing import Optional

import click
from dotenv import load_dotenv

from backend.config import (
    BACKEND_PORT,
    LLM_API_KEY,
    LLM_BASE_URL,
    LLM_MAX_TOOL_STEPS,
    LLM_TEMPERATURE,
    LOG_LEVEL,
    STAGE_TIMEOUT_SECONDS,
)
from backend.errors import PreconditionViolation
from backend.http_pool import close_http_client, init_http_client
from backend.models import ChatMessage, RequestHints
from backend.pipeline import AgentPipelineExecutor, DirectResponder, StageTimeoutGuard
from backend.providers import OpenAIChatProvider, ProviderConfig
from backend.streaming import StreamFormatter
from backend.tools import DefaultToolset

load_dotenv()


@click.group()
@click.option("--log-level", default=LOG_LEVEL, help="Logging level")
def cli(log_level: str):
    """Swarm Chat - multi-agent answers streamed with formatting preserved."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("query")
@click.option("--city", type=str, default=None, help="City the request comes from")
@click.option("--country", type=str, default=None, help="Country the request comes from")
@click.option(
    "--timeout",
    type=float,
    default=STAGE_TIMEOUT_SECONDS,
    show_default=True,
    help="Per-stage deadline in seconds",
)
@click.option("--simple", is_flag=True, help="Single direct answer instead of the four agents")
@click.option("--show-reasoning", is_flag=True, help="Print the reasoning trace")
def ask(
    query: str,
    city: Optional[str],
    country: Optional[str],
    timeout: float,
    simple: bool,
    show_reasoning: bool,
):
    """Answer QUERY and stream the formatted response to stdout."""

    async def on_tool_event(type_: str, data: dict):
        if type_ == "document":
            click.echo(f"\n📄 Document: {data.get('title')} ({data.get('kind')})")
        elif type_ == "suggestion":
            click.echo(f"\n💡 Suggestion: {data.get('description')}")

    async def run():
        model_client = OpenAIChatProvider(
            ProviderConfig(
                provider_id="openai",
                api_key=LLM_API_KEY,
                base_url=LLM_BASE_URL,
                max_tool_steps=LLM_MAX_TOOL_STEPS,
            )
        )
        guard = StageTimeoutGuard(model_client, deadline=timeout, temperature=LLM_TEMPERATURE)
        responder = DirectResponder(guard) if simple else AgentPipelineExecutor(model_client, guard)

        await init_http_client()
        try:
            run_result = await responder.run(
                [ChatMessage(role="user", content=query)],
                RequestHints(city=city, country=country),
                DefaultToolset(model_client, sink=on_tool_event),
            )
        finally:
            await close_http_client()

        if show_reasoning and run_result.reasoning_trace:
            click.echo("=" * 60)
            click.echo(run_result.reasoning_trace)
            click.echo("=" * 60)

        async for chunk in StreamFormatter().format(run_result.final_answer):
            click.echo(chunk.text, nl=False)
        click.echo()

        if run_result.degraded_stages:
            click.echo(f"⚠️  Degraded stages: {', '.join(run_result.degraded_stages)}", err=True)

    try:
        asyncio.run(run())
    except PreconditionViolation as e:
        raise click.ClickException(str(e))


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", type=int, default=BACKEND_PORT, show_default=True)
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool):
    """Run the API server."""
    import uvicorn

    click.echo(f"🚀 Starting Swarm Chat API on {host}:{port}")
    uvicorn.run("backend.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli()
