"""CLI interface for the OODA AI Slack bot."""

import asyncio
import json
import uuid

import typer

from .config import load_settings
from .exceptions import ConfigurationError, OodaBotError
from .formatting import format_reply
from .observability import bind_query_context, clear_query_context, setup_structured_logging
from .vectara import VectaraClient

app = typer.Typer(help="Slack bot answering questions from a Vectara corpus")


@app.command()
def run() -> None:
    """Connect to Slack over Socket Mode and answer questions."""
    from .slack_app import start_socket_mode

    settings = load_settings()
    setup_structured_logging(settings.logging.level, settings.logging.file)

    async def _run() -> None:
        async with VectaraClient(settings.vectara) as vectara:
            await start_socket_mode(settings, vectara)

    try:
        asyncio.run(_run())
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to ask the corpus"),
    raw: bool = typer.Option(False, "--raw", help="Print the unformatted summary and sources as JSON"),
) -> None:
    """Ask a single question and print the Slack-formatted answer."""
    settings = load_settings()
    setup_structured_logging(settings.logging.level, settings.logging.file)

    question = question.strip()
    if not question:
        typer.echo("Error: question must not be empty", err=True)
        raise typer.Exit(code=1)

    async def _ask() -> str:
        bind_query_context(str(uuid.uuid4()), "cli")
        try:
            async with VectaraClient(settings.vectara) as vectara:
                result = await vectara.query(question)
        finally:
            clear_query_context()
        if raw:
            return json.dumps(result.to_dict(), indent=2)
        return format_reply(result)

    try:
        output = asyncio.run(_ask())
    except OodaBotError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    typer.echo(output)


def _mask(secret) -> str:
    return "(set)" if secret else "(not set)"


@app.command()
def config() -> None:
    """Show current configuration."""
    settings = load_settings()
    v = settings.vectara
    typer.echo(f"Vectara URL: {v.api_url}")
    typer.echo(f"Customer ID: {v.customer_id or '(not set)'}")
    typer.echo(f"Corpus: {v.corpus_key or '(not set)'}")
    typer.echo(f"API Key: {_mask(v.api_key)}")
    typer.echo(f"Search Depth: {v.search_depth}")
    typer.echo(f"Max Results: {v.max_results}")
    typer.echo(f"Max Tokens: {v.max_tokens}")
    typer.echo(f"Max Response Chars: {v.max_response_chars}")
    typer.echo(f"Temperature: {v.temperature}")
    typer.echo(f"Frequency Penalty: {v.frequency_penalty}")
    typer.echo(f"Presence Penalty: {v.presence_penalty}")
    typer.echo(f"Relevance Threshold: {v.relevance_threshold}")
    typer.echo(f"Diversity Bias: {v.diversity_bias}")
    typer.echo(f"Response Language: {v.response_language}")
    typer.echo(f"Timeout: {v.timeout}s")
    typer.echo(f"Slack Bot Token: {_mask(settings.slack.bot_token)}")
    typer.echo(f"Slack App Token: {_mask(settings.slack.app_token)}")
    typer.echo(f"Log Level: {settings.logging.level}")
    typer.echo(f"Log File: {settings.logging.file or '(none)'}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
