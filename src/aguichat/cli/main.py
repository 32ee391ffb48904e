"""
AGUI Chat CLI

Entry point for the aguichat command-line interface.

Usage:
    aguichat check
    aguichat chat "Which departments have the most staff?"
    aguichat sql "top 5 products by revenue" --schema-file schema.json
    aguichat serve --port 8000
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.json import JSON
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from aguichat.agui.models import (
    DoneEvent,
    ErrorEvent,
    TextEvent,
    UIElement,
    UIElementEvent,
    UIElementKind,
)
from aguichat.common.logging import configure_logging
from aguichat.config import AguiChatConfig
from aguichat.exceptions import AguiChatError, ConfigurationError
from aguichat.llm.base import BaseChatProvider
from aguichat.llm.factory import create_provider_from_config
from aguichat.llm.protocols import ChatMessage, MessageRole
from aguichat.nl2sql.converter import SQLConverter
from aguichat.nl2sql.schema import StaticSchemaSource

logger = logging.getLogger(__name__)

console = Console()

app = typer.Typer(
    name="aguichat",
    help="AGUI Chat - natural language chat and NL-to-SQL with structured responses",
    no_args_is_help=True,
)

ProviderOption = Annotated[
    str | None,
    typer.Option("--provider", "-p", help="Provider selector (overrides AGUICHAT_LLM_PROVIDER)"),
]
ModelOption = Annotated[
    str | None,
    typer.Option("--model", "-m", help="Model identifier (overrides AGUICHAT_LLM_MODEL)"),
]


@app.callback()
def main(
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="Log level for diagnostics on stderr"),
    ] = "WARNING",
) -> None:
    """Configure logging for every command."""
    configure_logging(log_level.upper())


def _load_config(provider: str | None = None, model: str | None = None) -> AguiChatConfig:
    overrides: dict[str, Any] = {}
    if provider:
        overrides["llm_provider"] = provider
    if model:
        overrides["llm_model"] = model
    return AguiChatConfig(**overrides)


def _build(
    provider: str | None, model: str | None
) -> tuple[AguiChatConfig, BaseChatProvider]:
    try:
        config = _load_config(provider, model)
        return config, create_provider_from_config(config)
    except ValidationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        raise typer.Exit(2)


def _render_element(element: UIElement) -> None:
    props = element.props
    if element.kind is UIElementKind.TABLE and isinstance(props.get("headers"), list):
        table = Table(title=props.get("title"), show_lines=False)
        for header in props["headers"]:
            table.add_column(str(header))
        for row in props.get("rows") or []:
            table.add_row(*("" if cell is None else str(cell) for cell in row))
        console.print(table)
        return
    if element.kind is UIElementKind.TEXT and isinstance(props.get("text"), str):
        console.print(Markdown(props["text"]))
        return

    title = props.get("title") if isinstance(props.get("title"), str) else None
    label = f"{element.kind.value}" + (f": {title}" if title else "")
    console.print(Panel(JSON(json.dumps(props, default=str)), title=label, border_style="cyan"))


@app.command()
def check(
    provider: ProviderOption = None,
    model: ModelOption = None,
) -> None:
    """Check that the configured provider is reachable."""
    _, llm = _build(provider, model)
    available = asyncio.run(llm.is_available())
    label = f"{llm.provider_name} ({llm.model_name})"
    if available:
        console.print(f"[green]✓[/green] {label} is available")
        return
    console.print(f"[red]✗[/red] {label} is not available")
    raise typer.Exit(1)


@app.command()
def chat(
    message: Annotated[str, typer.Argument(help="Message to send")],
    provider: ProviderOption = None,
    model: ModelOption = None,
    raw: Annotated[
        bool,
        typer.Option("--raw", help="Print events as SSE-style JSON lines"),
    ] = False,
) -> None:
    """Send one message and render the streamed response."""
    _, llm = _build(provider, model)
    exit_code = asyncio.run(_chat_async(llm, message, raw))
    if exit_code:
        raise typer.Exit(exit_code)


async def _chat_async(llm: BaseChatProvider, message: str, raw: bool) -> int:
    exit_code = 0
    events = llm.stream_chat([ChatMessage(role=MessageRole.USER, content=message)])
    async with events:
        async for event in events:
            if raw:
                console.print_json(json.dumps(event.to_dict(), default=str))
            elif isinstance(event, TextEvent):
                console.print(Markdown(event.content))
            elif isinstance(event, UIElementEvent):
                _render_element(event.agui)
            elif isinstance(event, ErrorEvent):
                console.print(f"[red]Error:[/red] {event.error}")
                exit_code = 1
            elif isinstance(event, DoneEvent):
                console.print(f"[dim]{llm.model_name} · {event.total_tokens} tokens[/dim]")
    return exit_code


@app.command()
def sql(
    question: Annotated[str, typer.Argument(help="Natural language question")],
    schema_file: Annotated[
        Path,
        typer.Option(
            "--schema-file",
            "-s",
            help="JSON list of {table_name, column_name, data_type, nullable} rows",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    tables: Annotated[
        list[str] | None,
        typer.Option("--table", "-t", help="Table to focus on (can be repeated)"),
    ] = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    output_json: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON"),
    ] = False,
) -> None:
    """Convert a natural language question to SQL without running it."""
    try:
        rows = json.loads(schema_file.read_text())
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Invalid schema file: {e}")
        raise typer.Exit(2)
    if not isinstance(rows, list):
        console.print("[red]Error:[/red] Schema file must contain a JSON list of rows")
        raise typer.Exit(2)

    try:
        source = StaticSchemaSource.from_rows(rows)
    except (KeyError, TypeError, AttributeError) as e:
        console.print(f"[red]Error:[/red] Malformed schema row: {e}")
        raise typer.Exit(2)

    config, llm = _build(provider, model)
    converter = SQLConverter.from_config(llm, config)

    async def _convert() -> Any:
        return await converter.convert(question, await source.load_schema(), tables)

    try:
        result = asyncio.run(_convert())
    except AguiChatError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    if output_json:
        console.print_json(json.dumps(result.to_dict()))
        return

    console.print(Syntax(result.sql or "-- no SQL found", "sql", word_wrap=True))
    console.print(result.explanation)
    style = "yellow" if result.used_fallback else "green"
    console.print(f"[{style}]Confidence: {result.confidence:.0%}[/{style}]")


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "0.0.0.0",
    port: Annotated[int, typer.Option("--port", help="Bind port")] = 8000,
) -> None:
    """Run the HTTP API."""
    from aguichat.transports.http.app import run_http_server

    asyncio.run(run_http_server(_load_config(), host=host, port=port))


@app.command()
def version() -> None:
    """Show version information."""
    from aguichat import __version__

    typer.echo(f"aguichat version {__version__}")


if __name__ == "__main__":
    app()
