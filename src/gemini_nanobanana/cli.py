"""CLI interface for gemini-nanobanana-mcp."""

from __future__ import annotations

from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config.constants import CANONICAL_DISPLAY, CANONICAL_ID
from .config.logging import get_logger, setup_logging
from .config.settings import Settings, get_settings
from .server import run_server

app = typer.Typer(
    name=CANONICAL_ID,
    help="Gemini image generation tools over the Model Context Protocol.",
    rich_markup_mode="rich",
)

# stdout belongs to the stdio transport
console = Console(stderr=True)


def _load_settings() -> Settings:
    logger = get_logger(__name__)
    try:
        return get_settings()
    except ValidationError as e:
        logger.error("Configuration validation error: %s", e)
        console.print(
            "[red]Configuration error:[/red] Invalid configuration values.\n"
            "Check your environment or .env file.\n"
            f"Details: {e}"
        )
        raise typer.Exit(1)


@app.command()
def serve(
    transport: Optional[str] = typer.Option(
        None,
        "--transport",
        "-t",
        help="stdio or http (default from MCP_TRANSPORT)",
    ),
) -> None:
    """Start the MCP server."""
    settings = _load_settings()
    if transport:
        transport = transport.lower()
        if transport not in ("stdio", "http"):
            console.print(f"[red]Unknown transport:[/red] {transport}")
            raise typer.Exit(1)
        settings = settings.model_copy(update={"mcp_transport": transport})
    run_server(settings)


@app.command()
def status() -> None:
    """Show current configuration."""
    settings = _load_settings()

    table = Table(title=f"{CANONICAL_DISPLAY} configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in settings.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)

    missing = [name for name, ok in settings.is_configured().items() if not ok]
    if missing:
        console.print(f"[yellow]Missing:[/yellow] {', '.join(missing)}")
        raise typer.Exit(1)
    console.print("[green]Ready.[/green]")


@app.callback(invoke_without_command=True)
def _default_command(ctx: typer.Context) -> None:
    """Default to serving when no command is specified."""
    if ctx.invoked_subcommand is None:
        serve(transport=None)


def main() -> None:
    """Entry point for the CLI."""
    # Initialize logging with settings
    try:
        settings = get_settings()
        log_level, log_format = settings.log_level, settings.log_format
    except ValidationError:
        # Use defaults if settings fail to load; the command reports the error
        log_level, log_format = "info", "rich"

    setup_logging(level=log_level, fmt=log_format)
    app()


if __name__ == "__main__":
    main()
