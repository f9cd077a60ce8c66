"""Main CLI for LazyDev."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .capabilities import build_registry
from .config import STRATEGIES, LinearConfig
from .output import render_result
from .registry import CapabilityKind
from .retrieval import build_retriever

app = typer.Typer(
    name="lazydev",
    help="LazyDev - Linear ticket lookup for development workflows",
)
console = Console()


def load_config(strategy: Optional[str] = None) -> LinearConfig:
    """Load config, optionally overriding the retrieval strategy, or exit."""
    try:
        config = LinearConfig.load()
        if strategy:
            config = LinearConfig(
                api_key=config.api_key,
                api_url=config.api_url,
                strategy=strategy.lower(),
                source=config.source,
            )
    except ValueError as e:
        console.print(f"[red]Configuration Error:[/red] {e}")
        raise typer.Exit(1)
    return config


@app.command("serve")
def serve(
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Log level (DEBUG|INFO|WARNING|ERROR)"),
):
    """Run the MCP server on stdio."""
    from .mcp_server import main

    main(log_level)


@app.command("tickets")
def tickets(
    description: str = typer.Argument(..., help="Text to search for in ticket titles and descriptions"),
    strategy: Optional[str] = typer.Option(
        None, "--strategy", "-s", help=f"Retrieval strategy ({'|'.join(STRATEGIES)})"
    ),
):
    """Search Linear tickets and print the digest the MCP tool returns."""
    if not description.strip():
        console.print("[red]Error:[/red] description must not be empty")
        raise typer.Exit(1)

    config = load_config(strategy)
    retriever = build_retriever(config)
    with console.status(f"Searching Linear for '{description}'..."):
        result = asyncio.run(retriever.retrieve(description))

    console.print(render_result(description, result), markup=False, highlight=False)
    if result.failed:
        raise typer.Exit(1)


@app.command("auth-status")
def auth_status():
    """Show whether a Linear API key is configured."""
    config = load_config()
    if not config.has_credential:
        console.print("[yellow]Not configured[/yellow]")
        console.print("")
        console.print(LinearConfig.get_auth_help_message(), markup=False)
        raise typer.Exit(1)

    console.print(f"[green]Configured[/green] (source: {config.source})")
    console.print(f"API URL: {config.api_url}")
    console.print(f"Strategy: {config.strategy}")


@app.command("capabilities")
def capabilities():
    """List the tools, resources and prompts the server advertises."""
    registry = build_registry(build_retriever(load_config()))

    table = Table(title="LazyDevWorkflowServer capabilities")
    table.add_column("Kind", style="cyan")
    table.add_column("Name", no_wrap=True)
    table.add_column("Arguments")
    table.add_column("Description")

    for kind in CapabilityKind:
        for descriptor in registry.list(kind):
            args = ", ".join(
                p.name if p.required else f"{p.name} (optional)" for p in descriptor.parameters
            )
            name = descriptor.uri or descriptor.name
            table.add_row(kind.value, name, args or "-", descriptor.description)

    console.print(table)


if __name__ == "__main__":
    app()
