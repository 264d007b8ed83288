"""CLI command for checking the cache connection.

Usage:
    basechat-cache status
    basechat-cache status --format json
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import typer

from basechat_cache.cli import common

app = typer.Typer(help="Show Redis connection health")


@app.callback(invoke_without_command=True)
def status(
    output_format: str = typer.Option(
        "text",
        "--format",
        "-f",
        help="Output format: text, json",
    ),
) -> None:
    """Connect to Redis and print the connection health.

    Exits with code 1 if the cache is unavailable.
    """
    health = asyncio.run(_status())

    if output_format == "json":
        typer.echo(json.dumps(health, indent=2))
    else:
        from rich.console import Console

        console = Console()
        color = "green" if health["connected"] else "red"
        console.print(f"[bold]State:[/bold] [{color}]{health['state']}[/{color}]")
        console.print(f"  URL: {health['url']}")
        console.print(f"  Connection attempts: {health['connection_attempts']}")

    if not health["connected"]:
        raise typer.Exit(code=1)


async def _status() -> dict[str, Any]:
    async with common.build_handler() as handler:
        await handler.connection.ensure_connected()
        return await handler.health_check()
