"""CLI commands for inspecting cached entries and tag indices.

Usage:
    basechat-cache get "page:/o/acme"
    basechat-cache tags tenant:acme
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

import typer

from basechat_cache.cli import common

get_app = typer.Typer(help="Show a cached entry")
tags_app = typer.Typer(help="Show the entries indexed under a tag")


@get_app.callback(invoke_without_command=True)
def get(
    key: str = typer.Argument(..., help="Cache key, without the namespace prefix"),
) -> None:
    """Print the stored envelope for KEY as JSON. Exits with code 1 on a miss."""
    entry = asyncio.run(_get(key))
    if entry is None:
        typer.echo(f"Not cached: {key}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(entry, indent=2, default=str))


@tags_app.callback(invoke_without_command=True)
def tags(
    tag: str = typer.Argument(..., help="Invalidation tag, e.g. tenant:acme"),
) -> None:
    """List the cache keys currently indexed under TAG.

    The list may include entries that already expired.
    """
    from rich.console import Console

    members = asyncio.run(_tag_members(tag))
    console = Console()
    if not members:
        console.print(f"[yellow]No entries indexed under {tag}[/yellow]")
        return
    for member in members:
        console.print(member)
    console.print(f"[blue]{len(members)} key(s)[/blue]")


async def _get(key: str) -> dict[str, Any] | None:
    async with common.build_handler() as handler:
        return await handler.get(key)


async def _tag_members(tag: str) -> list[str]:
    async with common.build_handler() as handler:
        return await handler.tag_members(tag)
