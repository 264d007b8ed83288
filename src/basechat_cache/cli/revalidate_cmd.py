"""CLI command for tag revalidation.

Usage:
    basechat-cache revalidate tenant:acme
    basechat-cache revalidate --tenant acme
    basechat-cache revalidate --tenant acme --user 42
"""

from __future__ import annotations

import asyncio

import typer

from basechat_cache.cache.tags import build_tenant_tag, build_tenant_user_tag
from basechat_cache.cli import common

app = typer.Typer(help="Drop every cached entry carrying the given tags")


@app.callback(invoke_without_command=True)
def revalidate(
    tags: list[str] | None = typer.Argument(None, help="Tags to revalidate"),
    tenant: str | None = typer.Option(
        None,
        "--tenant",
        "-t",
        help="Tenant slug; adds the tenant tag",
    ),
    user: str | None = typer.Option(
        None,
        "--user",
        "-u",
        help="User id; with --tenant, revalidates only that user's pages",
    ),
) -> None:
    """Revalidate TAGS, or the tags of a tenant (and user)."""
    tag_list = list(tags or [])
    if tenant:
        tag_list.append(build_tenant_user_tag(user, tenant) if user else build_tenant_tag(tenant))
    elif user:
        typer.echo("--user requires --tenant", err=True)
        raise typer.Exit(code=2)

    if not tag_list:
        typer.echo("Nothing to revalidate: pass tags or --tenant", err=True)
        raise typer.Exit(code=2)

    available = asyncio.run(_revalidate(tag_list))
    if not available:
        typer.echo("Redis is unavailable, nothing was revalidated", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Revalidated {len(tag_list)} tag(s): {', '.join(tag_list)}")


async def _revalidate(tags: list[str]) -> bool:
    async with common.build_handler() as handler:
        if not await handler.connection.ensure_connected():
            return False
        await handler.revalidate_tag(tags)
        return True
