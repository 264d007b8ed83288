"""CLI commands for the basechat cache.

Provides command-line interface using Typer:
- basechat-cache status: Connect to Redis and show connection health
- basechat-cache get: Show a cached entry
- basechat-cache tags: Show the entries indexed under a tag
- basechat-cache revalidate: Drop every entry carrying the given tags

Usage:
    basechat-cache --help
    basechat-cache status
    basechat-cache get "page:/o/acme"
    basechat-cache tags tenant:acme
    basechat-cache revalidate tenant:acme tenant:acme:user:42
"""

import typer

from basechat_cache.cli.inspect_cmd import get_app, tags_app
from basechat_cache.cli.revalidate_cmd import app as revalidate_app
from basechat_cache.cli.status_cmd import app as status_app
from basechat_cache.config import settings
from basechat_cache.observability.logging import configure_logging

# Main CLI application
app = typer.Typer(
    name="basechat-cache",
    help="basechat-cache: shared Redis cache for the basechat rendering layer",
    no_args_is_help=True,
)

app.add_typer(status_app, name="status")
app.add_typer(get_app, name="get")
app.add_typer(tags_app, name="tags")
app.add_typer(revalidate_app, name="revalidate")


@app.callback()
def callback() -> None:
    """basechat-cache: shared Redis cache for the basechat rendering layer."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    configure_logging(json_format=settings.log_json, level=settings.log_level)
    app()


if __name__ == "__main__":
    main()
