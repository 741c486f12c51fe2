#!/usr/bin/env python3
"""
Lufeed Parser - Feed Enrichment Service
=======================================

Main application entry point with CLI interface.

Usage:
    python main.py --help                    # Show all commands
    python main.py check-config              # Validate configuration
    python main.py parse-url <feed-url>      # Describe the source behind a feed
    python main.py parse-feed <feed-url>     # Enrich every entry of a feed
    python main.py worker                    # Serve pub/sub parse requests
"""

import sys
import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from lufeed_parser.cache.gateway import create_cache_gateway
from lufeed_parser.config.settings import get_settings
from lufeed_parser.egress.pool import EgressPool
from lufeed_parser.services.async_worker import AsyncWorker
from lufeed_parser.services.parsing_service import ParsingService
from lufeed_parser.utils.logging import configure_application_logging
from lufeed_parser.utils.exceptions import LufeedError

console = Console()
logger = logging.getLogger(__name__)


def _setup_logging(debug: bool) -> None:
    settings = get_settings()
    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size=settings.logging.max_file_size_mb * 1024 * 1024,
        backup_count=settings.logging.backup_count,
    )


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, debug):
    """Lufeed Parser - feed parsing and page metadata enrichment."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        # Show help if no subcommand provided
        click.echo(ctx.get_help())


@cli.command()
def check_config():
    """Validate configuration from environment variables and .env."""
    console.print("[bold blue]🔧 Checking Lufeed Parser Configuration[/bold blue]")

    try:
        settings = get_settings()
        settings.validate_configuration()
    except LufeedError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)

    table = Table(title="Configuration Status")
    table.add_column("Component", style="cyan")
    table.add_column("Details")

    mode = "production" if settings.is_production_mode() else "development"
    table.add_row("Service", f"{settings.service.name} ({settings.service.environment}, {mode} mode)")
    table.add_row("Proxies", f"{len(settings.proxy.proxies)} configured"
                  if settings.proxy.proxies else "none (direct connection)")
    table.add_row("Cache", settings.cache.address or "in-memory")
    table.add_row("HTTP", f"connect {settings.http.connect_timeout}s, read {settings.http.read_timeout}s, "
                          f"idle {settings.http.idle_timeout}s")
    table.add_row("Parsing", f"max {settings.parsing.max_items} items, "
                             f"{settings.parsing.fetch_attempts} attempts, "
                             f"{settings.parsing.item_retries} item retries")
    table.add_row("Logging", f"{settings.get_effective_log_level()} -> {settings.logging.file_path or 'console'}")

    console.print(table)
    console.print("[bold green]✅ All configuration checks passed![/bold green]")


async def _run_service(operation: str, url: str, send_html: bool):
    settings = get_settings()
    pool = EgressPool.from_settings(settings)
    cache = create_cache_gateway(settings)
    try:
        await cache.connect()
        service = ParsingService(pool, cache, settings=settings)
        if operation == "url":
            return await service.parse_url(url, send_html=send_html)
        return await service.parse_source(url, send_html=send_html)
    finally:
        await cache.close()
        await pool.close()


@cli.command()
@click.argument('url')
@click.option('--send-html', is_flag=True, help='Include main content text')
@click.pass_context
def parse_url(ctx, url, send_html):
    """Describe the source behind a feed URL."""
    _setup_logging(ctx.obj.get('debug'))
    console.print(f"[bold blue]📡 Parsing source: {url}[/bold blue]")

    try:
        response = asyncio.run(_run_service("url", url, send_html))
    except LufeedError as e:
        console.print(f"[bold red]❌ Error: {e}[/bold red]")
        sys.exit(1)

    if response.status_code() != 200:
        console.print(f"[bold red]❌ {response.status_code()}: {response.message}[/bold red]")
        sys.exit(1)

    source = response.data
    table = Table(title="Source")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for field_name in ("name", "description", "feed_url", "home_url", "image_url", "icon_url"):
        table.add_row(field_name, str(getattr(source, field_name)))
    console.print(table)


@cli.command()
@click.argument('url')
@click.option('--send-html', is_flag=True, help='Include main content text')
@click.pass_context
def parse_feed(ctx, url, send_html):
    """Enrich every entry of a feed."""
    _setup_logging(ctx.obj.get('debug'))
    console.print(f"[bold blue]📡 Parsing feed: {url}[/bold blue]")

    try:
        response = asyncio.run(_run_service("feed", url, send_html))
    except LufeedError as e:
        console.print(f"[bold red]❌ Error: {e}[/bold red]")
        sys.exit(1)

    if response.status_code() != 200:
        console.print(f"[bold red]❌ {response.status_code()}: {response.message}[/bold red]")
        sys.exit(1)

    table = Table(title=f"Feed Items ({len(response.data)})")
    table.add_column("Title", style="cyan", max_width=50)
    table.add_column("Published")
    table.add_column("URL", style="green")
    for item in response.data:
        table.add_row(item.title, item.published_at.isoformat(), item.url)
    console.print(table)


async def _run_worker():
    settings = get_settings()
    pool = EgressPool.from_settings(settings)
    cache = create_cache_gateway(settings)
    try:
        await cache.connect()
        await AsyncWorker(pool, cache, settings=settings).run()
    finally:
        await cache.close()
        await pool.close()


@cli.command()
@click.pass_context
def worker(ctx):
    """Serve parse requests received over pub/sub."""
    _setup_logging(ctx.obj.get('debug'))
    console.print("[bold blue]🚀 Starting Lufeed Parser worker[/bold blue]")

    try:
        asyncio.run(_run_worker())
    except KeyboardInterrupt:
        console.print("\n[yellow]Worker stopped by user[/yellow]")
    except LufeedError as e:
        console.print(f"[bold red]❌ Worker error: {e}[/bold red]")
        sys.exit(1)


if __name__ == '__main__':
    cli()
