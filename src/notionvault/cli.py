"""
notionvault command-line interface
----------------------------------

Commands:
    - export: Export the workspace (or, with --retry, only failed pages)
    - dedup: Collapse duplicate attachments of an export

Usage:
    # Full export into ./notion
    NOTION_TOKEN=secret_xxx notionvault export

    # Recover real edit times for pages touched by a bulk edit
    notionvault export --correction-date 2024-03-01

    # Replay only the pages listed in notion/errors.log
    notionvault export --retry

    # Remove duplicate attachments without prompting
    notionvault dedup ./notion --yes
"""

from __future__ import annotations

import asyncio
import sys
from datetime import datetime
from pathlib import Path

import click

from notionvault.async_client import AsyncNotionVaultClient
from notionvault.config import DEFAULT_ATTACHMENTS_DIRNAME, DEFAULT_OUTPUT_DIR
from notionvault.dedup import DEFAULT_MIN_SIZE_BYTES, DuplicateFinder, DuplicateFixer
from notionvault.errors import NotionVaultError
from notionvault.models import DuplicatePair, ExportReport
from notionvault.observability import get_logger, kv, set_level

log = get_logger("notionvault.cli")

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _log_level_option(func):
    return click.option(
        "--log-level",
        type=click.Choice(_LOG_LEVELS, case_sensitive=False),
        default="WARNING",
        show_default=True,
        help="Structured log level (JSON lines on stderr)",
    )(func)


def _fail(message: str, exit_code: int = 1) -> None:
    click.echo(f"❌ {message}", err=True)
    sys.exit(exit_code)


def _mb(size: int) -> str:
    return f"{size / 1024 / 1024:.1f} MB"


@click.group()
@click.version_option(package_name="notionvault")
def cli():
    """Export a Notion workspace to markdown and tidy its attachments."""


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------

async def _run_export(client_kwargs: dict, retry: bool) -> tuple[ExportReport, Path]:
    async with AsyncNotionVaultClient(**client_kwargs) as client:
        if retry:
            report = await client.retry_failed()
        else:
            report = await client.export_workspace()
        return report, client.config.error_log_path


@cli.command()
@click.option(
    "--token",
    envvar="NOTION_TOKEN",
    default=None,
    help="Notion integration token (or NOTION_TOKEN)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False),
    default=DEFAULT_OUTPUT_DIR,
    show_default=True,
    help="Export root directory",
)
@click.option(
    "--correction-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Pages edited on/after this date get their real edit time recovered",
)
@click.option(
    "--retry",
    is_flag=True,
    help="Only re-export pages with failed blocks in the error log",
)
@_log_level_option
def export(token, output, correction_date, retry, log_level):
    """Export the workspace into a markdown tree."""
    set_level(log_level.upper())
    if not token:
        _fail("No token: pass --token or set NOTION_TOKEN")

    click.echo("🔄 Retrying failed pages..." if retry else f"📤 Exporting workspace to {output}...")
    try:
        report, error_log = asyncio.run(
            _run_export(
                {"token": token, "output_dir": output, "correction_date": correction_date},
                retry,
            )
        )
    except ValueError as exc:
        _fail(f"Invalid configuration: {exc}")
    except NotionVaultError as exc:
        log.error("Export aborted", extra=kv(code=getattr(exc.code, "value", exc.code), **exc.context))
        _fail(f"Export aborted: [{getattr(exc.code, 'value', exc.code)}] {exc.message}")
    except OSError as exc:
        _fail(f"Export aborted: {exc}")

    stats = report.stats
    click.echo("\n=== Summary ===")
    click.echo(f"  Pages: {stats.pages}")
    click.echo(f"  Databases: {stats.databases}")
    click.echo(f"  Attachments: {stats.attachments}")
    click.echo(f"  Errors: {stats.errors}")
    if stats.errors:
        click.echo(f"\n⚠️  Errors logged to {error_log}")
        click.echo("   Run `notionvault export --retry` to retry failed pages.")
    else:
        click.echo("\n✅ Done")


# ---------------------------------------------------------------------------
# dedup
# ---------------------------------------------------------------------------

def _show_duplicates(pairs: list[DuplicatePair]) -> None:
    click.echo("\n=== Duplicates found ===")
    for pair in pairs:
        loser_stat = pair.loser.stat()
        keeper_stat = pair.keeper.stat()
        loser_day = datetime.fromtimestamp(loser_stat.st_mtime).strftime("%Y-%m-%d")
        keeper_day = datetime.fromtimestamp(keeper_stat.st_mtime).strftime("%Y-%m-%d")
        click.echo(f"  Will delete: {pair.loser.name} ({loser_day}, {_mb(loser_stat.st_size)})")
        click.echo(f"  Keep master: {pair.keeper.name} ({keeper_day})")
        click.echo("")


@cli.command()
@click.argument(
    "directory",
    type=click.Path(file_okay=False),
    default=DEFAULT_OUTPUT_DIR,
)
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt")
@click.option(
    "--min-size",
    type=click.IntRange(min=0),
    default=DEFAULT_MIN_SIZE_BYTES,
    show_default=True,
    help="Ignore attachments smaller than this many bytes",
)
@_log_level_option
def dedup(directory, yes, min_size, log_level):
    """Replace duplicate attachments by their oldest copy."""
    set_level(log_level.upper())
    base_dir = Path(directory)
    click.echo(f"🔍 Scanning {base_dir / DEFAULT_ATTACHMENTS_DIRNAME}...")

    try:
        pairs = DuplicateFinder(base_dir / DEFAULT_ATTACHMENTS_DIRNAME, min_size).find()
    except NotionVaultError as exc:
        _fail(exc.message)

    if not pairs:
        click.echo("✅ No duplicates found")
        return

    _show_duplicates(pairs)
    if not yes and not click.confirm(
        f"Delete {len(pairs)} duplicates and update references?", default=False
    ):
        click.echo("Aborted; nothing changed")
        return

    try:
        result = DuplicateFixer(base_dir).apply(pairs)
    except OSError as exc:
        _fail(f"Dedup aborted: {exc}")

    click.echo("\n=== Summary ===")
    click.echo(f"  Markdown files updated: {result.files_updated}")
    click.echo(f"  References updated: {result.references_updated}")
    click.echo(f"  Duplicates deleted: {result.deleted}")
    click.echo(f"  Space freed: {_mb(result.bytes_freed)}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
