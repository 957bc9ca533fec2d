# src/wallstore/cli.py
"""wallstore Command Line Interface.

Entry point for the wallstore CLI tool.
"""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

import typer
from pydantic import ValidationError

from wallstore import __version__
from wallstore.contracts import Found, MalformedAddressError
from wallstore.core.config import WallstoreSettings, load_settings
from wallstore.core.content_store import ContentStore

__all__ = ["app"]

app = typer.Typer(
    name="wallstore",
    help="wallstore: content-addressed storage for ledger-backed message walls.",
    no_args_is_help=True,
)

_DEFAULT_SETTINGS = Path("settings.yaml")

_SETTINGS_OPTION = typer.Option(
    None,
    "--settings",
    "-s",
    help="Path to settings YAML (default: ./settings.yaml when present).",
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"wallstore version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


def _resolve_settings(settings_path: Path | None) -> WallstoreSettings:
    """Load settings: explicit path > ./settings.yaml > defaults."""
    if settings_path is not None:
        path = settings_path.expanduser()
        if not path.exists():
            typer.echo(f"Error: Settings file not found: {path}", err=True)
            raise typer.Exit(1)
    elif _DEFAULT_SETTINGS.exists():
        path = _DEFAULT_SETTINGS
    else:
        return WallstoreSettings()

    try:
        return load_settings(path)
    except ValidationError as e:
        typer.echo(f"Error: Invalid settings in {path}:", err=True)
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            typer.echo(f"  - {location}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _open_store(settings: WallstoreSettings) -> ContentStore:
    try:
        return ContentStore.from_settings(settings)
    except Exception as e:
        typer.echo(f"Error opening content store: {e}", err=True)
        raise typer.Exit(1) from None


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # We handle existence check ourselves for better error message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """wallstore: content-addressed storage for ledger-backed message walls."""
    from wallstore.core.logging import configure_logging

    log_level = "DEBUG" if verbose else "WARNING"
    configure_logging(json_output=json_logs, level=log_level)

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


@app.command()
def put(
    text: str | None = typer.Argument(None, help="Body text to store."),
    file: Path | None = typer.Option(None, "--file", "-f", help="Read the body from a UTF-8 file."),
    settings: Path | None = _SETTINGS_OPTION,
) -> None:
    """Store a body and print its address."""
    if (text is None) == (file is None):
        typer.echo("Error: Provide exactly one of TEXT or --file.", err=True)
        raise typer.Exit(1)
    if file is not None:
        file = file.expanduser()
        if not file.exists():
            typer.echo(f"Error: File not found: {file}", err=True)
            raise typer.Exit(1)
        body = file.read_text(encoding="utf-8")
    else:
        body = text or ""

    with _open_store(_resolve_settings(settings)) as store:
        receipt = store.store(body)

    typer.echo(receipt.address)
    if not receipt.durable:
        typer.echo("Warning: content is cache-only; durable write failed.", err=True)
        raise typer.Exit(2)


@app.command()
def get(
    address: str = typer.Argument(..., help="Content address (0x + 64 hex)."),
    settings: Path | None = _SETTINGS_OPTION,
) -> None:
    """Print the body stored under an address."""
    with _open_store(_resolve_settings(settings)) as store:
        try:
            result = store.get(address)
        except MalformedAddressError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None

    if isinstance(result, Found):
        typer.echo(result.body)
        return
    typer.echo(f"Content unavailable ({result.reason}): {address}", err=True)
    raise typer.Exit(1)


@app.command()
def resolve(
    addresses: list[str] = typer.Argument(..., help="Content addresses to resolve."),
    json_output: bool = typer.Option(False, "--json", help="Output a JSON object keyed by address."),
    settings: Path | None = _SETTINGS_OPTION,
) -> None:
    """Resolve many addresses at once; missing ones never fail the batch."""
    from wallstore.core.resolver import BatchResolver

    config = _resolve_settings(settings)
    with _open_store(config) as store, BatchResolver.from_settings(store, config.resolver) as resolver:
        results = resolver.resolve_many(addresses)

    if json_output:
        payload = {
            address: ({"found": True, "body": result.body} if isinstance(result, Found) else {"found": False, "reason": str(result.reason)})
            for address, result in results.items()
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    for address, result in sorted(results.items()):
        if isinstance(result, Found):
            typer.echo(f"{address}  found    {result.body}")
        else:
            typer.echo(f"{address}  missing  ({result.reason})")


@app.command("list")
def list_entries(
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Maximum entries to show."),
    settings: Path | None = _SETTINGS_OPTION,
) -> None:
    """List stored entries (administrative inventory)."""
    shown = 0
    total = 0
    with _open_store(_resolve_settings(settings)) as store:
        for entry in store.entries():
            total += 1
            if shown < limit:
                preview = entry.body.replace("\n", " ")
                if len(preview) > 40:
                    preview = preview[:37] + "..."
                typer.echo(f"{entry.address}  {entry.stored_at.isoformat()}  {preview}")
                shown += 1

    if total == 0:
        typer.echo("No content stored.")
    elif total > shown:
        typer.echo(f"... and {total - shown} more ({total} total)")


@app.command()
def sweep(
    retention_days: int | None = typer.Option(
        None,
        "--retention-days",
        "-r",
        min=0,
        help="Remove content older than this many days (default: from config or 30).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be removed without removing.",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt.",
    ),
    settings: Path | None = _SETTINGS_OPTION,
) -> None:
    """Remove stale content to free storage.

    Ledger records keep their addresses; readers will resolve swept content
    as unavailable.

    Examples:

        # See what would be removed
        wallstore sweep --dry-run

        # Remove content older than 7 days
        wallstore sweep --retention-days 7 --yes
    """
    from wallstore.core.retention import RetentionSweeper

    config = _resolve_settings(settings)
    effective_days = retention_days if retention_days is not None else config.retention.retention_days
    max_age = timedelta(days=effective_days)

    with _open_store(config) as store:
        sweeper = RetentionSweeper(store)
        expired = sweeper.find_expired(max_age)

        if not expired:
            typer.echo(f"No content older than {effective_days} days found.")
            return

        if dry_run:
            typer.echo(f"Would remove {len(expired)} entr{'y' if len(expired) == 1 else 'ies'} older than {effective_days} days:")
            for address in expired[:10]:
                typer.echo(f"  {address[:18]}...")
            if len(expired) > 10:
                typer.echo(f"  ... and {len(expired) - 10} more")
            return

        if not yes:
            confirm = typer.confirm(f"Remove {len(expired)} entr{'y' if len(expired) == 1 else 'ies'} older than {effective_days} days?")
            if not confirm:
                typer.echo("Aborted.")
                raise typer.Exit(1)

        result = sweeper.sweep(max_age)

    typer.echo(f"Sweep completed in {result.duration_seconds:.2f}s:")
    typer.echo(f"  Removed: {result.deleted_count}")
    if result.failed_addresses:
        typer.echo(f"  Failed: {len(result.failed_addresses)}")
        for address in result.failed_addresses[:5]:
            typer.echo(f"    {address[:18]}...")
