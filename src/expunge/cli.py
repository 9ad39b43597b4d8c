# src/expunge/cli.py
"""expunge Command Line Interface.

Entry point for the expunge CLI tool.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
import yaml

from expunge import __version__
from expunge.contracts.errors import ConfigurationError, StorageUnavailable
from expunge.core.config import ExpungeSettings, load_settings
from expunge.core.logging import configure_logging

if TYPE_CHECKING:
    from expunge.contracts.results import CleanupOutcome

__all__ = ["app"]

app = typer.Typer(
    name="expunge",
    help="expunge: retention cleanup for exposure-tracing records.",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Path to settings YAML. EXPUNGE_* environment variables override it.",
        envvar="EXPUNGE_CONFIG",
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"expunge version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-V", callback=version_callback, is_eager=True, help="Show version and exit."),
    ] = None,
) -> None:
    """expunge: retention cleanup for exposure-tracing records."""


def _load(config: Path) -> ExpungeSettings:
    """Load settings and configure logging, exiting 1 on ConfigurationError."""
    try:
        settings = load_settings(config)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    configure_logging(json_output=settings.logging.json_output, level=settings.logging.level)
    return settings


def _print_outcome(outcome: CleanupOutcome) -> None:
    summary = outcome.to_dict()
    typer.echo(f"Cleanup {summary['state']} ({summary['status']}) in {outcome.duration_seconds:.2f}s:")
    typer.echo(f"  Records examined: {outcome.records_examined}")
    typer.echo(f"  Records eligible: {outcome.records_eligible}")
    typer.echo(f"  Rows deleted:     {outcome.rows_deleted}")
    typer.echo(f"  Rows retained:    {outcome.rows_retained}")
    typer.echo(f"  Blobs deleted:    {outcome.blobs_deleted} (already gone: {outcome.blobs_missing})")
    if outcome.blobs_failed:
        typer.echo(f"  Blobs failed:     {outcome.blobs_failed}")
    if outcome.failure:
        typer.echo(f"  Failure: {outcome.failure}", err=True)


@app.command("check-config")
def check_config(config: ConfigOption = Path("settings.yaml")) -> None:
    """Validate the configuration and print it with defaults applied."""
    settings = _load(config)
    dumped = settings.model_dump(mode="json")
    # Never echo credentials, even secret:// references
    if settings.blob_store.azure is not None:
        dumped["blob_store"]["azure"] = {"auth_method": settings.blob_store.azure.auth_method}
    dumped["database"]["url"] = "<redacted>"
    typer.echo(yaml.safe_dump(dumped, sort_keys=False).rstrip())
    typer.secho("Configuration is valid.", fg=typer.colors.GREEN)


@app.command()
def run(
    config: ConfigOption = Path("settings.yaml"),
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Override cleanup.timeout_seconds.", min=0.001),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be deleted without deleting."),
    ] = False,
) -> None:
    """Run one cleanup now and exit.

    Exit code is non-zero exactly when the HTTP trigger would answer with a
    non-2xx status.

    Examples:

        # See what would be deleted
        expunge run --dry-run --config settings.yaml

        # Run with a 60 second budget
        expunge run --timeout 60 --config settings.yaml
    """
    from expunge.core.retention import Deadline
    from expunge.service import build_blob_store, build_orchestrator, build_secret_manager, open_database

    settings = _load(config)
    try:
        secrets = build_secret_manager(settings)
        store = build_blob_store(settings, secrets)
        with open_database(settings, secrets) as db:
            orchestrator = build_orchestrator(settings, db, store)

            if dry_run:
                preview = orchestrator.preview(limit=10)
                if preview.eligible == 0:
                    typer.echo("No records past their retention window.")
                    return
                typer.echo(f"Would delete {preview.eligible} record(s):")
                for record in preview.sample:
                    typer.echo(f"  {record.record_id} [{record.retention_class}] created {record.created_at.isoformat()} ({len(record.blobs)} blob(s))")
                if preview.eligible > len(preview.sample):
                    typer.echo(f"  ... and {preview.eligible - len(preview.sample)} more")
                return

            deadline = Deadline(timeout if timeout is not None else settings.cleanup.timeout_seconds)
            outcome = orchestrator.run(deadline)
    except (ConfigurationError, StorageUnavailable) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    _print_outcome(outcome)
    if outcome.http_status >= 300:
        raise typer.Exit(1)


@app.command()
def serve(
    config: ConfigOption = Path("settings.yaml"),
    host: Annotated[
        str | None,
        typer.Option("--host", "-h", help="Override server.host."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Override server.port.", min=1, max=65535),
    ] = None,
) -> None:
    """Serve the cleanup endpoint for an external scheduler.

    The database pool is released on shutdown regardless of exit path.
    """
    from expunge.server import create_app
    from expunge.service import build_blob_store, build_orchestrator, build_secret_manager, open_database

    try:
        import uvicorn
    except ImportError as e:
        typer.secho("Error: uvicorn is not installed. Install with: pip install uvicorn", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e

    settings = _load(config)
    try:
        secrets = build_secret_manager(settings)
        store = build_blob_store(settings, secrets)
        db = open_database(settings, secrets)
    except (ConfigurationError, StorageUnavailable) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    with db:
        try:
            orchestrator = build_orchestrator(settings, db, store)
            asgi_app = create_app(orchestrator, timeout_seconds=settings.cleanup.timeout_seconds)
        except ConfigurationError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None

        typer.echo(f"Starting cleanup server on {host or settings.server.host}:{port or settings.server.port}")
        uvicorn.run(
            asgi_app,
            host=host or settings.server.host,
            port=port or settings.server.port,
            log_config=None,  # keep the structlog handlers installed by configure_logging
        )


if __name__ == "__main__":
    app()
