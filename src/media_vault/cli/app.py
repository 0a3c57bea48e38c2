"""Typer CLI root application."""

import typer

from media_vault.core.config import get_settings
from media_vault.core.logging import setup_logging

app = typer.Typer(name="media-vault", help="Personal media backup storage CLI")


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir, json_logs=settings.log_json)


def _register_subcommands() -> None:
    """Register all CLI subcommand groups."""
    from media_vault.cli.db_cmd import db_app
    from media_vault.cli.storage_cmd import storage_app

    app.add_typer(db_app, name="db", help="Database migration commands")
    app.add_typer(storage_app, name="storage", help="Media storage commands")


_register_subcommands()
