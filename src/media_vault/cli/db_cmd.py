"""Database migration CLI commands using Alembic programmatically."""

from typing import TYPE_CHECKING

import typer
from loguru import logger

if TYPE_CHECKING:
    from alembic.config import Config

db_app = typer.Typer()


def _alembic_config(database_url: str | None) -> "Config":
    from alembic.config import Config

    config = Config("alembic.ini")
    if database_url:
        config.set_main_option("sqlalchemy.url", database_url)
    return config


@db_app.command()
def upgrade(
    revision: str = typer.Argument("head", help="Target revision"),
    database_url: str | None = typer.Option(None, "--database-url", help="Override DATABASE_URL"),
) -> None:
    """Create or update the file_metadata schema up to the target revision."""
    from alembic import command

    config = _alembic_config(database_url)
    logger.info(f"Upgrading database to {revision}")
    command.upgrade(config, revision)
    logger.info("Database upgrade complete")


@db_app.command()
def downgrade(
    revision: str = typer.Argument("-1", help="Target revision"),
    database_url: str | None = typer.Option(None, "--database-url", help="Override DATABASE_URL"),
) -> None:
    """Roll the schema back to the target revision."""
    from alembic import command

    config = _alembic_config(database_url)
    logger.info(f"Downgrading database to {revision}")
    command.downgrade(config, revision)
    logger.info("Database downgrade complete")


@db_app.command()
def current(
    database_url: str | None = typer.Option(None, "--database-url", help="Override DATABASE_URL"),
) -> None:
    """Show the current database migration revision."""
    from alembic import command

    command.current(_alembic_config(database_url), verbose=True)
