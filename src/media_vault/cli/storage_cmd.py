"""CLI commands for working with the media store.

Every command builds a ``StorageManager`` from settings. When
``DATABASE_URL`` is set the relational backend is available; otherwise the
flat-file backend is used.
"""

import asyncio
import json
import mimetypes
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from loguru import logger

from media_vault.lib.storage.errors import ChecksumMismatchError, InvalidInputError, NotFoundError, StorageError
from media_vault.lib.storage.types import FileKind, ListFilters

if TYPE_CHECKING:
    from media_vault.lib.storage.manager import StorageManager

storage_app = typer.Typer()


@asynccontextmanager
async def _open_manager() -> AsyncIterator["StorageManager"]:
    """Yield a storage manager, disposing of the database engine afterwards."""
    from media_vault.core.config import get_settings
    from media_vault.core.database import create_tables, dispose_engine, get_session_factory, init_engine
    from media_vault.lib.storage.manager import StorageManager

    settings = get_settings()
    session_factory = None
    if settings.database_url:
        init_engine(settings.database_url, echo=False)
        if settings.database_url.startswith("sqlite"):
            await create_tables()
        session_factory = get_session_factory()

    try:
        yield StorageManager.from_settings(settings, session_factory)
    finally:
        await dispose_engine()


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            break
        value /= 1024
    return f"{value:.1f} {unit}"


def _parse_metadata(pairs: list[str]) -> dict[str, str]:
    metadata = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            typer.echo(f"Error: metadata must be KEY=VALUE, got {pair!r}", err=True)
            raise typer.Exit(code=2)
        metadata[key] = value
    return metadata


@storage_app.command("info")
def info() -> None:
    """Show storage usage for active files."""
    asyncio.run(_info_impl())


async def _info_impl() -> None:
    async with _open_manager() as manager:
        adapter = manager.current()
        summary = await adapter.info()
        stats = await adapter.stats()

    typer.echo(f"Backend:         {adapter.backend}")
    typer.echo(f"Total files:     {summary.total_files} ({stats.image_count} images, {stats.video_count} videos)")
    typer.echo(f"Total size:      {_format_size(summary.total_size)}")
    typer.echo(f"Used space:      {_format_size(summary.used_space)}")
    typer.echo(f"Available space: {_format_size(summary.available_space)}")


@storage_app.command("list")
def list_files(
    on_date: Annotated[str | None, typer.Option("--date", help="Upload day (YYYY-MM-DD, local time)")] = None,
    kind: Annotated[str | None, typer.Option("--kind", help="File kind: image or video")] = None,
    limit: Annotated[int, typer.Option("--limit", help="Maximum files to show", min=0)] = 50,
    offset: Annotated[int, typer.Option("--offset", help="Files to skip", min=0)] = 0,
    as_json: Annotated[bool, typer.Option("--json", help="Print records as JSON")] = False,
) -> None:
    """List active files, newest first."""
    try:
        filters = ListFilters(
            date=date.fromisoformat(on_date) if on_date else None,
            file_kind=FileKind(kind.lower()) if kind else None,
            limit=limit,
            offset=offset,
        )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2) from e
    asyncio.run(_list_impl(filters, as_json))


async def _list_impl(filters: ListFilters, as_json: bool) -> None:
    async with _open_manager() as manager:
        records = await manager.current().list(filters)

    if as_json:
        typer.echo(json.dumps([r.to_json_dict() for r in records], indent=2, ensure_ascii=False))
        return
    if not records:
        typer.echo("No files found.")
        return
    for record in records:
        typer.echo(
            f"{record.id}  {record.upload_timestamp:%Y-%m-%d %H:%M}  {record.file_kind:<5}  "
            f"{_format_size(record.size):>10}  {record.original_name}"
        )


@storage_app.command("save")
def save(
    file_path: Annotated[Path, typer.Argument(help="File to store", exists=True, dir_okay=False, readable=True)],
    mime_type: Annotated[str | None, typer.Option("--mime", help="MIME type (guessed from the name if omitted)")] = None,
    name: Annotated[str | None, typer.Option("--name", help="Original name to record")] = None,
    meta: Annotated[list[str] | None, typer.Option("--meta", help="Freeform KEY=VALUE metadata (repeatable)")] = None,
) -> None:
    """Store a file and print its new id."""
    original_name = name or file_path.name
    mime_type = mime_type or mimetypes.guess_type(original_name)[0]
    if mime_type is None:
        typer.echo(f"Error: cannot guess the MIME type of {original_name}; pass --mime", err=True)
        raise typer.Exit(code=2)
    metadata = _parse_metadata(meta or [])
    asyncio.run(_save_impl(file_path, original_name, mime_type, metadata))


async def _save_impl(file_path: Path, original_name: str, mime_type: str, metadata: dict[str, str]) -> None:
    content = await asyncio.to_thread(file_path.read_bytes)
    async with _open_manager() as manager:
        try:
            record = await manager.current().save(content, original_name, mime_type, len(content), metadata)
        except InvalidInputError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e

    typer.echo(f"Saved {record.id}: {record.original_name} -> {record.stored_path}")
    if record.thumbnail_path is None and record.file_kind == FileKind.IMAGE:
        typer.echo("  (no thumbnail generated)")


@storage_app.command("fetch")
def fetch(
    record_id: Annotated[str, typer.Argument(help="File id")],
    output: Annotated[Path, typer.Option("--output", "-o", help="Destination path")],
    thumbnail: Annotated[bool, typer.Option("--thumbnail", help="Fetch the thumbnail instead")] = False,
) -> None:
    """Write a stored file (or its thumbnail) to disk."""
    asyncio.run(_fetch_impl(record_id, output, thumbnail))


async def _fetch_impl(record_id: str, output: Path, thumbnail: bool) -> None:
    async with _open_manager() as manager:
        adapter = manager.current()
        try:
            content = await (adapter.thumbnail(record_id) if thumbnail else adapter.fetch(record_id))
        except StorageError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e

    await asyncio.to_thread(output.write_bytes, content)
    typer.echo(f"Wrote {len(content)} bytes to {output}")


@storage_app.command("delete")
def delete(record_id: Annotated[str, typer.Argument(help="File id")]) -> None:
    """Delete a stored file."""
    asyncio.run(_delete_impl(record_id))


async def _delete_impl(record_id: str) -> None:
    async with _open_manager() as manager:
        removed = await manager.current().remove(record_id)

    if not removed:
        typer.echo(f"Error: file not found: {record_id}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Deleted {record_id}")


@storage_app.command("verify")
def verify(record_id: Annotated[str, typer.Argument(help="File id")]) -> None:
    """Check stored bytes against the recorded checksum."""
    asyncio.run(_verify_impl(record_id))


async def _verify_impl(record_id: str) -> None:
    async with _open_manager() as manager:
        try:
            await manager.current().verify(record_id)
        except (NotFoundError, ChecksumMismatchError) as e:
            typer.echo(f"FAILED: {e}", err=True)
            raise typer.Exit(code=1) from e

    typer.echo(f"OK: {record_id}")


@storage_app.command("migrate-json")
def migrate_json(
    source: Annotated[
        Path | None,
        typer.Option("--source", help="Flat-file index.json (defaults to the one under the storage root)"),
    ] = None,
) -> None:
    """Import flat-file metadata into the relational index (idempotent)."""
    asyncio.run(_migrate_json_impl(source))


async def _migrate_json_impl(source: Path | None) -> None:
    async with _open_manager() as manager:
        try:
            result = await manager.import_from_flat_file(source)
        except StorageError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e

    typer.echo(f"Migrated: {result.migrated_count}, skipped: {result.skipped_count}, errors: {len(result.errors)}")
    for error in result.errors:
        typer.echo(f"  {error}", err=True)
    if result.errors:
        raise typer.Exit(code=1)


@storage_app.command("repair-names")
def repair_names() -> None:
    """Replace corrupted original names in the flat-file index."""
    asyncio.run(_repair_names_impl())


async def _repair_names_impl() -> None:
    from media_vault.core.config import get_settings
    from media_vault.lib.storage.index.flat_file import FlatFileIndex

    settings = get_settings()
    index = FlatFileIndex(settings.storage_path)
    try:
        result = await index.repair_names()
    except StorageError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    logger.info(f"Name repair finished: {result.fixed} fixed")
    typer.echo(f"Repaired {result.fixed} file name(s)")
    for error in result.errors:
        typer.echo(f"  {error}", err=True)
