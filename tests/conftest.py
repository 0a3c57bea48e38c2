"""Shared test fixtures for storage roots, async database sessions and media samples."""

import io
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from media_vault.core.config import Settings
from media_vault.lib.storage.adapter import StorageAdapter
from media_vault.lib.storage.index.flat_file import FlatFileIndex
from media_vault.lib.storage.index.relational import RelationalIndex
from media_vault.lib.storage.types import StorageConfig
from media_vault.models.base import Base


def make_png(width: int = 64, height: int = 48, color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    """Encode a solid-color PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Test application settings rooted in a temporary directory."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        storage_path=str(tmp_path / "storage"),
        _env_file=None,
    )


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def storage_config(storage_root: Path) -> StorageConfig:
    return StorageConfig(root=storage_root)


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """Create an in-memory async SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, expire_on_commit=False)


@pytest.fixture
def flat_index(storage_root: Path) -> FlatFileIndex:
    return FlatFileIndex(storage_root)


@pytest.fixture
def relational_index(session_factory: async_sessionmaker[AsyncSession]) -> RelationalIndex:
    return RelationalIndex(session_factory)


@pytest.fixture(params=["flat-file", "relational"])
def any_index(request: pytest.FixtureRequest) -> FlatFileIndex | RelationalIndex:
    """Each metadata index backend in turn."""
    if request.param == "flat-file":
        return request.getfixturevalue("flat_index")
    return request.getfixturevalue("relational_index")


@pytest.fixture
def adapter(storage_config: StorageConfig, any_index: FlatFileIndex | RelationalIndex) -> StorageAdapter:
    """A storage adapter over each metadata index backend in turn."""
    return StorageAdapter(storage_config, any_index)


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def image_factory():
    """Return a helper that encodes solid-color PNGs of a given size."""
    return make_png
