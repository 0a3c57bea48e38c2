"""Integration tests for the `media-vault db` CLI commands."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest
from typer.testing import CliRunner

from media_vault.cli.app import app

runner = CliRunner()

PROJECT_ROOT = Path(__file__).resolve().parents[3]


@pytest.fixture
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> tuple[str, Path]:
    monkeypatch.chdir(PROJECT_ROOT)
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    db_path = tmp_path / "media.db"
    return f"sqlite+aiosqlite:///{db_path}", db_path


class TestDbCommands:
    """Tests for db upgrade / downgrade."""

    def test_upgrade_creates_file_metadata(self, database_url: tuple[str, Path]) -> None:
        url, db_path = database_url
        result = runner.invoke(app, ["db", "upgrade", "--database-url", url])
        assert result.exit_code == 0, result.output

        with sqlite3.connect(db_path) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
            indexes = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='index'")}
        assert "file_metadata" in tables
        assert "ix_file_metadata_upload_timestamp" in indexes
        assert "ix_file_metadata_checksum" in indexes

    def test_downgrade_drops_table(self, database_url: tuple[str, Path]) -> None:
        url, db_path = database_url
        assert runner.invoke(app, ["db", "upgrade", "--database-url", url]).exit_code == 0
        result = runner.invoke(app, ["db", "downgrade", "base", "--database-url", url])
        assert result.exit_code == 0, result.output

        with sqlite3.connect(db_path) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert "file_metadata" not in tables
