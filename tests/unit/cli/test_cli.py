"""Tests for the expunge CLI."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from typer.testing import CliRunner

from expunge import __version__
from expunge.cli import app
from expunge.contracts.records import BlobReference
from expunge.core.blob_store import FilesystemBlobStore
from expunge.core.database import ExposureDB
from tests.fixtures.database import record_ids, seed_record

runner = CliRunner()


def _write_settings(tmp_path: Path, *, blob_path: Path | None = None, extra: str = "") -> Path:
    settings_path = tmp_path / "settings.yaml"
    settings_path.write_text(
        f"""
database:
  url: sqlite:///{tmp_path / "exposures.db"}
  create_tables: true
blob_store:
  backend: filesystem
  base_path: {blob_path or tmp_path / "blobs"}
retention:
  windows:
    exposure: 30d
cleanup:
  batch_size: 2
logging:
  level: WARNING
{extra}
"""
    )
    return settings_path


def _seed(tmp_path: Path) -> tuple[ExposureDB, FilesystemBlobStore]:
    """Two stale records and one fresh one, each with a blob on disk."""
    db = ExposureDB.from_url(f"sqlite:///{tmp_path / 'exposures.db'}")
    store = FilesystemBlobStore(tmp_path / "blobs")
    now = datetime.now(UTC)
    for record_id, age in [("old", 100), ("mid", 40), ("new", 5)]:
        ref = BlobReference("exposures", f"{record_id}.json")
        store.put(ref, b"{}")
        seed_record(db, record_id, created_at=now - timedelta(days=age), blobs=[ref])
    return db, store


class TestVersion:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"expunge version {__version__}" in result.output


class TestCheckConfig:
    def test_valid_config(self, tmp_path: Path) -> None:
        settings_path = _write_settings(tmp_path)

        result = runner.invoke(app, ["check-config", "--config", str(settings_path)])

        assert result.exit_code == 0
        assert "Configuration is valid." in result.output
        assert "batch_size: 2" in result.output
        assert "<redacted>" in result.output
        assert "exposures.db" not in result.output

    def test_missing_file_exits_1(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["check-config", "--config", str(tmp_path / "absent.yaml")])

        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_invalid_config_exits_1(self, tmp_path: Path) -> None:
        settings_path = _write_settings(tmp_path, extra="server:\n  port: 0\n")

        result = runner.invoke(app, ["check-config", "--config", str(settings_path)])

        assert result.exit_code == 1
        assert "server.port" in result.output

    def test_config_from_environment(self, tmp_path: Path) -> None:
        settings_path = _write_settings(tmp_path)

        result = runner.invoke(app, ["check-config"], env={"EXPUNGE_CONFIG": str(settings_path)})

        assert result.exit_code == 0


class TestRunCommand:
    def test_run_deletes_stale_records(self, tmp_path: Path) -> None:
        db, store = _seed(tmp_path)
        settings_path = _write_settings(tmp_path)

        result = runner.invoke(app, ["run", "--config", str(settings_path)])

        assert result.exit_code == 0, result.output
        assert "Rows deleted:     2" in result.output
        assert record_ids(db) == {"new"}
        assert store.exists(BlobReference("exposures", "new.json"))
        assert not store.exists(BlobReference("exposures", "old.json"))
        db.close()

    def test_dry_run_deletes_nothing(self, tmp_path: Path) -> None:
        db, store = _seed(tmp_path)
        settings_path = _write_settings(tmp_path)

        result = runner.invoke(app, ["run", "--dry-run", "--config", str(settings_path)])

        assert result.exit_code == 0, result.output
        assert "Would delete 2 record(s):" in result.output
        assert "old [exposure]" in result.output
        assert record_ids(db) == {"old", "mid", "new"}
        assert store.exists(BlobReference("exposures", "old.json"))
        db.close()

    def test_dry_run_with_nothing_stale(self, tmp_path: Path) -> None:
        settings_path = _write_settings(tmp_path)

        result = runner.invoke(app, ["run", "--dry-run", "--config", str(settings_path)])

        assert result.exit_code == 0
        assert "No records past their retention window." in result.output

    def test_unusable_blob_store_exits_1(self, tmp_path: Path) -> None:
        not_a_dir = tmp_path / "blobs-file"
        not_a_dir.write_text("x")
        settings_path = _write_settings(tmp_path, blob_path=not_a_dir)

        result = runner.invoke(app, ["run", "--config", str(settings_path)])

        assert result.exit_code == 1
        assert "blob unavailable" in result.output

    def test_missing_secret_exits_1(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("EXPUNGE_TEST_DB_URL", raising=False)
        settings_path = tmp_path / "settings.yaml"
        settings_path.write_text("database:\n  url: secret://EXPUNGE_TEST_DB_URL\n")

        result = runner.invoke(app, ["run", "--config", str(settings_path)])

        assert result.exit_code == 1
        assert "database.url" in result.output
