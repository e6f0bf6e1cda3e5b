"""Smoke tests for CRM Alembic migrations."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from crm.config import settings
from crm.models import Base


def _config() -> Config:
    repo_root = Path(__file__).resolve().parents[2]
    return Config(str(repo_root / "crm" / "alembic.ini"))


def _tables(db_path: Path) -> set[str]:
    engine = create_engine(f"sqlite:///{db_path}")
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_alembic_upgrade_matches_models(tmp_path: Path, monkeypatch):
    db_path = tmp_path / "crm_migrations.db"
    monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{db_path}")

    command.upgrade(_config(), "head")

    tables = _tables(db_path)
    assert set(Base.metadata.tables) <= tables
    assert "alembic_version" in tables


def test_alembic_downgrade_drops_tables(tmp_path: Path, monkeypatch):
    db_path = tmp_path / "crm_downgrade.db"
    monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{db_path}")

    cfg = _config()
    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    assert _tables(db_path) == {"alembic_version"}


def test_google_service_flags_migrated(tmp_path: Path, monkeypatch):
    db_path = tmp_path / "crm_google.db"
    monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{db_path}")

    command.upgrade(_config(), "head")

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        columns = {c["name"] for c in inspect(engine).get_columns("calendar_integration")}
    finally:
        engine.dispose()
    assert {"scopes", "calendar_enabled", "sheets_enabled", "drive_enabled", "contacts_enabled"} <= columns
