# src/veltis/scripts/migrate.py
"""Apply Alembic migrations, or create tables directly for local development."""
from __future__ import annotations

import argparse
from pathlib import Path

from alembic import command
from alembic.config import Config

from veltis.core.settings import settings

MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


def alembic_config() -> Config:
    cfg = Config(str(MIGRATIONS_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", settings.database_url_sync)
    return cfg


def run_upgrade_head() -> None:
    command.upgrade(alembic_config(), "head")


def main() -> None:
    parser = argparse.ArgumentParser(description="Bring the database schema up to date")
    parser.add_argument(
        "--create-all",
        action="store_true",
        help="Create tables from model metadata instead of running migrations.",
    )
    args = parser.parse_args()

    if args.create_all:
        from veltis.db.session import create_tables

        create_tables()
        return
    run_upgrade_head()


if __name__ == "__main__":
    main()
