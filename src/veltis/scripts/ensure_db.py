"""Create the configured Postgres database before migrations run."""
from __future__ import annotations

import argparse
import logging
import sys
from urllib.parse import urlsplit, urlunsplit

import psycopg
from psycopg import sql

from veltis.core.settings import settings

logger = logging.getLogger("veltis.ensure_db")


def to_psycopg_url(uri: str) -> str:
    """Return a plain `postgresql://` URI for psycopg.connect().

    Surrounding quotes are stripped and SQLAlchemy driver suffixes such as
    `postgresql+psycopg` are removed.
    """
    uri = (uri or "").strip().strip("'\"")
    if not uri:
        raise ValueError("DATABASE_URL is empty")

    parts = urlsplit(uri)
    scheme = parts.scheme.split("+", 1)[0]
    if scheme not in {"postgresql", "postgres"}:
        raise ValueError(f"Not a Postgres URL: {uri!r}")
    return urlunsplit(("postgresql", parts.netloc, parts.path, parts.query, parts.fragment))


def maintenance_target(db_url: str) -> tuple[str, str]:
    """Return `(admin_url, target_db)` where admin_url points at the `postgres` database."""
    parts = urlsplit(db_url)
    target_db = parts.path.lstrip("/") or "postgres"
    if parts.netloc:
        admin_url = urlunsplit(("postgresql", parts.netloc, "/postgres", parts.query, ""))
    else:
        admin_url = "postgresql:///postgres"
    return admin_url, target_db


def ensure_database_exists(db_url: str) -> bool:
    """Create the database if missing; return True when it was created."""
    admin_url, target_db = maintenance_target(db_url)
    with psycopg.connect(admin_url, autocommit=True) as conn, conn.cursor() as cur:
        cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (target_db,))
        if cur.fetchone() is not None:
            logger.info("Database %s already exists", target_db)
            return False
        cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(target_db)))
    logger.info("Created database %s", target_db)
    return True


def main() -> None:
    logging.basicConfig(level=settings.log_level.upper())
    parser = argparse.ArgumentParser(description="Ensure the configured database exists")
    parser.add_argument(
        "--url",
        default=None,
        help="Override database URL (defaults to effective settings URL)",
    )
    args = parser.parse_args()

    raw_url = args.url or settings.effective_database_url
    if raw_url.startswith("sqlite"):
        logger.info("SQLite database %s needs no provisioning", raw_url)
        return
    try:
        ensure_database_exists(to_psycopg_url(raw_url))
    except (ValueError, psycopg.Error) as exc:
        logger.error("Could not ensure database: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
