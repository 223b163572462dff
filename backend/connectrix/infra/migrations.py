"""Plain-SQL schema migrations applied in filename order."""

from __future__ import annotations

import logging
import pathlib

import asyncpg

_LOG = logging.getLogger(__name__)

MIGRATIONS_DIR = pathlib.Path(__file__).resolve().parents[3] / "infra" / "migrations"


def migration_version(path: pathlib.Path) -> str:
	return path.name.split("_", 1)[0]


async def apply_migrations(conn: asyncpg.Connection, directory: pathlib.Path = MIGRATIONS_DIR) -> list[str]:
	"""Apply every pending ``*.sql`` file and return the versions applied."""
	paths = sorted(directory.glob("*.sql"))
	if not paths:
		raise FileNotFoundError(f"no migration files found in {directory}")
	await conn.execute(
		"""
		CREATE TABLE IF NOT EXISTS schema_migrations (
			version TEXT PRIMARY KEY,
			applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
		)
		"""
	)
	applied = {row["version"] for row in await conn.fetch("SELECT version FROM schema_migrations")}
	newly_applied: list[str] = []
	for path in paths:
		version = migration_version(path)
		if version in applied:
			continue
		async with conn.transaction():
			await conn.execute(path.read_text())
			await conn.execute(
				"INSERT INTO schema_migrations (version) VALUES ($1) ON CONFLICT (version) DO UPDATE SET applied_at = NOW()",
				version,
			)
		_LOG.info("migration applied", extra={"event": "migration_applied", "file": path.name})
		newly_applied.append(version)
	return newly_applied
