"""
PostgreSQL repository adapter - Implements ProfileRepository protocol.

This module provides the PostgreSQL implementation of the domain's
profile repository port using psycopg3 with raw SQL. Once an email
change is verified, the new address is mirrored into the user's
profile row so the rest of the application sees it.
"""

import logging
from pathlib import Path

from psycopg_pool import ConnectionPool

logger = logging.getLogger(__name__)


class PostgresProfileRepository:
    """
    Implements ProfileRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def update_email(self, user_id: str, email: str) -> bool:
        """
        Record a verified email on the user's profile.

        Args:
            user_id: Identity provider user id
            email: Newly verified email address

        Returns:
            True if a profile row was updated, False if the user has no profile
        """
        sql = """
            UPDATE user_profiles
            SET email = %s, updated_at = NOW()
            WHERE user_id = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email, user_id))
            conn.commit()
            updated = cursor.rowcount == 1

        if updated:
            logger.info("Profile email updated for user %s", user_id)
        return updated

    def get_email(self, user_id: str) -> str | None:
        """Return the email stored on the user's profile, or None if absent."""
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("SELECT email FROM user_profiles WHERE user_id = %s", (user_id,))
            row = cursor.fetchone()
        return row[0] if row is not None else None


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
