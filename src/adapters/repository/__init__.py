"""Repository adapters - Database implementations."""

from .postgres import PostgresProfileRepository, run_migrations

__all__ = ["PostgresProfileRepository", "run_migrations"]
