"""Persistence layer for beans ledgers."""

from beans.database.base import Repository
from beans.database.factories import create_sqlite_repository

__all__ = ["Repository", "create_sqlite_repository"]
