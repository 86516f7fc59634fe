"""Repository factory functions."""

from pathlib import Path
from typing import Optional

from beans.database.sqlalchemy_db import SQLAlchemyRepository


def create_sqlite_repository(database_path: Optional[str | Path] = None) -> SQLAlchemyRepository:
    """Create a SQLite-backed repository.

    Args:
        database_path: Path to the SQLite file. If None, an in-memory store
            is created.

    Returns:
        SQLAlchemyRepository instance configured for SQLite
    """
    if database_path is None:
        return SQLAlchemyRepository("sqlite://")

    path = Path(database_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return SQLAlchemyRepository(f"sqlite:///{path}")
