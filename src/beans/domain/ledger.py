"""Ledger manager: the single gate through which entries are stored."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from uuid import UUID

from beans.config import LEDGER_SUFFIX
from beans.database.base import Repository
from beans.database.factories import create_sqlite_repository
from beans.domain.entities import EntryFilter, LedgerEntry, Tag
from beans.domain.errors import (
    DatabaseError,
    NotFoundError,
    ValidationError,
    entry_not_found,
    invalid_ledger_path,
)

logger = logging.getLogger(__name__)


class LedgerManager:
    """Owns the repository of one ledger store.

    Callers never talk to the repository directly. Every write re-validates
    the entry through its builder before it reaches storage, and storage
    failures are re-raised with the operation and entry that caused them.
    """

    def __init__(self, repository: Repository, path: Optional[Path] = None):
        """Initialize ledger manager.

        Args:
            repository: Connected repository with an initialized schema
            path: Location of the ledger file, None for in-memory stores
        """
        self.repository = repository
        self._path = path

    @classmethod
    def open(cls, path: str | Path) -> "LedgerManager":
        """Open a ledger file, creating it and its schema if needed.

        Args:
            path: Ledger file path, which must end in ``.bean``

        Raises:
            ValidationError: If the path does not carry the ledger suffix
            DatabaseError: If the store cannot be opened or initialized
        """
        path = Path(path).expanduser()
        if path.suffix != LEDGER_SUFFIX:
            raise ValidationError(invalid_ledger_path(path, LEDGER_SUFFIX), field="path")

        repository = create_sqlite_repository(path)
        cls._prepare(repository)
        logger.info("Opened ledger %s", path)
        return cls(repository, path)

    @classmethod
    def in_memory(cls) -> "LedgerManager":
        """Create an ephemeral ledger that disappears when closed."""
        repository = create_sqlite_repository(None)
        cls._prepare(repository)
        logger.debug("Created in-memory ledger")
        return cls(repository)

    @staticmethod
    def _prepare(repository: Repository) -> None:
        repository.connect()
        repository.initialize_schema()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def close(self) -> None:
        self.repository.disconnect()

    def __enter__(self) -> "LedgerManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def add_entry(self, entry: LedgerEntry) -> UUID:
        """Store a new entry and return its id."""
        entry = entry.to_builder().build()
        try:
            return self.repository.insert(entry)
        except DatabaseError as e:
            raise DatabaseError(f"Failed to add entry {entry.id}: {e}") from e

    def update_entry(self, entry: LedgerEntry) -> LedgerEntry:
        """Replace a stored entry, stamping a fresh ``updated_at``.

        Returns:
            The entry as stored

        Raises:
            NotFoundError: If no entry has this id
        """
        entry = entry.to_builder().updated_at(datetime.now(timezone.utc)).build()
        try:
            self.repository.update(entry)
        except DatabaseError as e:
            raise DatabaseError(f"Failed to update entry {entry.id}: {e}") from e
        return entry

    def delete_entry(self, entry_id: UUID) -> None:
        try:
            self.repository.delete(entry_id)
        except DatabaseError as e:
            raise DatabaseError(f"Failed to delete entry {entry_id}: {e}") from e

    def get_entry(self, entry_id: UUID) -> LedgerEntry:
        """Get an entry by id.

        Raises:
            NotFoundError: If no entry has this id
        """
        try:
            entry = self.repository.get(entry_id)
        except DatabaseError as e:
            raise DatabaseError(f"Failed to get entry {entry_id}: {e}") from e
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id))
        return entry

    def list_entries(self, entry_filter: Optional[EntryFilter] = None) -> list[LedgerEntry]:
        """List entries matching a filter, oldest first. No filter lists all."""
        try:
            return self.repository.find(entry_filter or EntryFilter())
        except DatabaseError as e:
            raise DatabaseError(f"Failed to list entries: {e}") from e

    def count_entries(self, entry_filter: Optional[EntryFilter] = None) -> int:
        try:
            return self.repository.count(entry_filter or EntryFilter())
        except DatabaseError as e:
            raise DatabaseError(f"Failed to count entries: {e}") from e

    def list_tags(self) -> list[Tag]:
        try:
            return self.repository.list_tags()
        except DatabaseError as e:
            raise DatabaseError(f"Failed to list tags: {e}") from e
