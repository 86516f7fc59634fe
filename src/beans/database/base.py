"""Abstract repository interface."""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

# Import entities directly to avoid circular import through domain/__init__.py
from beans.domain.entities import EntryFilter, LedgerEntry, Tag


class Repository(ABC):
    """Abstract storage interface for ledger entries and their tags."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Release the store's connections."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Create or upgrade the schema. Safe to call repeatedly."""
        pass

    @abstractmethod
    def schema_version(self) -> int:
        """Return the schema version recorded in the store."""
        pass

    # Entry operations
    @abstractmethod
    def insert(self, entry: LedgerEntry) -> UUID:
        """Store a new entry. Returns its id."""
        pass

    @abstractmethod
    def update(self, entry: LedgerEntry) -> None:
        """Replace a stored entry and its tag set."""
        pass

    @abstractmethod
    def delete(self, entry_id: UUID) -> None:
        """Delete an entry and its tag associations."""
        pass

    @abstractmethod
    def get(self, entry_id: UUID) -> Optional[LedgerEntry]:
        """Get entry by id."""
        pass

    @abstractmethod
    def find(self, entry_filter: EntryFilter) -> list[LedgerEntry]:
        """List entries matching a filter, oldest first."""
        pass

    @abstractmethod
    def count(self, entry_filter: EntryFilter) -> int:
        """Count entries matching a filter."""
        pass

    # Tag operations
    @abstractmethod
    def list_tags(self) -> list[Tag]:
        """List every tag attached to at least one entry."""
        pass
