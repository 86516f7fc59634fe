"""Generic SQLAlchemy repository implementation."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional
from uuid import UUID

from sqlalchemy import distinct, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from beans.database.base import Repository
from beans.database.mappers import apply_entry_fields, entry_to_domain, tag_to_domain
from beans.database.models import Entry, Tag, create_session_factory, entry_tags
from beans.database.schema import get_schema_version, initialize_schema
from beans.domain.entities import EntryFilter, LedgerEntry, Tag as DomainTag
from beans.domain.errors import DatabaseError, NotFoundError, ValidationError, entry_not_found

logger = logging.getLogger(__name__)


class SQLAlchemyRepository(Repository):
    """SQLAlchemy-based implementation of the Repository interface.

    Every public operation runs in its own session; mutations commit as a
    single transaction or roll back entirely.
    """

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy repository.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.bean',
                or 'sqlite://' for an in-memory store)
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)

    @property
    def engine(self):
        return self.session_factory.kw["bind"]

    @contextmanager
    def _session_scope(self, operation: str) -> Iterator[Session]:
        """Yield a session inside one transaction, mapping storage failures."""
        session = self.session_factory()
        try:
            with session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.error("Database error during %s: %s", operation, e)
            raise DatabaseError(f"Failed to {operation}: {e}") from e
        except ValidationError as e:
            raise DatabaseError(f"Invalid data in ledger during {operation}: {e}") from e
        finally:
            session.close()

    def connect(self) -> None:
        """Connect to the database."""
        try:
            with self.engine.connect():
                pass
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to open database: {e}") from e

    def disconnect(self) -> None:
        """Disconnect from the database."""
        self.engine.dispose()

    def initialize_schema(self) -> None:
        """Initialize database schema (create or upgrade tables)."""
        try:
            version = initialize_schema(self.engine)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to initialize schema: {e}") from e
        logger.debug("Ledger schema at version %d", version)

    def schema_version(self) -> int:
        try:
            return get_schema_version(self.engine)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to read schema version: {e}") from e

    # Tag helpers
    def _resolve_tags(self, session: Session, tags: frozenset[DomainTag]) -> list[Tag]:
        """Get tag rows by name, creating the missing ones."""
        names = sorted(tag.name for tag in tags)
        if not names:
            return []
        existing = {
            tag.name: tag for tag in session.query(Tag).filter(Tag.name.in_(names)).all()
        }
        resolved = []
        for name in names:
            tag = existing.get(name)
            if tag is None:
                tag = Tag(name=name)
                session.add(tag)
            resolved.append(tag)
        return resolved

    def _prune_unused_tags(self, session: Session) -> None:
        """Delete tag rows no longer attached to any entry."""
        session.flush()
        used = select(entry_tags.c.tag_id)
        session.query(Tag).filter(~Tag.id.in_(used)).delete(synchronize_session=False)

    # Entry operations
    def insert(self, entry: LedgerEntry) -> UUID:
        """Create an entry. Returns its id."""
        with self._session_scope("insert entry") as session:
            if session.get(Entry, str(entry.id)) is not None:
                raise DatabaseError(f"Entry {entry.id} already exists")
            next_seq = session.query(func.coalesce(func.max(Entry.seq), 0)).scalar() + 1
            orm_entry = Entry(seq=next_seq)
            apply_entry_fields(orm_entry, entry)
            orm_entry.tags = self._resolve_tags(session, entry.tags)
            session.add(orm_entry)
        logger.debug("Inserted entry %s", entry.id)
        return entry.id

    def update(self, entry: LedgerEntry) -> None:
        """Replace all fields of an entry and its tag associations."""
        with self._session_scope("update entry") as session:
            orm_entry = session.get(Entry, str(entry.id))
            if orm_entry is None:
                raise NotFoundError(entry_not_found(entry.id))
            apply_entry_fields(orm_entry, entry)
            orm_entry.tags = self._resolve_tags(session, entry.tags)
            self._prune_unused_tags(session)
        logger.debug("Updated entry %s", entry.id)

    def delete(self, entry_id: UUID) -> None:
        """Delete an entry; its tag associations go with it."""
        with self._session_scope("delete entry") as session:
            orm_entry = session.get(Entry, str(entry_id))
            if orm_entry is None:
                raise NotFoundError(entry_not_found(entry_id))
            session.delete(orm_entry)
            self._prune_unused_tags(session)
        logger.debug("Deleted entry %s", entry_id)

    def get(self, entry_id: UUID) -> Optional[LedgerEntry]:
        """Get entry by id."""
        with self._session_scope("get entry") as session:
            orm_entry = session.get(Entry, str(entry_id))
            if orm_entry is None:
                return None
            return entry_to_domain(orm_entry)

    def _filtered_query(self, session: Session, entry_filter: EntryFilter) -> Query:
        """Translate an EntryFilter into one query over entries."""
        query = session.query(Entry)

        if entry_filter.start is not None:
            query = query.filter(Entry.date >= entry_filter.start)
        if entry_filter.end is not None:
            query = query.filter(Entry.date < entry_filter.end)
        if entry_filter.entry_type is not None:
            query = query.filter(Entry.entry_type == entry_filter.entry_type.value)
        if entry_filter.currency is not None:
            query = query.filter(Entry.currency == entry_filter.currency)

        if entry_filter.tags:
            # Entries carrying every requested tag
            names = sorted(tag.name for tag in entry_filter.tags)
            matching_ids = (
                select(entry_tags.c.entry_id)
                .join(Tag, Tag.id == entry_tags.c.tag_id)
                .where(Tag.name.in_(names))
                .group_by(entry_tags.c.entry_id)
                .having(func.count(distinct(Tag.name)) == len(names))
            )
            query = query.filter(Entry.id.in_(matching_ids))

        return query

    def find(self, entry_filter: EntryFilter) -> list[LedgerEntry]:
        """List entries matching a filter, ordered by date then insertion."""
        with self._session_scope("list entries") as session:
            query = self._filtered_query(session, entry_filter).order_by(
                Entry.date, Entry.seq
            )
            if entry_filter.offset is not None:
                query = query.offset(entry_filter.offset)
            if entry_filter.limit is not None:
                query = query.limit(entry_filter.limit)
            entries = [entry_to_domain(orm_entry) for orm_entry in query.all()]
        logger.debug("Filter %s matched %d entries", entry_filter, len(entries))
        return entries

    def count(self, entry_filter: EntryFilter) -> int:
        """Count entries matching a filter (limit and offset are ignored)."""
        with self._session_scope("count entries") as session:
            return self._filtered_query(session, entry_filter).count()

    # Tag operations
    def list_tags(self) -> list[DomainTag]:
        """List every tag attached to at least one entry, by name."""
        with self._session_scope("list tags") as session:
            used = select(entry_tags.c.tag_id)
            tags = session.query(Tag).filter(Tag.id.in_(used)).order_by(Tag.name).all()
            return [tag_to_domain(tag) for tag in tags]
