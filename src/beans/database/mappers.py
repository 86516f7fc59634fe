"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes.
"""

from uuid import UUID

from beans.domain import entities as domain
from beans.domain.currency import Currency
from beans.database.models import Entry as ORMEntry, Tag as ORMTag


def entry_to_domain(orm_entry: ORMEntry) -> domain.LedgerEntry:
    """Convert SQLAlchemy Entry model to domain LedgerEntry entity.

    Raises:
        ValidationError: If a stored value no longer satisfies the domain rules
    """
    return domain.LedgerEntry(
        id=UUID(orm_entry.id),
        date=orm_entry.date,
        name=orm_entry.name,
        amount=orm_entry.amount,
        currency=Currency.from_code(orm_entry.currency),
        entry_type=domain.EntryType.parse(orm_entry.entry_type),
        description=orm_entry.description,
        tags=frozenset(tag_to_domain(tag) for tag in orm_entry.tags),
        created_at=orm_entry.created_at,
        updated_at=orm_entry.updated_at,
    )


def tag_to_domain(orm_tag: ORMTag) -> domain.Tag:
    """Convert SQLAlchemy Tag model to domain Tag."""
    return domain.Tag(orm_tag.name)


def apply_entry_fields(orm_entry: ORMEntry, entry: domain.LedgerEntry) -> None:
    """Copy every scalar field of a domain entry onto an ORM row."""
    orm_entry.id = str(entry.id)
    orm_entry.date = entry.date
    orm_entry.name = entry.name
    orm_entry.currency = entry.currency.code
    orm_entry.amount = entry.amount
    orm_entry.description = entry.description
    orm_entry.entry_type = entry.entry_type.value
    orm_entry.created_at = entry.created_at
    orm_entry.updated_at = entry.updated_at
