"""Tests for the SQLAlchemy repository."""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import create_engine, text

from beans.database.factories import create_sqlite_repository
from beans.database.models import SCHEMA_VERSION
from beans.domain.entities import EntryFilter, EntryType, Tag
from beans.domain.errors import DatabaseError, NotFoundError

from conftest import make_entry, utc


@pytest.fixture
def repository():
    repo = create_sqlite_repository(None)
    repo.connect()
    repo.initialize_schema()
    yield repo
    repo.disconnect()


def _tag_rows(repository):
    with repository.engine.connect() as conn:
        return conn.execute(text("SELECT name FROM tags ORDER BY name")).scalars().all()


def _association_count(repository):
    with repository.engine.connect() as conn:
        return conn.execute(text("SELECT COUNT(*) FROM entry_tags")).scalar()


class TestSchema:
    def test_initialize_schema_is_idempotent(self, repository):
        repository.initialize_schema()
        repository.initialize_schema()
        assert repository.schema_version() == SCHEMA_VERSION

    def test_reopen_file_store_keeps_entries(self, tmp_path):
        path = tmp_path / "ledger.bean"
        repo = create_sqlite_repository(path)
        repo.connect()
        repo.initialize_schema()
        entry = make_entry(tags=["food"])
        repo.insert(entry)
        repo.disconnect()

        reopened = create_sqlite_repository(path)
        reopened.connect()
        reopened.initialize_schema()
        assert reopened.find(EntryFilter()) == [entry]
        reopened.disconnect()

    def test_upgrades_version_one_store(self, tmp_path):
        path = tmp_path / "old.bean"
        engine = create_engine(f"sqlite:///{path}")
        with engine.begin() as conn:
            conn.execute(text(
                "CREATE TABLE entries (id VARCHAR(36) PRIMARY KEY, date DATETIME NOT NULL, "
                "name VARCHAR NOT NULL, currency VARCHAR(3) NOT NULL, amount VARCHAR NOT NULL, "
                "description VARCHAR, entry_type VARCHAR(16) NOT NULL, "
                "created_at DATETIME NOT NULL, updated_at DATETIME NOT NULL)"
            ))
            conn.execute(text("CREATE TABLE tags (id INTEGER PRIMARY KEY, name VARCHAR(50) NOT NULL UNIQUE)"))
            conn.execute(text(
                "CREATE TABLE entry_tags (entry_id VARCHAR(36) REFERENCES entries(id) ON DELETE CASCADE, "
                "tag_id INTEGER REFERENCES tags(id) ON DELETE CASCADE, PRIMARY KEY (entry_id, tag_id))"
            ))
            for name in ("Second", "First"):
                conn.execute(
                    text(
                        "INSERT INTO entries VALUES (:id, '2024-01-01 00:00:00.000000', :name, "
                        "'USD', '1.50', NULL, 'expense', '2024-01-01 00:00:00.000000', "
                        "'2024-01-01 00:00:00.000000')"
                    ),
                    {"id": str(uuid4()), "name": name},
                )
        engine.dispose()

        repo = create_sqlite_repository(path)
        repo.connect()
        assert repo.schema_version() == 1
        repo.initialize_schema()

        assert repo.schema_version() == SCHEMA_VERSION
        entries = repo.find(EntryFilter())
        # Same date: insertion order is kept
        assert [entry.name for entry in entries] == ["Second", "First"]
        assert entries[0].amount == Decimal("1.50")
        repo.disconnect()


class TestEntryOperations:
    def test_round_trip_preserves_every_field(self, repository):
        entry = make_entry(
            "Consulting",
            "1234.567890123456789",
            currency="EUR",
            entry_type=EntryType.INCOME,
            date=utc(2024, 2, 29, 13, 45),
            tags=["work", "client-a"],
            description="Invoice #12",
        )
        assert repository.insert(entry) == entry.id

        found = repository.find(EntryFilter(currency="EUR"))
        assert found == [entry]
        assert repository.get(entry.id) == entry

    def test_insert_duplicate_id(self, repository):
        entry = make_entry()
        repository.insert(entry)
        with pytest.raises(DatabaseError):
            repository.insert(entry)

    def test_get_missing_returns_none(self, repository):
        assert repository.get(uuid4()) is None

    def test_update_replaces_fields_and_tags(self, repository):
        entry = make_entry(tags=["food", "weekly"])
        repository.insert(entry)

        changed = entry.to_builder().amount("20.00").tags(["food", "treat"]).build()
        repository.update(changed)

        stored = repository.get(entry.id)
        assert stored.amount == Decimal("20.00")
        assert stored.tags == frozenset({Tag("food"), Tag("treat")})
        assert _tag_rows(repository) == ["food", "treat"]

    def test_update_missing_entry(self, repository):
        with pytest.raises(NotFoundError):
            repository.update(make_entry())

    def test_delete_removes_associations_and_unused_tags(self, repository):
        kept = make_entry("Lunch", tags=["food"])
        removed = make_entry("Rent", tags=["food", "housing"])
        repository.insert(kept)
        repository.insert(removed)

        repository.delete(removed.id)

        assert repository.get(removed.id) is None
        assert _association_count(repository) == 1
        assert _tag_rows(repository) == ["food"]
        assert repository.list_tags() == [Tag("food")]

    def test_delete_missing_entry(self, repository):
        with pytest.raises(NotFoundError):
            repository.delete(uuid4())

    def test_tags_shared_between_entries(self, repository):
        repository.insert(make_entry("A", tags=["food"]))
        repository.insert(make_entry("B", tags=["Food"]))
        assert _tag_rows(repository) == ["food"]
        assert _association_count(repository) == 2


class TestFind:
    @pytest.fixture
    def populated(self, repository):
        entries = {
            "salary": make_entry("Salary", "5000", entry_type=EntryType.INCOME, date=utc(2024, 1, 1), tags=["work"]),
            "rent": make_entry("Rent", "1200", date=utc(2024, 1, 5), tags=["housing", "monthly"]),
            "phone": make_entry("Phone", "40", date=utc(2024, 1, 5), tags=["monthly"]),
            "hotel": make_entry("Hotel", "300", currency="EUR", date=utc(2024, 2, 10), tags=["travel"]),
            "untagged": make_entry("Cash", "5", date=utc(2024, 3, 1)),
        }
        for entry in entries.values():
            repository.insert(entry)
        return entries

    def _names(self, repository, **kwargs):
        return [entry.name for entry in repository.find(EntryFilter(**kwargs))]

    def test_unconstrained_returns_all_in_order(self, repository, populated):
        # Rent and Phone share a date; insertion order breaks the tie
        assert self._names(repository) == ["Salary", "Rent", "Phone", "Hotel", "Cash"]

    def test_date_range_is_half_open(self, repository, populated):
        assert self._names(repository, start=utc(2024, 1, 5), end=utc(2024, 3, 1)) == [
            "Rent",
            "Phone",
            "Hotel",
        ]

    def test_entry_type(self, repository, populated):
        assert self._names(repository, entry_type="income") == ["Salary"]

    def test_currency(self, repository, populated):
        assert self._names(repository, currency="eur") == ["Hotel"]

    def test_single_tag(self, repository, populated):
        assert self._names(repository, tags=["monthly"]) == ["Rent", "Phone"]

    def test_tags_must_all_match(self, repository, populated):
        assert self._names(repository, tags=["monthly", "housing"]) == ["Rent"]
        assert self._names(repository, tags=["monthly", "travel"]) == []

    def test_unknown_tag_matches_nothing(self, repository, populated):
        assert self._names(repository, tags=["unknown"]) == []

    def test_filters_combine(self, repository, populated):
        assert self._names(
            repository, start=utc(2024, 1, 2), entry_type="expense", tags=["monthly"], currency="USD"
        ) == ["Rent", "Phone"]

    def test_limit_and_offset(self, repository, populated):
        assert self._names(repository, limit=2, offset=1) == ["Rent", "Phone"]

    def test_count(self, repository, populated):
        assert repository.count(EntryFilter()) == 5
        assert repository.count(EntryFilter(tags=["monthly"], limit=1)) == 2

    def test_list_tags_sorted(self, repository, populated):
        assert [tag.name for tag in repository.list_tags()] == [
            "housing",
            "monthly",
            "travel",
            "work",
        ]
