"""SQLAlchemy models for the beans ledger store."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()

SCHEMA_VERSION = 2


class DecimalText(TypeDecorator):
    """Stores Decimal values as text so no precision is lost in SQLite."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class UTCDateTime(TypeDecorator):
    """Stores aware datetimes as naive UTC and re-attaches UTC on load."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


entry_tags = Table(
    "entry_tags",
    Base.metadata,
    Column("entry_id", String(36), ForeignKey("entries.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Entry(Base):
    """Ledger entry model."""

    __tablename__ = "entries"

    id = Column(String(36), primary_key=True)
    seq = Column(Integer, nullable=False)
    date = Column(UTCDateTime, nullable=False)
    name = Column(String, nullable=False)
    currency = Column(String(3), nullable=False)
    amount = Column(DecimalText, nullable=False)
    description = Column(String, nullable=True)
    entry_type = Column(String(16), nullable=False)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    __table_args__ = (
        Index("idx_entries_date", "date"),
        Index("idx_entries_entry_type", "entry_type"),
        Index("idx_entries_currency", "currency"),
    )

    # Relationships
    tags = relationship(
        "Tag",
        secondary=entry_tags,
        back_populates="entries",
        lazy="selectin",
        passive_deletes=True,
    )


class Tag(Base):
    """Tag model, unique by name."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    name = Column(String(50), unique=True, nullable=False, index=True)

    # Relationships
    entries = relationship("Entry", secondary=entry_tags, back_populates="tags")


class SchemaMeta(Base):
    """Single-row table recording the schema version of a ledger file."""

    __tablename__ = "schema_meta"

    id = Column(Integer, primary_key=True)
    version = Column(Integer, nullable=False)
    upgraded_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc), nullable=False)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Turn on foreign key enforcement for every SQLite connection."""
    module = type(dbapi_connection).__module__
    if module.startswith("sqlite3") or module.startswith("pysqlite"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory.

    In-memory SQLite URLs share one connection across the process so every
    session sees the same ephemeral store.
    """
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        engine = create_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(database_url, echo=False)
    return sessionmaker(bind=engine, expire_on_commit=False)
