"""Domain model entities for beans.

These are pure data classes representing ledger concepts, independent of
database schema. Nothing in this module performs I/O.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID

from beans.domain.currency import Currency
from beans.domain.errors import InvalidDateRange, ValidationError
from beans.utils.date_parser import to_utc_datetime

TAG_PATTERN = re.compile(r"^[a-z0-9-]+$")
MAX_TAG_LENGTH = 50
UNTAGGED = "Untagged"


@dataclass(frozen=True, order=True)
class Tag:
    """Normalized category label.

    The raw value is trimmed and lowercased on construction, so
    ``Tag(" Food ") == Tag("food")``.
    """

    name: str

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise ValidationError(f"Tag must be a string, got {self.name!r}", field="tags")
        normalized = self.name.strip().lower()
        if not normalized:
            raise ValidationError("Tag name cannot be empty", field="tags")
        if len(normalized) > MAX_TAG_LENGTH:
            raise ValidationError(
                f"Tag '{normalized}' is longer than {MAX_TAG_LENGTH} characters",
                field="tags",
            )
        if not TAG_PATTERN.match(normalized):
            raise ValidationError(
                f"Tag '{normalized}' may only contain letters, digits and hyphens",
                field="tags",
            )
        object.__setattr__(self, "name", normalized)

    @classmethod
    def parse(cls, value: "Tag | str") -> "Tag":
        """Return ``value`` as a Tag, normalizing raw strings."""
        if isinstance(value, Tag):
            return value
        return cls(value)

    def __str__(self) -> str:
        return self.name


def normalize_tags(values: Optional[Iterable["Tag | str"]]) -> frozenset[Tag]:
    """Normalize an iterable of tags or raw strings into a tag set."""
    if values is None:
        return frozenset()
    if isinstance(values, (str, Tag)):
        values = [values]
    return frozenset(Tag.parse(value) for value in values)


class EntryType(str, Enum):
    """Direction of a ledger entry."""

    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def parse(cls, value: "EntryType | str") -> "EntryType":
        """Parse an entry type from its name, case-insensitively."""
        if isinstance(value, EntryType):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        raise ValidationError(
            f"Invalid entry type: '{value}'. Expected 'income' or 'expense'",
            field="entry_type",
        )

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class LedgerEntry:
    """Ledger entry domain entity.

    Instances are produced by ``LedgerEntryBuilder.build()``; the amount is
    never negative, the sign is carried by ``entry_type``.
    """

    id: UUID
    date: datetime
    name: str
    amount: Decimal
    currency: Currency
    entry_type: EntryType
    description: Optional[str]
    tags: frozenset[Tag]
    created_at: datetime
    updated_at: datetime

    @property
    def sorted_tags(self) -> tuple[Tag, ...]:
        """Tags ordered by name for deterministic display."""
        return tuple(sorted(self.tags))

    @property
    def signed_amount(self) -> Decimal:
        """Amount with expenses negated."""
        if self.entry_type == EntryType.EXPENSE:
            return -self.amount
        return self.amount

    def has_tag(self, tag_name: str) -> bool:
        normalized = tag_name.strip().lower()
        return any(tag.name == normalized for tag in self.tags)

    def has_any_tag(self, tag_names: Iterable[str]) -> bool:
        return any(self.has_tag(name) for name in tag_names)

    def has_all_tags(self, tag_names: Iterable[str]) -> bool:
        return all(self.has_tag(name) for name in tag_names)

    def summary(self) -> str:
        """One-line description: ``YYYY-MM-DD name (CODE amount) [tags]``."""
        tags_str = ""
        if self.tags:
            tags_str = " [" + ", ".join(tag.name for tag in self.sorted_tags) + "]"
        return (
            f"{self.date:%Y-%m-%d} {self.name} "
            f"({self.currency.code} {self.amount}){tags_str}"
        )

    def to_builder(self):
        """Return a builder pre-populated with every field of this entry."""
        from beans.domain.builder import LedgerEntryBuilder

        return LedgerEntryBuilder.from_entry(self)

    def __str__(self) -> str:
        return self.summary()


@dataclass(frozen=True)
class EntryFilter:
    """Query specification for ledger entries.

    Populated fields combine with AND; an unset field imposes no
    constraint. ``start`` is inclusive and ``end`` exclusive. When several
    tags are given an entry must carry all of them.
    """

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    entry_type: Optional[EntryType] = None
    currency: Optional[str] = None
    tags: frozenset[Tag] = field(default_factory=frozenset)
    limit: Optional[int] = None
    offset: Optional[int] = None

    def __post_init__(self):
        start = to_utc_datetime(self.start) if self.start is not None else None
        end = to_utc_datetime(self.end) if self.end is not None else None
        if start is not None and end is not None and start >= end:
            raise InvalidDateRange(start, end)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

        if self.entry_type is not None:
            object.__setattr__(self, "entry_type", EntryType.parse(self.entry_type))
        if self.currency is not None:
            object.__setattr__(self, "currency", Currency.from_code(self.currency).code)
        object.__setattr__(self, "tags", normalize_tags(self.tags))

        if self.limit is not None and self.limit < 0:
            raise ValidationError("Filter limit cannot be negative", field="limit")
        if self.offset is not None and self.offset < 0:
            raise ValidationError("Filter offset cannot be negative", field="offset")

    @property
    def is_unconstrained(self) -> bool:
        return (
            self.start is None
            and self.end is None
            and self.entry_type is None
            and self.currency is None
            and not self.tags
            and self.limit is None
            and self.offset is None
        )


class Granularity(str, Enum):
    """Bucket width for time-series reports."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: "Granularity | str") -> "Granularity":
        if isinstance(value, Granularity):
            return value
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError):
            choices = ", ".join(member.value for member in cls)
            raise ValidationError(
                f"Invalid granularity: '{value}'. Expected one of: {choices}",
                field="granularity",
            )


@dataclass(frozen=True)
class PeriodSummary:
    """Income, expenses and net for one interval."""

    income: Decimal
    expenses: Decimal
    net: Decimal
    currency: Optional[str] = None

    @classmethod
    def empty(cls, currency: Optional[str] = None) -> "PeriodSummary":
        return cls(Decimal("0"), Decimal("0"), Decimal("0"), currency)


@dataclass(frozen=True)
class ReportBucket:
    """One fixed-width interval ``[period_start, period_end)`` of a report."""

    period_start: datetime
    period_end: datetime
    summary: PeriodSummary

    @property
    def income_total(self) -> Decimal:
        return self.summary.income

    @property
    def expense_total(self) -> Decimal:
        return self.summary.expenses

    @property
    def net(self) -> Decimal:
        return self.summary.net


@dataclass(frozen=True)
class IncomeExpenseReport:
    """Time-bucketed income and expense totals."""

    start: datetime
    end: datetime
    granularity: Granularity
    buckets: tuple[ReportBucket, ...]
    summary: PeriodSummary
    currency: Optional[str] = None
    tags: frozenset[Tag] = field(default_factory=frozenset)


@dataclass(frozen=True)
class TaggedReport:
    """Totals per tag, split by entry type.

    An entry carrying several tags contributes its full amount to each of
    them, so per-tag totals can add up to more than ``summary``.
    """

    start: datetime
    end: datetime
    income_by_tag: dict[str, Decimal]
    expenses_by_tag: dict[str, Decimal]
    net_by_tag: dict[str, Decimal]
    summary: PeriodSummary
    currency: Optional[str] = None

    def top_expense_tags(self, count: int = 5) -> list[tuple[str, Decimal]]:
        """Return the ``count`` tags with the largest expense totals."""
        ranked = sorted(self.expenses_by_tag.items(), key=lambda item: (-item[1], item[0]))
        return ranked[:count]
