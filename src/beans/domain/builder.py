"""Staged construction of ledger entries."""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional
from uuid import UUID, uuid4

from beans.domain.currency import Currency
from beans.domain.entities import EntryType, LedgerEntry, Tag
from beans.domain.errors import ValidationError
from beans.utils.date_parser import to_utc_datetime


class LedgerEntryBuilder:
    """Mutable accumulator for a LedgerEntry.

    Setters only record raw values. ``build()`` validates them in a fixed
    order (name, amount, currency, tags, date, entry type) and raises a
    ValidationError naming the first failing field, so the same bad input
    always produces the same message.

    Example:
        entry = (
            LedgerEntryBuilder()
            .name("Rent")
            .amount("1200.00")
            .currency("USD")
            .entry_type(EntryType.EXPENSE)
            .tags(["housing", "monthly"])
            .build()
        )
    """

    def __init__(self):
        self._id: Optional[UUID] = None
        self._date = None
        self._name = None
        self._amount = None
        self._currency = None
        self._entry_type = None
        self._description: Optional[str] = None
        self._tags: list = []
        self._created_at = None
        self._updated_at = None

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "LedgerEntryBuilder":
        """Create a builder holding every field of an existing entry."""
        builder = cls()
        builder._id = entry.id
        builder._date = entry.date
        builder._name = entry.name
        builder._amount = entry.amount
        builder._currency = entry.currency
        builder._entry_type = entry.entry_type
        builder._description = entry.description
        builder._tags = list(entry.tags)
        builder._created_at = entry.created_at
        builder._updated_at = entry.updated_at
        return builder

    def id(self, entry_id: UUID | str) -> "LedgerEntryBuilder":
        """Set the identity. If unset, a random UUID is allocated on build."""
        self._id = entry_id
        return self

    def date(self, value) -> "LedgerEntryBuilder":
        """Set the entry date. If unset, the build time is used."""
        self._date = value
        return self

    def name(self, value: str) -> "LedgerEntryBuilder":
        self._name = value
        return self

    def amount(self, value) -> "LedgerEntryBuilder":
        self._amount = value
        return self

    def currency(self, value: Currency | str) -> "LedgerEntryBuilder":
        self._currency = value
        return self

    def entry_type(self, value: EntryType | str) -> "LedgerEntryBuilder":
        self._entry_type = value
        return self

    def description(self, value: Optional[str]) -> "LedgerEntryBuilder":
        self._description = value
        return self

    def tag(self, value: Tag | str) -> "LedgerEntryBuilder":
        self._tags.append(value)
        return self

    def tags(self, values: Iterable[Tag | str]) -> "LedgerEntryBuilder":
        """Replace the accumulated tags."""
        self._tags = list(values)
        return self

    def created_at(self, value) -> "LedgerEntryBuilder":
        self._created_at = value
        return self

    def updated_at(self, value) -> "LedgerEntryBuilder":
        self._updated_at = value
        return self

    def build(self) -> LedgerEntry:
        """Validate the accumulated fields and produce an immutable entry.

        Raises:
            ValidationError: For the first field that fails validation
        """
        name = self._validate_name()
        amount = self._validate_amount()
        currency = self._validate_currency()
        tags = self._validate_tags()
        now = datetime.now(timezone.utc)
        entry_date = self._validate_timestamp(self._date, "date", default=now)
        entry_type = self._validate_entry_type()
        created_at = self._validate_timestamp(self._created_at, "created_at", default=now)
        updated_at = self._validate_timestamp(
            self._updated_at, "updated_at", default=created_at
        )

        description = self._description
        if description is not None:
            description = description.strip() or None

        return LedgerEntry(
            id=self._validate_id(),
            date=entry_date,
            name=name,
            amount=amount,
            currency=currency,
            entry_type=entry_type,
            description=description,
            tags=tags,
            created_at=created_at,
            updated_at=updated_at,
        )

    def _validate_name(self) -> str:
        if not isinstance(self._name, str) or not self._name.strip():
            raise ValidationError("Entry name cannot be empty", field="name")
        return self._name.strip()

    def _validate_amount(self) -> Decimal:
        raw = self._amount
        if raw is None:
            raise ValidationError("Entry amount is required", field="amount")
        if isinstance(raw, (float, bool)):
            raise ValidationError(
                f"Entry amount must be a Decimal, int or string, not {type(raw).__name__}",
                field="amount",
            )
        try:
            amount = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
        except InvalidOperation:
            raise ValidationError(f"Invalid entry amount: {raw!r}", field="amount")
        if not amount.is_finite():
            raise ValidationError(f"Entry amount must be finite: {raw!r}", field="amount")
        if amount < 0:
            raise ValidationError(
                f"Entry amount cannot be negative: {amount}", field="amount"
            )
        return amount

    def _validate_currency(self) -> Currency:
        if self._currency is None:
            raise ValidationError("Entry currency is required", field="currency")
        return Currency.from_code(self._currency)

    def _validate_tags(self) -> frozenset[Tag]:
        return frozenset(Tag.parse(value) for value in self._tags)

    def _validate_timestamp(self, value, field_name: str, default: datetime) -> datetime:
        if value is None:
            return default
        try:
            return to_utc_datetime(value)
        except ValueError as e:
            raise ValidationError(f"Invalid {field_name}: {e}", field=field_name)

    def _validate_entry_type(self) -> EntryType:
        if self._entry_type is None:
            raise ValidationError("Entry type is required", field="entry_type")
        return EntryType.parse(self._entry_type)

    def _validate_id(self) -> UUID:
        if self._id is None:
            return uuid4()
        if isinstance(self._id, UUID):
            return self._id
        try:
            return UUID(str(self._id))
        except ValueError:
            raise ValidationError(f"Invalid entry id: {self._id!r}", field="id")
