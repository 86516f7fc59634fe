"""Domain layer for beans.

Only pure value types are re-exported here; services such as
``beans.domain.ledger`` and ``beans.domain.reports`` depend on the database
layer and are imported from their own modules.
"""

from beans.domain.currency import Currency
from beans.domain.entities import (
    EntryFilter,
    EntryType,
    Granularity,
    IncomeExpenseReport,
    LedgerEntry,
    PeriodSummary,
    ReportBucket,
    Tag,
    TaggedReport,
)
from beans.domain.builder import LedgerEntryBuilder

__all__ = [
    "Currency",
    "EntryFilter",
    "EntryType",
    "Granularity",
    "IncomeExpenseReport",
    "LedgerEntry",
    "LedgerEntryBuilder",
    "PeriodSummary",
    "ReportBucket",
    "Tag",
    "TaggedReport",
]
