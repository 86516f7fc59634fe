"""Report generation domain service."""

import asyncio
import logging
from bisect import bisect_right
from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from beans.domain.currency import Currency
from beans.domain.entities import (
    UNTAGGED,
    EntryFilter,
    EntryType,
    Granularity,
    IncomeExpenseReport,
    LedgerEntry,
    PeriodSummary,
    ReportBucket,
    Tag,
    TaggedReport,
    normalize_tags,
)
from beans.domain.errors import ConversionError, CurrencyMismatchError, mixed_currencies
from beans.domain.ledger import LedgerManager

logger = logging.getLogger(__name__)

_STEPS = {
    Granularity.DAILY: relativedelta(days=1),
    Granularity.WEEKLY: relativedelta(weeks=1),
    Granularity.MONTHLY: relativedelta(months=1),
    Granularity.QUARTERLY: relativedelta(months=3),
    Granularity.YEARLY: relativedelta(years=1),
}


def period_floor(moment: datetime, granularity: Granularity) -> datetime:
    """Return the start of the calendar period containing ``moment``.

    Weeks start on Monday; quarters start in January, April, July and
    October.
    """
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    if granularity == Granularity.DAILY:
        return midnight
    if granularity == Granularity.WEEKLY:
        return midnight - timedelta(days=midnight.weekday())
    if granularity == Granularity.MONTHLY:
        return midnight.replace(day=1)
    if granularity == Granularity.QUARTERLY:
        first_month = 3 * ((midnight.month - 1) // 3) + 1
        return midnight.replace(month=first_month, day=1)
    return midnight.replace(month=1, day=1)


def bucket_ranges(
    start: datetime, end: datetime, granularity: Granularity
) -> list[tuple[datetime, datetime]]:
    """Split ``[start, end)`` into consecutive calendar-aligned intervals.

    The first interval begins at the period floor of ``start`` and the last
    one is the period that contains the instant just before ``end``.
    """
    step = _STEPS[granularity]
    floor = period_floor(start, granularity)
    ranges = []
    index = 0
    bucket_start = floor
    while bucket_start < end:
        bucket_end = floor + step * (index + 1)
        ranges.append((bucket_start, bucket_end))
        index += 1
        bucket_start = bucket_end
    return ranges


class ReportGenerator:
    """Aggregate ledger entries into summaries, time series and tag totals.

    Without a target currency every summed entry must share one currency.
    With one, entries are normalized through the converter first; a
    conversion failure aborts the whole report.
    """

    def __init__(self, ledger: LedgerManager, converter=None):
        """Initialize report generator.

        Args:
            ledger: Ledger to read entries from
            converter: Optional CurrencyConverter used for normalization
        """
        self.ledger = ledger
        self.converter = converter

    async def period_summary(
        self,
        start,
        end,
        entry_type: Optional[EntryType | str] = None,
        tags: Optional[Iterable[Tag | str]] = None,
        target_currency: Optional[Currency | str] = None,
    ) -> PeriodSummary:
        """Sum income and expenses over ``[start, end)``.

        Raises:
            InvalidDateRange: If start is not before end
            CurrencyMismatchError: If entries span currencies and no target
                currency was given
            ConversionError: If an entry cannot be converted
        """
        entry_filter = EntryFilter(
            start=start, end=end, entry_type=entry_type, tags=normalize_tags(tags)
        )
        entries = self.ledger.list_entries(entry_filter)
        amounts, currency = await self._normalize(entries, target_currency)
        return _summarize(zip(entries, amounts), currency)

    async def income_expense_report(
        self,
        start,
        end,
        granularity: Granularity | str = Granularity.MONTHLY,
        target_currency: Optional[Currency | str] = None,
        tags: Optional[Iterable[Tag | str]] = None,
    ) -> IncomeExpenseReport:
        """Build a time series of income and expenses.

        Every bucket between the period floor of ``start`` and ``end`` is
        present, including those without entries.
        """
        granularity = Granularity.parse(granularity)
        entry_filter = EntryFilter(start=start, end=end, tags=normalize_tags(tags))
        entries = self.ledger.list_entries(entry_filter)
        amounts, currency = await self._normalize(entries, target_currency)

        ranges = bucket_ranges(entry_filter.start, entry_filter.end, granularity)
        starts = [bucket_start for bucket_start, _ in ranges]
        grouped: list[list[tuple[LedgerEntry, Decimal]]] = [[] for _ in ranges]
        for entry, amount in zip(entries, amounts):
            grouped[bisect_right(starts, entry.date) - 1].append((entry, amount))

        buckets = tuple(
            ReportBucket(bucket_start, bucket_end, _summarize(items, currency))
            for (bucket_start, bucket_end), items in zip(ranges, grouped)
        )
        logger.debug(
            "Built %s report with %d buckets over %d entries",
            granularity.value,
            len(buckets),
            len(entries),
        )
        return IncomeExpenseReport(
            start=entry_filter.start,
            end=entry_filter.end,
            granularity=granularity,
            buckets=buckets,
            summary=_summarize(zip(entries, amounts), currency),
            currency=currency,
            tags=entry_filter.tags,
        )

    async def tagged_report(
        self,
        start,
        end,
        target_currency: Optional[Currency | str] = None,
    ) -> TaggedReport:
        """Total income and expenses per tag.

        An entry with several tags counts fully towards each of them;
        entries without tags are grouped under ``"Untagged"``.
        """
        entry_filter = EntryFilter(start=start, end=end)
        entries = self.ledger.list_entries(entry_filter)
        amounts, currency = await self._normalize(entries, target_currency)

        income: dict[str, Decimal] = defaultdict(Decimal)
        expenses: dict[str, Decimal] = defaultdict(Decimal)
        for entry, amount in zip(entries, amounts):
            names = [tag.name for tag in entry.sorted_tags] or [UNTAGGED]
            totals = income if entry.entry_type == EntryType.INCOME else expenses
            for name in names:
                totals[name] += amount

        # Untagged goes last
        names = sorted(set(income) | set(expenses), key=lambda name: (name == UNTAGGED, name))
        zero = Decimal("0")
        return TaggedReport(
            start=entry_filter.start,
            end=entry_filter.end,
            income_by_tag={name: income.get(name, zero) for name in names},
            expenses_by_tag={name: expenses.get(name, zero) for name in names},
            net_by_tag={
                name: income.get(name, zero) - expenses.get(name, zero) for name in names
            },
            summary=_summarize(zip(entries, amounts), currency),
            currency=currency,
        )

    async def _normalize(
        self,
        entries: Sequence[LedgerEntry],
        target_currency: Optional[Currency | str],
    ) -> tuple[list[Decimal], Optional[str]]:
        """Return each entry's amount in the report currency, and that currency.

        One rate is looked up per distinct source currency; lookups for
        different currencies run concurrently.
        """
        if target_currency is None:
            codes = {entry.currency.code for entry in entries}
            if len(codes) > 1:
                raise CurrencyMismatchError(mixed_currencies(codes))
            currency = codes.pop() if codes else None
            return [entry.amount for entry in entries], currency

        target = Currency.from_code(target_currency).code
        foreign = sorted({entry.currency.code for entry in entries} - {target})
        if foreign and self.converter is None:
            raise ConversionError(
                f"No currency converter available to convert {foreign[0]} to {target}",
                from_code=foreign[0],
                to_code=target,
                transient=False,
            )

        rates = {target: Decimal("1")}
        if foreign:
            rates.update(zip(foreign, await self._fetch_rates(foreign, target)))
        return [entry.amount * rates[entry.currency.code] for entry in entries], target

    async def _fetch_rates(self, codes: Sequence[str], target: str) -> list[Decimal]:
        """Look up rates concurrently; the first failure cancels the rest."""
        lookups = [
            asyncio.ensure_future(self.converter.get_exchange_rate(code, target))
            for code in codes
        ]
        try:
            return await asyncio.gather(*lookups)
        except BaseException:
            for lookup in lookups:
                lookup.cancel()
            await asyncio.gather(*lookups, return_exceptions=True)
            raise


def _summarize(items: Iterable[tuple[LedgerEntry, Decimal]], currency: Optional[str]) -> PeriodSummary:
    income = Decimal("0")
    expenses = Decimal("0")
    for entry, amount in items:
        if entry.entry_type == EntryType.INCOME:
            income += amount
        else:
            expenses += amount
    return PeriodSummary(income=income, expenses=expenses, net=income - expenses, currency=currency)
