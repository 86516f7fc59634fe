"""
Export of entries and reports.

JSON keeps the structure of a report; CSV flattens it to one row per
entry, bucket or tag. Decimals are written with ``str()`` so no precision
is lost, and datetimes as ISO-8601.
"""

import csv
import io
import json
from typing import Any, Iterable, Sequence

from beans.domain.entities import IncomeExpenseReport, LedgerEntry, PeriodSummary, TaggedReport

ENTRY_FIELDS = ("date", "name", "amount", "currency", "entry_type", "description", "tags")
BUCKET_FIELDS = ("period_start", "period_end", "income", "expenses", "net", "currency")
TAG_FIELDS = ("tag", "income", "expenses", "net", "currency")
TAG_SEPARATOR = ";"


def entry_to_record(entry: LedgerEntry) -> dict[str, str]:
    """Flatten an entry into an ordered record keyed by ENTRY_FIELDS."""
    return {
        "date": entry.date.isoformat(),
        "name": entry.name,
        "amount": str(entry.amount),
        "currency": entry.currency.code,
        "entry_type": entry.entry_type.value,
        "description": entry.description or "",
        "tags": TAG_SEPARATOR.join(tag.name for tag in entry.sorted_tags),
    }


def _write_csv(fieldnames: Sequence[str], rows: Iterable[dict[str, Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def _summary_record(summary: PeriodSummary) -> dict[str, Any]:
    return {
        "income": str(summary.income),
        "expenses": str(summary.expenses),
        "net": str(summary.net),
        "currency": summary.currency,
    }


def entries_to_json(entries: Iterable[LedgerEntry]) -> str:
    records = []
    for entry in entries:
        record = entry_to_record(entry)
        record["id"] = str(entry.id)
        record["description"] = entry.description
        record["tags"] = [tag.name for tag in entry.sorted_tags]
        records.append(record)
    return json.dumps(records, indent=2)


def entries_to_csv(entries: Iterable[LedgerEntry]) -> str:
    return _write_csv(ENTRY_FIELDS, (entry_to_record(entry) for entry in entries))


def _bucket_rows(report: IncomeExpenseReport) -> list[dict[str, Any]]:
    return [
        {
            "period_start": bucket.period_start.isoformat(),
            "period_end": bucket.period_end.isoformat(),
            **_summary_record(bucket.summary),
        }
        for bucket in report.buckets
    ]


def income_expense_report_to_json(report: IncomeExpenseReport) -> str:
    data = {
        "start": report.start.isoformat(),
        "end": report.end.isoformat(),
        "granularity": report.granularity.value,
        "currency": report.currency,
        "tags": sorted(tag.name for tag in report.tags),
        "buckets": _bucket_rows(report),
        "summary": _summary_record(report.summary),
    }
    return json.dumps(data, indent=2)


def income_expense_report_to_csv(report: IncomeExpenseReport) -> str:
    """One row per bucket, in chronological order."""
    rows = _bucket_rows(report)
    for row in rows:
        row["currency"] = row["currency"] or ""
    return _write_csv(BUCKET_FIELDS, rows)


def _tag_rows(report: TaggedReport) -> list[dict[str, Any]]:
    return [
        {
            "tag": tag,
            "income": str(report.income_by_tag[tag]),
            "expenses": str(report.expenses_by_tag[tag]),
            "net": str(report.net_by_tag[tag]),
            "currency": report.currency,
        }
        for tag in report.net_by_tag
    ]


def tagged_report_to_json(report: TaggedReport) -> str:
    data = {
        "start": report.start.isoformat(),
        "end": report.end.isoformat(),
        "currency": report.currency,
        "tags": _tag_rows(report),
        "summary": _summary_record(report.summary),
    }
    return json.dumps(data, indent=2)


def tagged_report_to_csv(report: TaggedReport) -> str:
    rows = _tag_rows(report)
    for row in rows:
        row["currency"] = row["currency"] or ""
    return _write_csv(TAG_FIELDS, rows)
