"""Tests for JSON and CSV export."""

import asyncio
import csv
import io
import json

from beans.domain.entities import EntryType, Granularity
from beans.domain.export import (
    ENTRY_FIELDS,
    entries_to_csv,
    entries_to_json,
    entry_to_record,
    income_expense_report_to_csv,
    income_expense_report_to_json,
    tagged_report_to_csv,
    tagged_report_to_json,
)
from beans.domain.reports import ReportGenerator

from conftest import make_entry, utc


def test_entry_record_field_order():
    entry = make_entry("Rent", "1200.00", tags=["monthly", "housing"], date=utc(2024, 1, 5))
    record = entry_to_record(entry)

    assert tuple(record) == ENTRY_FIELDS
    assert record == {
        "date": "2024-01-05T00:00:00+00:00",
        "name": "Rent",
        "amount": "1200.00",
        "currency": "USD",
        "entry_type": "expense",
        "description": "",
        "tags": "housing;monthly",
    }


def test_entries_to_csv():
    entries = [
        make_entry("Salary", "5000.00", entry_type=EntryType.INCOME, date=utc(2024, 1, 1)),
        make_entry("Coffee, large", "4.5", description="with \"oat\" milk"),
    ]
    rows = list(csv.reader(io.StringIO(entries_to_csv(entries))))

    assert rows[0] == list(ENTRY_FIELDS)
    assert rows[1][:5] == ["2024-01-01T00:00:00+00:00", "Salary", "5000.00", "USD", "income"]
    assert rows[2][1] == "Coffee, large"
    assert rows[2][5] == 'with "oat" milk'


def test_entries_to_csv_empty():
    assert entries_to_csv([]) == ",".join(ENTRY_FIELDS) + "\n"


def test_entries_to_json():
    entry = make_entry("Rent", "1200.00", tags=["housing"])
    data = json.loads(entries_to_json([entry]))

    assert data[0]["id"] == str(entry.id)
    assert data[0]["amount"] == "1200.00"
    assert data[0]["tags"] == ["housing"]
    assert data[0]["description"] is None


def test_income_expense_report_exports(ledger, sample_entries):
    report = asyncio.run(
        ReportGenerator(ledger).income_expense_report(utc(2024, 1, 1), utc(2024, 4, 1), Granularity.MONTHLY)
    )

    rows = list(csv.DictReader(io.StringIO(income_expense_report_to_csv(report))))
    assert [row["period_start"][:10] for row in rows] == ["2024-01-01", "2024-02-01", "2024-03-01"]
    assert rows[0]["net"] == "3800.00"
    assert rows[1]["income"] == "0"
    assert rows[2]["currency"] == "USD"

    data = json.loads(income_expense_report_to_json(report))
    assert data["granularity"] == "monthly"
    assert len(data["buckets"]) == 3
    assert data["summary"]["net"] == "3715.50"


def test_tagged_report_exports(ledger, sample_entries):
    report = asyncio.run(ReportGenerator(ledger).tagged_report(utc(2024, 1, 1), utc(2024, 4, 1)))

    text = tagged_report_to_csv(report)
    assert text.splitlines()[0] == "tag,income,expenses,net,currency"
    rows = {row["tag"]: row for row in csv.DictReader(io.StringIO(text))}
    assert rows["salary"]["income"] == "5000.00"
    assert rows["housing"]["net"] == "-1200.00"

    data = json.loads(tagged_report_to_json(report))
    assert [row["tag"] for row in data["tags"]] == ["food", "housing", "monthly", "salary"]
    assert data["currency"] == "USD"
