"""Tests for field extraction from user-defined schemas."""

from datetime import date
from decimal import Decimal

from pashoot_reports.extraction import (
    AirtableExtractor,
    NotionExtractor,
    parse_amount,
    parse_date,
)
from pashoot_reports.models import TransactionType


class TestParsers:
    """Tests for scalar parsers."""

    def test_parse_date_formats(self):
        assert parse_date("2024-03-05") == date(2024, 3, 5)
        assert parse_date("2024-03-05T10:00:00.000Z") == date(2024, 3, 5)
        assert parse_date(date(2024, 3, 5)) == date(2024, 3, 5)
        assert parse_date("not a date") is None
        assert parse_date("") is None
        assert parse_date(None) is None

    def test_parse_amount_formats(self):
        assert parse_amount(12.5) == Decimal("12.5")
        assert parse_amount(-45.50) == Decimal("-45.5")
        assert parse_amount("$1,234.56") == Decimal("1234.56")
        assert parse_amount("99 USD") == Decimal("99")
        assert parse_amount("abc") is None
        assert parse_amount(True) is None
        assert parse_amount(None) is None


class TestAirtableExtractor:
    """Tests for Airtable cell extraction."""

    def test_negative_amount_is_expense(self):
        record = AirtableExtractor().extract(
            {"Date": "2024-03-05", "Amount": -45.50, "Description": "Coffee"}
        )

        assert record is not None
        assert record.date == date(2024, 3, 5)
        assert record.amount == Decimal("-45.5")
        assert record.type == TransactionType.EXPENSE
        assert record.description == "Coffee"
        assert record.category == "airtable_record"

    def test_type_field_wins_over_sign(self):
        record = AirtableExtractor().extract(
            {"Date": "2024-03-05", "Amount": 200, "Type": "Expense", "Name": "Rent"}
        )

        assert record.type == TransactionType.EXPENSE
        assert record.category == "Expense"
        assert record.description == "Rent"

    def test_first_populated_type_field_decides(self):
        # "Type" is populated but unrecognized, so the sign decides; "Category" is not consulted.
        record = AirtableExtractor().extract(
            {"Date": "2024-03-05", "Amount": 80, "Type": "misc", "Category": "expense"}
        )

        assert record.type == TransactionType.INCOME

    def test_category_list_uses_first_item(self):
        record = AirtableExtractor().extract(
            {"Date": "2024-03-05", "Amount": 10, "Category": ["Travel", "Meals"]}
        )

        assert record.category == "Travel"

    def test_fallback_description_is_first_string_field(self):
        record = AirtableExtractor().extract(
            {"Date": "2024-03-05", "Amount": 10, "Vendor": "Acme"}
        )

        assert record.description == "2024-03-05"

    def test_missing_amount_or_date_is_unusable(self):
        extractor = AirtableExtractor()

        assert extractor.extract({"Amount": 10}) is None
        assert extractor.extract({"Date": "2024-03-05"}) is None
        assert extractor.extract({"Date": "2024-03-05", "Amount": 0}) is None

    def test_to_fields_stores_magnitude(self):
        record = AirtableExtractor().extract({"Date": "2024-03-05", "Amount": "-12.00"})

        fields = record.to_fields(details=None, metadata={"baseId": "app1"})

        assert fields.amount == Decimal("12.00")
        assert fields.type == TransactionType.EXPENSE
        assert fields.description == "2024-03-05"


def _title(text):
    return {"type": "title", "title": [{"plain_text": text}]}


def _select(name):
    return {"type": "select", "select": {"name": name}}


class TestNotionExtractor:
    """Tests for Notion property extraction."""

    def test_typed_properties(self):
        record = NotionExtractor().extract(
            {
                "Name": _title("Consulting retainer"),
                "Date": {"type": "date", "date": {"start": "2024-02-01"}},
                "Amount": {"type": "number", "number": 1500},
                "Type": _select("Revenue"),
                "Category": _select("Services"),
            }
        )

        assert record.description == "Consulting retainer"
        assert record.date == date(2024, 2, 1)
        assert record.amount == Decimal("1500")
        assert record.type == TransactionType.INCOME
        assert record.category == "Services"

    def test_later_type_field_is_consulted(self):
        record = NotionExtractor().extract(
            {
                "Date": {"type": "date", "date": {"start": "2024-02-01"}},
                "Amount": {"type": "number", "number": 30},
                "Type": _select("Other"),
                "Category": _select("Office cost"),
            }
        )

        assert record.type == TransactionType.EXPENSE

    def test_untyped_values_are_ignored(self):
        record = NotionExtractor().extract(
            {
                "Date": "2024-02-01",
                "Amount": {"type": "number", "number": 30},
            }
        )

        assert record is None

    def test_unusable_date_falls_through_to_next_field(self):
        record = NotionExtractor().extract(
            {
                "Date": {"type": "created_time", "created_time": "2024-01-05T10:00:00.000Z"},
                "Transaction Date": {"type": "date", "date": {"start": "2024-02-01"}},
                "Amount": {"type": "number", "number": 12},
            }
        )

        assert record.date == date(2024, 2, 1)
        assert record.amount == Decimal("12")

    def test_empty_date_property_falls_through(self):
        record = NotionExtractor().extract(
            {
                "Date": {"type": "date", "date": None},
                "Created": {"type": "date", "date": {"start": "2024-03-09"}},
                "Amount": {"type": "number", "number": 12},
            }
        )

        assert record.date == date(2024, 3, 9)

    def test_fallbacks(self):
        record = NotionExtractor().extract(
            {
                "Date": {"type": "date", "date": {"start": "2024-02-01"}},
                "Amount": {"type": "number", "number": -5},
            }
        )

        assert record.description == "Notion Page"
        assert record.category == "notion_record"
        assert record.type == TransactionType.EXPENSE
