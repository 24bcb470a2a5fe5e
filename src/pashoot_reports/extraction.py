"""Field extraction for sources whose schema is defined by the user.

Airtable tables and Notion databases have no fixed columns, so each
extractor walks an ordered list of candidate field names and takes the first
usable value. Records without a date or an amount are skipped by the caller;
a description is always produced.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pashoot_reports.models import SourceDetails, TransactionFields, TransactionType

_LEADING_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def parse_date(value: Any) -> date | None:
    """Parse an ISO date or datetime string (or date object) into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_amount(value: Any) -> Decimal | None:
    """Parse a number or numeric string, ignoring currency symbols and separators."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if not isinstance(value, str):
        return None
    text = value.strip().replace(",", "").replace("$", "")
    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    return Decimal(match.group(0))


@dataclass(frozen=True)
class ExtractedRecord:
    date: date
    amount: Decimal
    description: str
    type: TransactionType | None
    category: str

    def to_fields(self, details: SourceDetails, metadata: dict[str, Any]) -> TransactionFields:
        """Canonical fields; the magnitude is stored and unknown direction counts as expense."""
        return TransactionFields(
            date=self.date,
            description=self.description,
            amount=abs(self.amount),
            type=self.type or TransactionType.EXPENSE,
            category=self.category,
            details=details,
            metadata=metadata,
        )


class FieldExtractor(ABC):
    """Ordered-candidate strategy for pulling canonical fields out of a record."""

    date_fields: tuple[str, ...] = ()
    amount_fields: tuple[str, ...] = ()
    description_fields: tuple[str, ...] = ()
    type_fields: tuple[str, ...] = ()
    category_fields: tuple[str, ...] = ()
    income_keywords: tuple[str, ...] = ()
    expense_keywords: tuple[str, ...] = ()
    fallback_description: str = "Record"
    fallback_category: str = "record"
    # Airtable only looks at the first populated type field; Notion tries them all.
    stop_at_first_type_field: bool = True

    @abstractmethod
    def _date_value(self, value: Any) -> date | None: ...

    @abstractmethod
    def _amount_value(self, value: Any) -> Decimal | None: ...

    @abstractmethod
    def _description_value(self, value: Any) -> str | None: ...

    @abstractmethod
    def _type_text(self, value: Any) -> str | None: ...

    @abstractmethod
    def _category_value(self, value: Any) -> str | None: ...

    @abstractmethod
    def _first_text(self, fields: dict[str, Any]) -> str | None:
        """Fallback description when no candidate field has one."""

    def extract_date(self, fields: dict[str, Any]) -> date | None:
        for name in self.date_fields:
            value = fields.get(name)
            if not value:
                continue
            parsed = self._date_value(value)
            if parsed is not None:
                return parsed
        return None

    def extract_amount(self, fields: dict[str, Any]) -> Decimal | None:
        for name in self.amount_fields:
            if fields.get(name) is None:
                continue
            amount = self._amount_value(fields[name])
            if amount is not None:
                return amount
        return None

    def extract_description(self, fields: dict[str, Any]) -> str:
        for name in self.description_fields:
            value = fields.get(name)
            if value:
                text = self._description_value(value)
                if text:
                    return text
        return self._first_text(fields) or self.fallback_description

    def classify_text(self, text: str) -> TransactionType | None:
        lowered = text.lower()
        if any(keyword in lowered for keyword in self.income_keywords):
            return TransactionType.INCOME
        if any(keyword in lowered for keyword in self.expense_keywords):
            return TransactionType.EXPENSE
        return None

    def extract_type(self, fields: dict[str, Any]) -> TransactionType | None:
        """Infer income/expense from a type field, then from the amount sign."""
        for name in self.type_fields:
            value = fields.get(name)
            if not value:
                continue
            text = self._type_text(value)
            if text is not None:
                inferred = self.classify_text(text)
                if inferred is not None:
                    return inferred
                if self.stop_at_first_type_field:
                    break
        amount = self.extract_amount(fields)
        if amount is not None:
            return TransactionType.EXPENSE if amount < 0 else TransactionType.INCOME
        return None

    def extract_category(self, fields: dict[str, Any]) -> str:
        for name in self.category_fields:
            value = fields.get(name)
            if not value:
                continue
            category = self._category_value(value)
            if category:
                return category
        return self.fallback_category

    def extract(self, fields: dict[str, Any]) -> ExtractedRecord | None:
        """Return the canonical fields, or None when date or amount is unusable."""
        record_date = self.extract_date(fields)
        amount = self.extract_amount(fields)
        if record_date is None or not amount:
            return None
        return ExtractedRecord(
            date=record_date,
            amount=amount,
            description=self.extract_description(fields),
            type=self.extract_type(fields),
            category=self.extract_category(fields),
        )


class AirtableExtractor(FieldExtractor):
    """Airtable cell values are plain JSON scalars."""

    date_fields = ("Date", "date", "Transaction Date", "Created", "createdTime")
    amount_fields = ("Amount", "amount", "Total", "Price", "Cost", "Value")
    description_fields = (
        "Description",
        "description",
        "Name",
        "name",
        "Title",
        "Notes",
        "Memo",
    )
    type_fields = ("Type", "type", "Category", "category")
    category_fields = ("Category", "Type")
    income_keywords = ("income", "revenue", "payment received")
    expense_keywords = ("expense", "cost", "payment made")
    fallback_description = "Airtable Record"
    fallback_category = "airtable_record"

    def _date_value(self, value: Any) -> date | None:
        return parse_date(value)

    def _amount_value(self, value: Any) -> Decimal | None:
        return parse_amount(value)

    def _description_value(self, value: Any) -> str | None:
        return str(value)

    def _type_text(self, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    def _category_value(self, value: Any) -> str | None:
        if isinstance(value, list):
            return str(value[0]) if value else None
        return str(value)

    def _first_text(self, fields: dict[str, Any]) -> str | None:
        for value in fields.values():
            if isinstance(value, str) and value:
                return value
        return None


def _plain_text(items: Any) -> str | None:
    if isinstance(items, list) and items:
        first = items[0]
        if isinstance(first, dict) and first.get("plain_text"):
            return str(first["plain_text"])
    return None


class NotionExtractor(FieldExtractor):
    """Notion property values are typed objects (``{"type": "number", "number": 3}``)."""

    date_fields = ("Date", "date", "Transaction Date", "Created")
    amount_fields = ("Amount", "amount", "Total", "Price", "Cost", "Value")
    description_fields = ("Name", "name", "Title", "title", "Description", "Notes")
    type_fields = ("Type", "type", "Category", "category")
    category_fields = ("Category", "category", "Type", "type")
    income_keywords = ("income", "revenue")
    expense_keywords = ("expense", "cost")
    fallback_description = "Notion Page"
    fallback_category = "notion_record"
    stop_at_first_type_field = False

    def _date_value(self, value: Any) -> date | None:
        if isinstance(value, dict) and value.get("type") == "date":
            start = (value.get("date") or {}).get("start")
            return parse_date(start)
        return None

    def _amount_value(self, value: Any) -> Decimal | None:
        if isinstance(value, dict) and value.get("type") == "number":
            return parse_amount(value.get("number"))
        return None

    def _description_value(self, value: Any) -> str | None:
        if not isinstance(value, dict):
            return None
        if value.get("type") == "title":
            return _plain_text(value.get("title"))
        if value.get("type") == "rich_text":
            return _plain_text(value.get("rich_text"))
        return None

    def _type_text(self, value: Any) -> str | None:
        if not isinstance(value, dict):
            return None
        if value.get("type") == "select":
            return (value.get("select") or {}).get("name")
        if value.get("type") == "rich_text":
            return _plain_text(value.get("rich_text"))
        return None

    def _category_value(self, value: Any) -> str | None:
        if not isinstance(value, dict):
            return None
        if value.get("type") == "select":
            return (value.get("select") or {}).get("name")
        if value.get("type") == "multi_select":
            options = value.get("multi_select") or []
            if options and isinstance(options[0], dict):
                return options[0].get("name")
        return None

    def _first_text(self, fields: dict[str, Any]) -> str | None:
        for value in fields.values():
            if isinstance(value, dict) and value.get("type") == "title":
                text = _plain_text(value.get("title"))
                if text:
                    return text
        return None
