"""Computations shared by report generators."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pashoot_reports.models import Transaction

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")

# Totals closer than one cent are treated as equal.
BALANCE_TOLERANCE = CENT

UNKNOWN_CUSTOMER = "Unknown Customer"
UNKNOWN_VENDOR = "Unknown Vendor"

# (bucket, inclusive upper bound in days); the last bucket is open-ended.
AGING_BUCKETS: tuple[tuple[str, int | None], ...] = (
    ("current", 30),
    ("days_31_60", 60),
    ("days_61_90", 90),
    ("over_90", None),
)


# =============================================================================
# MONEY & RATIOS
# =============================================================================


def money(value: Decimal) -> Decimal:
    """Round a computed amount to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    """Coerce a metadata value (number, numeric string, None) to Decimal; junk is zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return ZERO


def total(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def safe_ratio(numerator: Decimal, denominator: Decimal | int) -> Decimal:
    """``numerator / denominator``, or 0 when the denominator is 0."""
    if not denominator:
        return ZERO
    return numerator / denominator


def average(amount: Decimal, count: int) -> Decimal:
    """Mean amount per item, in cents; 0 for no items."""
    return money(safe_ratio(amount, count))


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    """Share of ``whole`` in percent, rounded to two places; 0 when ``whole`` is 0."""
    return money(safe_ratio(part, whole) * HUNDRED)


def positive_ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Like safe_ratio but also 0 for a negative denominator."""
    if denominator <= 0:
        return ZERO
    return numerator / denominator


def is_balanced(left: Decimal, right: Decimal) -> bool:
    return abs(left - right) < BALANCE_TOLERANCE


# =============================================================================
# GROUPING
# =============================================================================


def month_key(day: date) -> str:
    return day.strftime("%Y-%m")


def quarter_key(day: date) -> str:
    return f"{day.year}-Q{(day.month - 1) // 3 + 1}"


def day_key(day: date) -> str:
    return day.isoformat()


def group_by(
    transactions: Iterable[Transaction], key: Callable[[Transaction], str]
) -> dict[str, list[Transaction]]:
    """Group transactions, keeping first-seen key order."""
    groups: dict[str, list[Transaction]] = defaultdict(list)
    for t in transactions:
        groups[key(t)].append(t)
    return dict(groups)


def sum_by(
    transactions: Iterable[Transaction], key: Callable[[Transaction], str]
) -> dict[str, Decimal]:
    sums: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions:
        sums[key(t)] += t.amount
    return dict(sums)


def by_month(transactions: Iterable[Transaction]) -> list[dict[str, Any]]:
    """Monthly totals in chronological order."""
    sums = sum_by(transactions, lambda t: t.month)
    return [{"month": month, "amount": sums[month]} for month in sorted(sums)]


def share_table(sums: dict[str, Decimal], label: str) -> list[dict[str, Any]]:
    """``[{label, amount, percentage}]`` sorted by amount, largest first."""
    grand_total = sum(sums.values(), ZERO)
    rows = [
        {label: name, "amount": amount, "percentage": percentage(amount, grand_total)}
        for name, amount in sums.items()
    ]
    return sorted(rows, key=lambda row: row["amount"], reverse=True)


def transaction_line(t: Transaction, **extra: Any) -> dict[str, Any]:
    line: dict[str, Any] = {
        "date": t.date.isoformat(),
        "description": t.description,
        "amount": t.amount,
    }
    line.update(extra)
    return line


# =============================================================================
# COUNTERPARTIES
# =============================================================================


def _description_prefix(t: Transaction) -> str:
    return t.description.split(" - ")[0]


def customer_name(t: Transaction) -> str:
    """Customer from a metadata hint, else the description text before " - "."""
    hint = t.metadata.get("customer") or t.metadata.get("customerName")
    return str(hint or _description_prefix(t) or UNKNOWN_CUSTOMER)


def vendor_name(t: Transaction) -> str:
    """Vendor from a metadata hint, else the description text before " - "."""
    hint = t.metadata.get("vendor") or t.metadata.get("vendorName")
    return str(hint or _description_prefix(t) or UNKNOWN_VENDOR)


# =============================================================================
# KEYWORDS
# =============================================================================


def category_matches(t: Transaction, keywords: Sequence[str]) -> bool:
    category = (t.category or "").lower()
    return any(keyword in category for keyword in keywords)


def matches_keywords(t: Transaction, keywords: Sequence[str]) -> bool:
    """Case-insensitive substring match against category or description."""
    category = (t.category or "").lower()
    description = t.description.lower()
    return any(keyword in category or keyword in description for keyword in keywords)


def first_matching_bucket(
    t: Transaction,
    buckets: Iterable[tuple[str, Sequence[str]]],
    default: str,
) -> str:
    for name, keywords in buckets:
        if matches_keywords(t, keywords):
            return name
    return default


# =============================================================================
# AGING
# =============================================================================


def days_outstanding(as_of: date, day: date) -> int:
    return (as_of - day).days


def aging_bucket(days: int) -> str:
    """Boundary days fall into the lower bucket (30 is current, 31 is 31-60)."""
    for name, limit in AGING_BUCKETS:
        if limit is None or days <= limit:
            return name
    raise AssertionError("open-ended bucket always matches")


def aging_report(
    transactions: Sequence[Transaction],
    as_of: date,
    counterparty: Callable[[Transaction], str],
    label: str,
) -> tuple[dict[str, Any], Decimal, list[dict[str, Any]]]:
    """Bucket transactions by age; return (buckets, total, per-counterparty balances).

    Entries are listed newest first.
    """
    entries: dict[str, list[dict[str, Any]]] = {name: [] for name, _ in AGING_BUCKETS}
    balances: dict[str, Decimal] = defaultdict(lambda: ZERO)

    for t in sorted(transactions, key=lambda t: t.date, reverse=True):
        name = counterparty(t)
        days = days_outstanding(as_of, t.date)
        entries[aging_bucket(days)].append(
            {
                label: name,
                "date": t.date.isoformat(),
                "description": t.description,
                "amount": t.amount,
                "days_outstanding": days,
            }
        )
        balances[name] += t.amount

    buckets = {
        name: {
            "count": len(rows),
            "total": sum((row["amount"] for row in rows), ZERO),
            "entries": rows,
        }
        for name, rows in entries.items()
    }
    grand_total = sum((bucket["total"] for bucket in buckets.values()), ZERO)
    summary = sorted(
        ({label: name, "balance": balance} for name, balance in balances.items()),
        key=lambda row: row["balance"],
        reverse=True,
    )
    return buckets, grand_total, summary
