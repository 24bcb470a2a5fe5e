"""Expense reports."""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Any

from pashoot_reports.reports.common import (
    ZERO,
    average,
    by_month,
    group_by,
    matches_keywords,
    percentage,
    total,
    transaction_line,
    vendor_name,
)
from pashoot_reports.reports.types import ReportContext, ReportData

TOP_N = 10
TOP_TRANSACTIONS = 5


def expense_by_category(context: ReportContext) -> ReportData:
    expenses = context.expenses
    total_expenses = total(expenses)

    categories = []
    for name, transactions in group_by(expenses, lambda t: t.category_name).items():
        amount = total(transactions)
        largest = sorted(transactions, key=lambda t: t.amount, reverse=True)[:TOP_TRANSACTIONS]
        categories.append(
            {
                "category": name,
                "amount": amount,
                "count": len(transactions),
                "percentage": percentage(amount, total_expenses),
                "average_per_transaction": average(amount, len(transactions)),
                "top_transactions": [transaction_line(t) for t in largest],
            }
        )
    categories.sort(key=lambda c: c["amount"], reverse=True)

    return {
        **context.header(),
        "total_expenses": total_expenses,
        "categories": categories,
        "trends": by_month(expenses),
    }


def expense_by_vendor(context: ReportContext) -> ReportData:
    vendors = []
    for name, transactions in group_by(context.expenses, vendor_name).items():
        vendor_total = total(transactions)
        categories = list(dict.fromkeys(t.category for t in transactions if t.category))
        vendors.append(
            {
                "vendor": name,
                "total_expenses": vendor_total,
                "transaction_count": len(transactions),
                "average_expense": average(vendor_total, len(transactions)),
                "categories": categories,
            }
        )
    vendors.sort(key=lambda v: v["total_expenses"], reverse=True)

    total_expenses = sum((v["total_expenses"] for v in vendors), ZERO)
    top = vendors[:TOP_N]
    top_total = sum((v["total_expenses"] for v in top), ZERO)

    return {
        **context.header(),
        "vendors": vendors,
        "total_expenses": total_expenses,
        "total_vendors": len(vendors),
        "top_10_vendors": top,
        "top_10_percentage": percentage(top_total, total_expenses),
    }


def travel_entertainment(context: ReportContext) -> ReportData:
    """T&E spend. An expense matching both lists appears in both; monthly totals count it once,
    as travel."""
    keywords = context.keywords
    travel: list[dict[str, Any]] = []
    entertainment: list[dict[str, Any]] = []
    monthly: dict[str, dict[str, Decimal]] = defaultdict(
        lambda: {"travel": ZERO, "entertainment": ZERO}
    )

    for t in context.expenses:
        is_travel = matches_keywords(t, keywords.travel)
        is_entertainment = matches_keywords(t, keywords.entertainment)
        line = transaction_line(t, category=t.category_name)
        if is_travel:
            travel.append(line)
            monthly[t.month]["travel"] += t.amount
        if is_entertainment:
            entertainment.append(line)
            if not is_travel:
                monthly[t.month]["entertainment"] += t.amount

    total_travel = sum((line["amount"] for line in travel), ZERO)
    total_entertainment = sum((line["amount"] for line in entertainment), ZERO)

    return {
        **context.header(),
        "travel_expenses": {
            "transactions": travel,
            "total": total_travel,
            "count": len(travel),
        },
        "entertainment_expenses": {
            "transactions": entertainment,
            "total": total_entertainment,
            "count": len(entertainment),
        },
        "total_combined": total_travel + total_entertainment,
        "monthly_data": [
            {
                "month": month,
                "travel": sums["travel"],
                "entertainment": sums["entertainment"],
                "total": sums["travel"] + sums["entertainment"],
            }
            for month, sums in sorted(monthly.items())
        ],
    }
