"""Receivables & payables: aging and counterparty statements.

There is no invoice ledger, so aging treats every income (or expense)
transaction up to the as-of date as outstanding.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pashoot_reports.models import Transaction
from pashoot_reports.reports.common import (
    ZERO,
    aging_report,
    customer_name,
    group_by,
    total,
    transaction_line,
    vendor_name,
)
from pashoot_reports.reports.types import ReportContext, ReportData


def ar_aging(context: ReportContext) -> ReportData:
    buckets, total_ar, summary = aging_report(
        context.income, context.end_date, customer_name, "customer"
    )
    return {
        **context.header(as_of=True),
        "aging_buckets": buckets,
        "total_ar": total_ar,
        "customer_summary": summary,
    }


def ap_aging(context: ReportContext) -> ReportData:
    buckets, total_ap, summary = aging_report(
        context.expenses, context.end_date, vendor_name, "vendor"
    )
    return {
        **context.header(as_of=True),
        "aging_buckets": buckets,
        "total_ap": total_ap,
        "vendor_summary": summary,
    }


def _statements(
    context: ReportContext,
    transactions: list[Transaction],
    counterparty: Callable[[Transaction], str],
    label: str,
    total_key: str,
    line: Callable[[Transaction], dict[str, Any]],
) -> list[dict[str, Any]]:
    statements = [
        {
            label: name,
            "transactions": [line(t) for t in group],
            total_key: total(group),
            "transaction_count": len(group),
            "period_start": context.start_date.isoformat(),
            "period_end": context.end_date.isoformat(),
        }
        for name, group in group_by(transactions, counterparty).items()
    ]
    return sorted(statements, key=lambda s: s[total_key], reverse=True)


def customer_statement(context: ReportContext) -> ReportData:
    statements = _statements(
        context,
        context.income,
        customer_name,
        "customer",
        "total_sales",
        lambda t: transaction_line(t, source=t.source.value),
    )
    return {
        **context.header(),
        "statements": statements,
        "total_customers": len(statements),
        "total_revenue": sum((s["total_sales"] for s in statements), ZERO),
    }


def vendor_statement(context: ReportContext) -> ReportData:
    statements = _statements(
        context,
        context.expenses,
        vendor_name,
        "vendor",
        "total_expenses",
        lambda t: transaction_line(t, category=t.category_name, source=t.source.value),
    )
    return {
        **context.header(),
        "statements": statements,
        "total_vendors": len(statements),
        "total_expenses": sum((s["total_expenses"] for s in statements), ZERO),
    }
