"""Reconciliation reports: processor activity against recorded revenue."""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Any

from pashoot_reports.models import Source, Transaction, TransactionType
from pashoot_reports.reports.common import (
    ZERO,
    average,
    day_key,
    is_balanced,
    percentage,
    to_decimal,
    total,
    transaction_line,
)
from pashoot_reports.reports.types import ReportContext, ReportData

STRIPE_CHARGE_CATEGORY = "stripe_payment"
MAX_LISTED_CHARGES = 50
CONNECTED = "Connected"
NOT_CONNECTED = "Not Connected"


def _from_source(context: ReportContext, source: Source) -> list[Transaction]:
    return [t for t in context.transactions if t.source == source]


def _recorded_under(context: ReportContext, source: Source) -> Decimal:
    """Income attributed to a processor: synced from it or naming it in the description."""
    return total(
        t
        for t in context.income
        if t.source == source or source.value in t.description.lower()
    )


# =============================================================================
# STRIPE
# =============================================================================


def _stripe_kind(t: Transaction) -> str | None:
    category = t.category or ""
    if category == STRIPE_CHARGE_CATEGORY and t.type == TransactionType.INCOME:
        return "charges"
    if "fee" in category:
        return "fees"
    if "refund" in category:
        return "refunds"
    return None


def stripe_reconciliation(context: ReportContext) -> ReportData:
    stripe = _from_source(context, Source.STRIPE)
    groups: dict[str, list[Transaction]] = {"charges": [], "fees": [], "refunds": []}
    daily: dict[str, dict[str, Decimal]] = defaultdict(
        lambda: {"charges": ZERO, "fees": ZERO, "refunds": ZERO}
    )
    for t in stripe:
        kind = _stripe_kind(t)
        if kind is None:
            continue
        groups[kind].append(t)
        daily[day_key(t.date)][kind] += t.amount

    charges = groups["charges"]
    gross_revenue = total(charges)
    total_fees = total(groups["fees"])
    total_refunds = total(groups["refunds"])
    accounting_revenue = _recorded_under(context, Source.STRIPE)
    difference = gross_revenue - accounting_revenue

    return {
        **context.header(),
        "summary": {
            "gross_revenue": gross_revenue,
            "total_fees": total_fees,
            "total_refunds": total_refunds,
            "net_revenue": gross_revenue - total_fees - total_refunds,
            "fee_percentage": percentage(total_fees, gross_revenue),
            "transaction_count": len(charges),
            "avg_transaction_size": average(gross_revenue, len(charges)),
        },
        "reconciliation": {
            "stripe_charges": gross_revenue,
            "accounting_revenue": accounting_revenue,
            "difference": difference,
            "is_reconciled": is_balanced(gross_revenue, accounting_revenue),
        },
        "daily_breakdown": [
            {
                "date": day,
                **sums,
                "net": sums["charges"] - sums["fees"] - sums["refunds"],
            }
            for day, sums in sorted(daily.items())
        ],
        "transactions": {
            "charges": [
                transaction_line(t, metadata=t.metadata) for t in charges[:MAX_LISTED_CHARGES]
            ],
            "fees": [transaction_line(t) for t in groups["fees"]],
            "refunds": [transaction_line(t) for t in groups["refunds"]],
        },
    }


# =============================================================================
# SQUARE
# =============================================================================


def square_reconciliation(context: ReportContext) -> ReportData:
    """Square sales net of fees against income recorded under Square.

    Fees come from metadata ``fee``; metadata ``isRefund`` marks refunds.
    """
    gross = fees = refunds = ZERO
    sales = 0
    daily: dict[str, dict[str, Decimal]] = defaultdict(lambda: {"gross": ZERO, "fees": ZERO})

    for t in _from_source(context, Source.SQUARE):
        if t.metadata.get("isRefund") is True:
            refunds += t.amount
            continue
        fee = to_decimal(t.metadata.get("fee"))
        gross += t.amount
        fees += fee
        sales += 1
        daily[day_key(t.date)]["gross"] += t.amount
        daily[day_key(t.date)]["fees"] += fee

    recorded = _recorded_under(context, Source.SQUARE)
    difference = gross - recorded
    reconciled = is_balanced(gross, recorded)

    discrepancies: list[dict[str, Any]] = []
    if not reconciled:
        discrepancies.append(
            {
                "type": "Revenue Mismatch",
                "square_amount": gross,
                "accounting_amount": recorded,
                "difference": difference,
            }
        )

    return {
        **context.header(),
        "square": {
            "gross_revenue": gross,
            "fees": fees,
            "refunds": refunds,
            "net_deposits": gross - fees,
            "transaction_count": sales,
        },
        "accounting": {"recorded_revenue": recorded},
        "reconciliation": {
            "difference": difference,
            "is_reconciled": reconciled,
            "reconciliation_percentage": percentage(recorded, gross),
        },
        "daily_reconciliation": [
            {
                "date": day,
                "square_gross": sums["gross"],
                "square_fees": sums["fees"],
                "square_net": sums["gross"] - sums["fees"],
            }
            for day, sums in sorted(daily.items())
        ],
        "discrepancies": discrepancies,
    }


# =============================================================================
# CROSS-SOURCE
# =============================================================================


def _income_expense_net(transactions: list[Transaction]) -> dict[str, Decimal]:
    income = total(t for t in transactions if t.type == TransactionType.INCOME)
    expenses = total(t for t in transactions if t.type == TransactionType.EXPENSE)
    return {"income": income, "expenses": expenses, "net": income - expenses}


def cross_source_summary(context: ReportContext) -> ReportData:
    """Activity per data source alongside connection status."""
    connections = {c.source: c for c in context.connections}
    by_source: dict[Source, list[Transaction]] = defaultdict(list)
    monthly: dict[str, dict[Source, list[Transaction]]] = defaultdict(lambda: defaultdict(list))
    for t in context.transactions:
        by_source[t.source].append(t)
        monthly[t.month][t.source].append(t)

    summaries = []
    for source, transactions in by_source.items():
        sums = _income_expense_net(transactions)
        connection = connections.get(source)
        last_sync = connection.last_sync_at if connection else None
        summaries.append(
            {
                "source": source.value,
                "income": sums["income"],
                "expenses": sums["expenses"],
                "net_activity": sums["net"],
                "transaction_count": len(transactions),
                "last_sync": last_sync.isoformat() if last_sync else None,
                "connection_status": CONNECTED if connection else NOT_CONNECTED,
            }
        )
    summaries.sort(key=lambda row: row["net_activity"], reverse=True)

    total_income = sum((row["income"] for row in summaries), ZERO)
    total_expenses = sum((row["expenses"] for row in summaries), ZERO)
    total_transactions = sum(row["transaction_count"] for row in summaries)

    return {
        **context.header(),
        "summary": {
            "total_income": total_income,
            "total_expenses": total_expenses,
            "net_activity": total_income - total_expenses,
            "total_transactions": total_transactions,
            "sources_connected": len(context.connections),
            "sources_with_data": len(summaries),
        },
        "source_summaries": summaries,
        "source_contributions": [
            {
                "source": row["source"],
                "income_percentage": percentage(row["income"], total_income),
                "expense_percentage": percentage(row["expenses"], total_expenses),
                "transaction_percentage": percentage(
                    Decimal(row["transaction_count"]), Decimal(total_transactions)
                ),
            }
            for row in summaries
        ],
        "monthly_data": [
            {
                "month": month,
                "sources": [
                    {"source": source.value, **_income_expense_net(transactions)}
                    for source, transactions in sources.items()
                ],
            }
            for month, sources in sorted(monthly.items())
        ],
        "connected_sources": [
            {
                "source": c.source.value,
                "last_sync": c.last_sync_at.isoformat() if c.last_sync_at else None,
                "connected_at": c.created_at.isoformat(),
            }
            for c in context.connections
        ],
    }
