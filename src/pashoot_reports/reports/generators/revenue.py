"""Revenue & sales reports."""

from __future__ import annotations

from typing import Any

from pashoot_reports.reports.common import (
    ZERO,
    average,
    by_month,
    customer_name,
    group_by,
    percentage,
    share_table,
    sum_by,
    total,
    transaction_line,
)
from pashoot_reports.reports.types import ReportContext, ReportData

TOP_N = 10


def revenue_breakdown(context: ReportContext) -> ReportData:
    income = context.income
    return {
        **context.header(),
        "total_revenue": total(income),
        "by_category": share_table(sum_by(income, lambda t: t.category_name), "category"),
        "by_source": share_table(sum_by(income, lambda t: t.source.value), "source"),
        "by_month": by_month(income),
    }


def sales_by_customer(context: ReportContext) -> ReportData:
    customers = []
    for name, transactions in group_by(context.income, customer_name).items():
        customer_total = total(transactions)
        customers.append(
            {
                "customer": name,
                "total_sales": customer_total,
                "transaction_count": len(transactions),
                "average_sale": average(customer_total, len(transactions)),
                "transactions": [transaction_line(t) for t in transactions],
            }
        )
    customers.sort(key=lambda c: c["total_sales"], reverse=True)

    total_sales = sum((c["total_sales"] for c in customers), ZERO)
    top = customers[:TOP_N]
    top_total = sum((c["total_sales"] for c in top), ZERO)

    return {
        **context.header(),
        "customers": customers,
        "total_sales": total_sales,
        "total_customers": len(customers),
        "top_10_customers": top,
        "top_10_percentage": percentage(top_total, total_sales),
    }


def revenue_trends(context: ReportContext) -> ReportData:
    """Monthly revenue with month-over-month growth."""
    by_month_groups = group_by(context.income, lambda t: t.month)

    monthly_data: list[dict[str, Any]] = []
    previous = None
    for month in sorted(by_month_groups):
        transactions = by_month_groups[month]
        revenue = total(transactions)
        row: dict[str, Any] = {
            "month": month,
            "revenue": revenue,
            "transaction_count": len(transactions),
            "average_per_transaction": average(revenue, len(transactions)),
            "growth_amount": ZERO,
            "growth_rate": ZERO,
        }
        if previous is not None:
            row["growth_amount"] = revenue - previous
            row["growth_rate"] = percentage(revenue - previous, previous)
        monthly_data.append(row)
        previous = revenue

    total_revenue = total(context.income)
    highest = max(monthly_data, key=lambda row: row["revenue"], default=None)
    lowest = min(monthly_data, key=lambda row: row["revenue"], default=None)

    return {
        **context.header(),
        "monthly_data": monthly_data,
        "total_revenue": total_revenue,
        "average_monthly_revenue": average(total_revenue, len(monthly_data)),
        "highest_month": highest,
        "lowest_month": lowest,
        "months_included": len(monthly_data),
    }
