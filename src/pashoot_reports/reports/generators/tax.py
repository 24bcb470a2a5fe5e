"""Tax & compliance reports.

These are estimates for bookkeeping, not filings. Rates and the 1099
threshold come from ReportParameters.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Any

from pashoot_reports.models import Transaction, TransactionType
from pashoot_reports.reports.common import (
    ZERO,
    first_matching_bucket,
    group_by,
    matches_keywords,
    money,
    percentage,
    quarter_key,
    safe_ratio,
    to_decimal,
    total,
    transaction_line,
)
from pashoot_reports.reports.types import ReportContext, ReportData

OTHER_DEDUCTIBLE = "Other Deductible"
NOT_SPECIFIED = "Not specified"
TAX_DISCLAIMER = (
    "This is an estimate only. Consult with a tax professional for accurate tax calculations."
)


def _payee(t: Transaction) -> str:
    hint = t.metadata.get("vendor") or t.metadata.get("vendorName")
    return str(hint or t.description)


def contractor_1099(context: ReportContext) -> ReportData:
    """Contractor payments grouped by payee, split at the 1099 threshold (inclusive)."""
    threshold = context.parameters.contractor_1099_threshold
    payments = [t for t in context.expenses if matches_keywords(t, context.keywords.contractor)]

    required: list[dict[str, Any]] = []
    below: list[dict[str, Any]] = []
    for name, transactions in group_by(payments, _payee).items():
        paid = total(transactions)
        row: dict[str, Any] = {
            "name": name,
            "total_paid": paid,
            "transaction_count": len(transactions),
            "requires_1099": paid >= threshold,
        }
        if row["requires_1099"]:
            row["transactions"] = [transaction_line(t) for t in transactions]
            required.append(row)
        else:
            below.append(row)

    required.sort(key=lambda row: row["total_paid"], reverse=True)
    below.sort(key=lambda row: row["total_paid"], reverse=True)

    return {
        **context.header(),
        "year": context.start_date.year,
        "summary": {
            "total_contractors": len(required) + len(below),
            "contractors_1099_required": len(required),
            "total_payments": total(payments),
            "threshold": threshold,
        },
        "contractors_1099_required": required,
        "contractors_below_threshold": below,
    }


def sales_tax(context: ReportContext) -> ReportData:
    default_rate = context.parameters.default_sales_tax_rate
    taxable: list[dict[str, Any]] = []
    exempt: list[dict[str, Any]] = []
    monthly: dict[str, dict[str, Decimal]] = defaultdict(lambda: {"sales": ZERO, "tax": ZERO})

    for t in context.income:
        if t.metadata.get("taxExempt") is True:
            exempt.append(
                transaction_line(t, reason=t.metadata.get("exemptReason") or NOT_SPECIFIED)
            )
            continue

        rate = to_decimal(t.metadata.get("taxRate")) or default_rate
        tax_amount = money(t.amount * rate)
        taxable.append(
            {
                "date": t.date.isoformat(),
                "description": t.description,
                "net_amount": t.amount,
                "tax_rate": rate,
                "tax_amount": tax_amount,
                "gross_amount": t.amount + tax_amount,
            }
        )
        monthly[t.month]["sales"] += t.amount
        monthly[t.month]["tax"] += tax_amount

    total_taxable = sum((line["net_amount"] for line in taxable), ZERO)
    total_tax = sum((line["tax_amount"] for line in taxable), ZERO)

    return {
        **context.header(),
        "summary": {
            "total_taxable_sales": total_taxable,
            "total_tax_collected": total_tax,
            "total_exempt_sales": sum((line["amount"] for line in exempt), ZERO),
            "average_tax_rate": (
                safe_ratio(total_tax, total_taxable) if total_taxable > 0 else default_rate
            ),
        },
        "taxable_transactions": taxable,
        "exempt_transactions": exempt,
        "monthly_data": [
            {"month": month, "taxable_sales": sums["sales"], "tax_collected": sums["tax"]}
            for month, sums in sorted(monthly.items())
        ],
    }


def tax_deductions(context: ReportContext) -> ReportData:
    """Deductible expenses by bucket; the first matching bucket wins."""
    buckets: dict[str, list[dict[str, Any]]] = defaultdict(list)
    non_deductible: list[dict[str, Any]] = []

    for t in context.expenses:
        line = transaction_line(t, category=t.category_name)
        if t.metadata.get("nonDeductible") is True:
            non_deductible.append(line)
            continue
        bucket = first_matching_bucket(t, context.keywords.tax_deductions, OTHER_DEDUCTIBLE)
        buckets[bucket].append(line)

    category_totals = sorted(
        (
            {
                "category": name,
                "total_amount": sum((line["amount"] for line in lines), ZERO),
                "transaction_count": len(lines),
                "expenses": lines,
            }
            for name, lines in buckets.items()
        ),
        key=lambda row: row["total_amount"],
        reverse=True,
    )
    total_deductible = sum((row["total_amount"] for row in category_totals), ZERO)
    total_non_deductible = sum((line["amount"] for line in non_deductible), ZERO)
    total_expenses = total_deductible + total_non_deductible

    return {
        **context.header(),
        "summary": {
            "total_deductible": total_deductible,
            "total_non_deductible": total_non_deductible,
            "total_expenses": total_expenses,
            "deductible_percentage": percentage(total_deductible, total_expenses),
        },
        "category_totals": category_totals,
        "non_deductible": non_deductible,
    }


def quarterly_tax(context: ReportContext) -> ReportData:
    """Estimated self-employment and income tax per calendar quarter."""
    params = context.parameters
    sums: dict[str, dict[str, Decimal]] = defaultdict(lambda: {"income": ZERO, "expenses": ZERO})
    for t in context.transactions:
        if t.type == TransactionType.INCOME:
            sums[quarter_key(t.date)]["income"] += t.amount
        elif t.type == TransactionType.EXPENSE:
            sums[quarter_key(t.date)]["expenses"] += t.amount

    quarters = []
    for quarter in sorted(sums):
        income = sums[quarter]["income"]
        expenses = sums[quarter]["expenses"]
        net_income = income - expenses
        self_employment = money(net_income * params.self_employment_tax_rate)
        income_tax = money(net_income * params.estimated_income_tax_rate)
        quarters.append(
            {
                "quarter": quarter,
                "income": income,
                "expenses": expenses,
                "net_income": net_income,
                "self_employment_tax": self_employment,
                "estimated_income_tax": income_tax,
                "total_tax_due": self_employment + income_tax,
            }
        )

    def column(key: str) -> Decimal:
        return sum((q[key] for q in quarters), ZERO)

    return {
        **context.header(),
        "quarters": quarters,
        "annual_summary": {
            "total_income": column("income"),
            "total_expenses": column("expenses"),
            "total_net_income": column("net_income"),
            "total_self_employment_tax": column("self_employment_tax"),
            "total_estimated_income_tax": column("estimated_income_tax"),
            "total_tax_due": column("total_tax_due"),
        },
        "tax_rates": {
            "self_employment": params.self_employment_tax_rate,
            "estimated_income": params.estimated_income_tax_rate,
        },
        "disclaimer": TAX_DISCLAIMER,
    }
