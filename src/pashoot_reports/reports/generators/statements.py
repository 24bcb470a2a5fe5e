"""Financial statements: P&L, balance sheet, cash flow, trial balance."""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal

from pashoot_reports.models import TransactionType
from pashoot_reports.reports.common import (
    ZERO,
    category_matches,
    is_balanced,
    percentage,
    sum_by,
    total,
)
from pashoot_reports.reports.types import ReportContext, ReportData


def _category_table(sums: dict[str, Decimal]) -> list[dict[str, object]]:
    rows = [{"category": name, "amount": amount} for name, amount in sums.items()]
    return sorted(rows, key=lambda row: row["amount"], reverse=True)


def income_statement(context: ReportContext) -> ReportData:
    """Revenue and expenses by category. Transfers are neither."""
    income = context.income
    expenses = context.expenses
    total_revenue = total(income)
    total_expenses = total(expenses)
    net_income = total_revenue - total_expenses

    return {
        **context.header(),
        "revenue": {
            "categories": _category_table(sum_by(income, lambda t: t.category_name)),
            "total": total_revenue,
        },
        "expenses": {
            "categories": _category_table(sum_by(expenses, lambda t: t.category_name)),
            "total": total_expenses,
        },
        "net_income": net_income,
        "profit_margin": percentage(net_income, total_revenue),
    }


def balance_sheet(context: ReportContext) -> ReportData:
    """Cash-basis balance sheet as of the end date.

    Cash is cumulative income minus expenses. Receivables, payables and accruals
    are not tracked yet and show as zero.
    """
    total_revenue = total(context.income)
    total_expenses = total(context.expenses)
    cash = total_revenue - total_expenses

    assets = {
        "current_assets": {"cash": cash, "accounts_receivable": ZERO},
        "total": cash,
    }
    liabilities = {
        "current_liabilities": {"accounts_payable": ZERO, "accrued_expenses": ZERO},
        "total": ZERO,
    }
    equity = {
        "retained_earnings": total_revenue - total_expenses,
        "total": total_revenue - total_expenses,
    }
    total_liabilities_and_equity = liabilities["total"] + equity["total"]

    return {
        **context.header(as_of=True),
        "assets": assets,
        "liabilities": liabilities,
        "equity": equity,
        "total_assets": assets["total"],
        "total_liabilities_and_equity": total_liabilities_and_equity,
        "balanced": is_balanced(assets["total"], total_liabilities_and_equity),
    }


def cash_flow(context: ReportContext) -> ReportData:
    """Operating, investing and financing flows classified by category keywords."""
    keywords = context.keywords

    operating_inflows = total(context.income)
    operating_outflows = total(
        t for t in context.expenses if not category_matches(t, keywords.non_operating)
    )
    investing_outflows = total(
        t for t in context.expenses if category_matches(t, keywords.investing)
    )

    financing = [t for t in context.transactions if category_matches(t, keywords.financing)]
    financing_inflows = total(t for t in financing if t.type == TransactionType.INCOME)
    financing_outflows = total(t for t in financing if t.type != TransactionType.INCOME)

    net_operating = operating_inflows - operating_outflows
    net_investing = -investing_outflows
    net_financing = financing_inflows - financing_outflows

    return {
        **context.header(),
        "operating": {
            "inflows": operating_inflows,
            "outflows": operating_outflows,
            "net": net_operating,
        },
        "investing": {
            "outflows": investing_outflows,
            "net": net_investing,
        },
        "financing": {
            "inflows": financing_inflows,
            "outflows": financing_outflows,
            "net": net_financing,
        },
        "net_cash_change": net_operating + net_investing + net_financing,
    }


def trial_balance(context: ReportContext) -> ReportData:
    """Per-category debits (expenses) and credits (income) as of the end date."""
    debits: dict[str, Decimal] = defaultdict(lambda: ZERO)
    credits: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for t in context.transactions:
        if t.type == TransactionType.INCOME:
            credits[t.category_name] += t.amount
        elif t.type == TransactionType.EXPENSE:
            debits[t.category_name] += t.amount

    accounts = [
        {
            "account": name,
            "debits": debits[name],
            "credits": credits[name],
            "balance": debits[name] - credits[name],
        }
        for name in sorted(set(debits) | set(credits))
    ]
    total_debits = sum(debits.values(), ZERO)
    total_credits = sum(credits.values(), ZERO)

    return {
        **context.header(as_of=True),
        "accounts": accounts,
        "total_debits": total_debits,
        "total_credits": total_credits,
        "difference": total_debits - total_credits,
        "balanced": is_balanced(total_debits, total_credits),
    }
