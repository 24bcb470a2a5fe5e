"""Management reports: budget, margins, break-even and KPIs."""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Callable
from decimal import Decimal

from pashoot_reports.config import KeywordCatalog
from pashoot_reports.models import Transaction, TransactionType
from pashoot_reports.reports.common import (
    UNKNOWN_CUSTOMER,
    UNKNOWN_VENDOR,
    ZERO,
    average,
    customer_name,
    matches_keywords,
    money,
    percentage,
    positive_ratio,
    safe_ratio,
    sum_by,
    total,
    vendor_name,
)
from pashoot_reports.reports.types import ReportContext, ReportData

BUDGET_NOTE = "Budget figures are defaults. Set per-user budgets to compare against your own targets."
DAYS_PER_YEAR = 365


def _monthly_sums(
    transactions: list[Transaction], bucket: Callable[[Transaction], str | None]
) -> dict[str, dict[str, Decimal]]:
    """``{month: {bucket name: total}}`` where ``bucket(t)`` names the column or returns None."""
    months: dict[str, dict[str, Decimal]] = defaultdict(lambda: defaultdict(lambda: ZERO))
    for t in transactions:
        name = bucket(t)
        if name is not None:
            months[t.month][name] += t.amount
    return months


def _income_or_expense(t: Transaction) -> str | None:
    if t.type == TransactionType.INCOME:
        return "income"
    if t.type == TransactionType.EXPENSE:
        return "expenses"
    return None


# =============================================================================
# BUDGET VS ACTUAL
# =============================================================================


def _variance_pct(actual: Decimal, budget: Decimal) -> Decimal:
    if budget <= 0:
        return ZERO
    return percentage(actual - budget, budget)


def budget_vs_actual(context: ReportContext) -> ReportData:
    """Each month with activity against the same monthly budget."""
    params = context.parameters
    budget = {
        "income": params.monthly_budget_income,
        "expenses": params.monthly_budget_expenses,
        "net_income": params.monthly_budget_net_income,
    }

    comparison = []
    months = _monthly_sums(list(context.transactions), _income_or_expense)
    for month in sorted(months):
        actual = {
            "income": months[month]["income"],
            "expenses": months[month]["expenses"],
            "net_income": months[month]["income"] - months[month]["expenses"],
        }
        comparison.append(
            {
                "month": month,
                "budget": dict(budget),
                "actual": actual,
                "variance": {key: actual[key] - budget[key] for key in budget},
                "percentage_variance": {
                    key: _variance_pct(actual[key], budget[key]) for key in budget
                },
            }
        )

    month_count = len(comparison)
    budget_income = budget["income"] * month_count
    budget_expenses = budget["expenses"] * month_count
    actual_income = sum((row["actual"]["income"] for row in comparison), ZERO)
    actual_expenses = sum((row["actual"]["expenses"] for row in comparison), ZERO)

    return {
        **context.header(),
        "monthly_comparison": comparison,
        "overall_performance": {
            "budget": {
                "total_income": budget_income,
                "total_expenses": budget_expenses,
                "total_net_income": budget_income - budget_expenses,
            },
            "actual": {
                "total_income": actual_income,
                "total_expenses": actual_expenses,
                "total_net_income": actual_income - actual_expenses,
            },
            "variance": {
                "income": actual_income - budget_income,
                "expenses": actual_expenses - budget_expenses,
                "net_income": (actual_income - actual_expenses) - (budget_income - budget_expenses),
            },
        },
        "note": BUDGET_NOTE,
    }


# =============================================================================
# PROFIT MARGIN
# =============================================================================


def _margins(revenue: Decimal, cogs: Decimal, opex: Decimal) -> dict[str, Decimal]:
    gross_profit = revenue - cogs
    operating_profit = gross_profit - opex
    net_profit = revenue - cogs - opex
    return {
        "gross_profit": gross_profit,
        "gross_margin": percentage(gross_profit, revenue),
        "operating_profit": operating_profit,
        "operating_margin": percentage(operating_profit, revenue),
        "net_profit": net_profit,
        "net_margin": percentage(net_profit, revenue),
    }


def profit_margin(context: ReportContext) -> ReportData:
    """Gross, operating and net margins. Expenses matching COGS keywords are cost of goods."""
    cogs_keywords = context.keywords.cogs

    def column(t: Transaction) -> str | None:
        if t.type == TransactionType.INCOME:
            return "revenue"
        if t.type == TransactionType.EXPENSE:
            return "cogs" if matches_keywords(t, cogs_keywords) else "opex"
        return None

    months = _monthly_sums(list(context.transactions), column)
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    monthly_margins = []
    for month in sorted(months):
        sums = months[month]
        for key, value in sums.items():
            totals[key] += value
        margins = _margins(sums["revenue"], sums["cogs"], sums["opex"])
        monthly_margins.append(
            {
                "month": month,
                "revenue": sums["revenue"],
                "cogs": sums["cogs"],
                "operating_expenses": sums["opex"],
                "gross_margin": margins["gross_margin"],
                "operating_margin": margins["operating_margin"],
                "net_margin": margins["net_margin"],
            }
        )

    return {
        **context.header(),
        "overall_margins": {
            "total_revenue": totals["revenue"],
            "total_cogs": totals["cogs"],
            "total_operating_expenses": totals["opex"],
            **_margins(totals["revenue"], totals["cogs"], totals["opex"]),
        },
        "monthly_margins": monthly_margins,
    }


# =============================================================================
# BREAK-EVEN
# =============================================================================


def _cost_kind(t: Transaction, keywords: KeywordCatalog) -> str:
    """Fixed keywords win over variable ones; unclassified costs count as fixed."""
    if matches_keywords(t, keywords.fixed_costs):
        return "fixed"
    if matches_keywords(t, keywords.variable_costs):
        return "variable"
    return "fixed"


def _break_even_revenue(revenue: Decimal, fixed: Decimal, variable: Decimal) -> Decimal:
    ratio = positive_ratio(revenue - variable, revenue)
    return money(fixed / ratio) if ratio > 0 else ZERO


def break_even(context: ReportContext) -> ReportData:
    """Contribution-margin break-even; each income transaction counts as one unit sold."""
    keywords = context.keywords

    def column(t: Transaction) -> str | None:
        if t.type == TransactionType.INCOME:
            return "revenue"
        if t.type == TransactionType.EXPENSE:
            return _cost_kind(t, keywords)
        return None

    income = context.income
    expenses = context.expenses
    total_revenue = total(income)
    fixed_costs = total(t for t in expenses if _cost_kind(t, keywords) == "fixed")
    variable_costs = total(t for t in expenses if _cost_kind(t, keywords) == "variable")
    units = len(income)

    contribution_margin = total_revenue - variable_costs
    contribution_margin_ratio = positive_ratio(contribution_margin, total_revenue)
    break_even_revenue = _break_even_revenue(total_revenue, fixed_costs, variable_costs)

    contribution_per_unit = safe_ratio(total_revenue, units) - safe_ratio(variable_costs, units)
    break_even_units = (
        math.ceil(fixed_costs / contribution_per_unit) if contribution_per_unit > 0 else 0
    )

    monthly = []
    months = _monthly_sums(list(context.transactions), column)
    for month in sorted(months):
        sums = months[month]
        month_break_even = _break_even_revenue(sums["revenue"], sums["fixed"], sums["variable"])
        monthly.append(
            {
                "month": month,
                "revenue": sums["revenue"],
                "fixed_costs": sums["fixed"],
                "variable_costs": sums["variable"],
                "break_even_revenue": month_break_even,
                "is_above_break_even": sums["revenue"] >= month_break_even,
                "surplus": sums["revenue"] - month_break_even,
            }
        )

    return {
        **context.header(),
        "summary": {
            "total_revenue": total_revenue,
            "total_fixed_costs": fixed_costs,
            "total_variable_costs": variable_costs,
            "contribution_margin": contribution_margin,
            "contribution_margin_ratio": contribution_margin_ratio.quantize(Decimal("0.0001")),
            "break_even_revenue": break_even_revenue,
            "break_even_units": break_even_units,
            "current_revenue": total_revenue,
            "revenue_to_break_even": max(ZERO, break_even_revenue - total_revenue),
            "units_to_break_even": max(0, break_even_units - units),
            "is_above_break_even": total_revenue >= break_even_revenue,
        },
        "monthly_break_even": monthly,
    }


# =============================================================================
# KPI DASHBOARD
# =============================================================================


def kpi_dashboard(context: ReportContext) -> ReportData:
    income = context.income
    expenses = context.expenses
    total_revenue = total(income)
    total_expenses = total(expenses)
    net_income = total_revenue - total_expenses

    customers = {customer_name(t) for t in income} - {UNKNOWN_CUSTOMER}
    vendors = {vendor_name(t) for t in expenses} - {UNKNOWN_VENDOR}

    monthly_revenue = sum_by(income, lambda t: t.month)
    months = sorted(monthly_revenue)
    growth_rate = ZERO
    if len(months) >= 2:
        last, previous = monthly_revenue[months[-1]], monthly_revenue[months[-2]]
        growth_rate = percentage(last - previous, previous) if previous > 0 else ZERO

    period_days = max(1, (context.end_date - context.start_date).days)
    annual_run_rate = money(total_revenue / period_days * DAYS_PER_YEAR)
    cash_burn_rate = money(abs(net_income) / max(1, len(months))) if net_income < 0 else ZERO

    return {
        **context.header(),
        "kpis": {
            "financial": {
                "total_revenue": total_revenue,
                "total_expenses": total_expenses,
                "net_income": net_income,
                "profit_margin": percentage(net_income, total_revenue),
                "expense_ratio": percentage(total_expenses, total_revenue),
                "annual_run_rate": annual_run_rate,
            },
            "growth": {
                "monthly_growth_rate": growth_rate,
                "revenue_growth": growth_rate,
            },
            "customers": {
                "total_customers": len(customers),
                "average_revenue_per_customer": average(total_revenue, len(customers)),
                "average_revenue_per_transaction": average(total_revenue, len(income)),
                "total_transactions": len(income),
            },
            "vendors": {
                "total_vendors": len(vendors),
                "average_expense_per_vendor": average(total_expenses, len(vendors)),
            },
            "operational": {
                "avg_monthly_revenue": average(total_revenue, len(months)),
                "avg_monthly_expenses": average(total_expenses, len(months)),
                "cash_burn_rate": cash_burn_rate,
            },
        },
        "monthly_trends": [
            {"month": month, "revenue": monthly_revenue[month]} for month in months
        ],
    }
