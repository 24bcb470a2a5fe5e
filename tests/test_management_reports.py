"""Tests for management report generators."""

from datetime import date
from decimal import Decimal

import pytest

from pashoot_reports.models import TransactionType
from pashoot_reports.reports.generators import (
    break_even,
    budget_vs_actual,
    kpi_dashboard,
    profit_margin,
)
from pashoot_reports.reports.generators.management import BUDGET_NOTE
from pashoot_reports.reports.types import ReportParameters, ReportType

INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


class TestBudgetVsActual:
    def test_monthly_variance(self, make_context, make_transaction):
        transactions = [
            make_transaction("12000.00", INCOME, day=date(2024, 1, 5)),
            make_transaction("6000.00", EXPENSE, day=date(2024, 1, 20)),
        ]

        data = budget_vs_actual(make_context(ReportType.BUDGET_VS_ACTUAL, transactions))

        (row,) = data["monthly_comparison"]
        assert row["month"] == "2024-01"
        assert row["budget"] == {
            "income": Decimal("10000"),
            "expenses": Decimal("7000"),
            "net_income": Decimal("3000"),
        }
        assert row["actual"]["net_income"] == Decimal("6000.00")
        assert row["variance"] == {
            "income": Decimal("2000.00"),
            "expenses": Decimal("-1000.00"),
            "net_income": Decimal("3000.00"),
        }
        assert row["percentage_variance"] == {
            "income": Decimal("20.00"),
            "expenses": Decimal("-14.29"),
            "net_income": Decimal("100.00"),
        }
        assert data["note"] == BUDGET_NOTE

    def test_overall_scales_budget_by_active_months(self, make_context, make_transaction):
        transactions = [
            make_transaction("9000.00", INCOME, day=date(2024, 3, 1)),
            make_transaction("11000.00", INCOME, day=date(2024, 4, 1)),
        ]

        data = budget_vs_actual(make_context(ReportType.BUDGET_VS_ACTUAL, transactions))

        overall = data["overall_performance"]
        assert overall["budget"]["total_income"] == Decimal("20000")
        assert overall["actual"]["total_income"] == Decimal("20000.00")
        assert overall["variance"]["income"] == 0
        assert overall["variance"]["expenses"] == Decimal("-14000")

    def test_zero_budget_has_zero_percentage_variance(self, make_context, make_transaction):
        params = ReportParameters(
            monthly_budget_income=Decimal("0"), monthly_budget_expenses=Decimal("0")
        )
        transactions = [make_transaction("50.00", INCOME)]

        data = budget_vs_actual(
            make_context(ReportType.BUDGET_VS_ACTUAL, transactions, parameters=params)
        )

        assert data["monthly_comparison"][0]["percentage_variance"]["income"] == 0


class TestProfitMargin:
    def test_margins(self, make_context, make_transaction):
        transactions = [
            make_transaction("1000.00", INCOME),
            make_transaction("300.00", EXPENSE, description="Inventory purchase"),
            make_transaction("200.00", EXPENSE, category="Rent"),
        ]

        data = profit_margin(make_context(ReportType.PROFIT_MARGIN, transactions))

        overall = data["overall_margins"]
        assert overall["total_cogs"] == Decimal("300.00")
        assert overall["total_operating_expenses"] == Decimal("200.00")
        assert overall["gross_profit"] == Decimal("700.00")
        assert overall["gross_margin"] == Decimal("70.00")
        assert overall["operating_margin"] == Decimal("50.00")
        assert overall["net_margin"] == Decimal("50.00")
        assert data["monthly_margins"][0]["gross_margin"] == Decimal("70.00")

    def test_no_revenue(self, make_context, make_transaction):
        transactions = [make_transaction("50.00", EXPENSE)]

        data = profit_margin(make_context(ReportType.PROFIT_MARGIN, transactions))

        assert data["overall_margins"]["gross_margin"] == 0
        assert data["overall_margins"]["net_profit"] == Decimal("-50.00")


class TestBreakEven:
    def test_summary(self, make_context, make_transaction):
        transactions = [make_transaction("2500.00", INCOME) for _ in range(4)] + [
            make_transaction("3000.00", EXPENSE, category="Rent"),
            make_transaction("2000.00", EXPENSE, category="Shipping"),
            make_transaction("500.00", EXPENSE, description="Misc"),
        ]

        data = break_even(make_context(ReportType.BREAK_EVEN, transactions))

        summary = data["summary"]
        assert summary["total_fixed_costs"] == Decimal("3500.00")
        assert summary["total_variable_costs"] == Decimal("2000.00")
        assert summary["contribution_margin"] == Decimal("8000.00")
        assert summary["contribution_margin_ratio"] == Decimal("0.8000")
        assert summary["break_even_revenue"] == Decimal("4375.00")
        assert summary["break_even_units"] == 2
        assert summary["revenue_to_break_even"] == 0
        assert summary["units_to_break_even"] == 0
        assert summary["is_above_break_even"] is True

    def test_fixed_keywords_win(self, make_context, make_transaction):
        transactions = [
            make_transaction("1000.00", INCOME),
            make_transaction("100.00", EXPENSE, description="Shipping insurance"),
        ]

        data = break_even(make_context(ReportType.BREAK_EVEN, transactions))

        assert data["summary"]["total_fixed_costs"] == Decimal("100.00")
        assert data["summary"]["total_variable_costs"] == 0

    def test_below_break_even(self, make_context, make_transaction):
        transactions = [
            make_transaction("1000.00", INCOME, day=date(2024, 1, 1)),
            make_transaction("2000.00", EXPENSE, category="Rent", day=date(2024, 1, 2)),
        ]

        data = break_even(make_context(ReportType.BREAK_EVEN, transactions))

        summary = data["summary"]
        assert summary["break_even_revenue"] == Decimal("2000.00")
        assert summary["revenue_to_break_even"] == Decimal("1000.00")
        assert summary["break_even_units"] == 2
        assert summary["units_to_break_even"] == 1
        assert summary["is_above_break_even"] is False
        assert data["monthly_break_even"][0]["surplus"] == Decimal("-1000.00")

    @pytest.mark.parametrize(
        "rows",
        [
            [],
            [("500.00", EXPENSE)],
            [("100.00", INCOME), ("100.00", EXPENSE, "Shipping")],
        ],
    )
    def test_degenerate_inputs_do_not_divide_by_zero(
        self, make_context, make_transaction, rows
    ):
        transactions = [
            make_transaction(row[0], row[1], category=row[2] if len(row) > 2 else None)
            for row in rows
        ]

        data = break_even(make_context(ReportType.BREAK_EVEN, transactions))

        assert data["summary"]["break_even_revenue"] == 0
        assert data["summary"]["break_even_units"] == 0


class TestKPIDashboard:
    def test_kpis(self, make_context, make_transaction):
        transactions = [
            make_transaction("1000.00", INCOME, day=date(2024, 1, 10), description="Acme - A"),
            make_transaction("1500.00", INCOME, day=date(2024, 2, 10), description="Globex - B"),
            make_transaction("500.00", EXPENSE, day=date(2024, 2, 11), description="AWS - Host"),
        ]

        data = kpi_dashboard(make_context(ReportType.KPI_DASHBOARD, transactions))

        kpis = data["kpis"]
        assert kpis["financial"]["net_income"] == Decimal("2000.00")
        assert kpis["financial"]["profit_margin"] == Decimal("80.00")
        assert kpis["financial"]["expense_ratio"] == Decimal("20.00")
        assert kpis["financial"]["annual_run_rate"] == Decimal("2500.00")
        assert kpis["growth"]["monthly_growth_rate"] == Decimal("50.00")
        assert kpis["customers"]["total_customers"] == 2
        assert kpis["customers"]["average_revenue_per_customer"] == Decimal("1250.00")
        assert kpis["vendors"]["total_vendors"] == 1
        assert kpis["operational"]["avg_monthly_revenue"] == Decimal("1250.00")
        assert kpis["operational"]["avg_monthly_expenses"] == Decimal("250.00")
        assert kpis["operational"]["cash_burn_rate"] == 0
        assert [row["month"] for row in data["monthly_trends"]] == ["2024-01", "2024-02"]

    def test_cash_burn(self, make_context, make_transaction):
        transactions = [
            make_transaction("100.00", INCOME),
            make_transaction("400.00", EXPENSE),
        ]

        data = kpi_dashboard(make_context(ReportType.KPI_DASHBOARD, transactions))

        assert data["kpis"]["operational"]["cash_burn_rate"] == Decimal("300.00")

    def test_no_data(self, make_context):
        data = kpi_dashboard(
            make_context(
                ReportType.KPI_DASHBOARD, [], start=date(2024, 1, 1), end=date(2024, 1, 1)
            )
        )

        kpis = data["kpis"]
        assert kpis["financial"]["profit_margin"] == 0
        assert kpis["financial"]["annual_run_rate"] == 0
        assert kpis["customers"]["average_revenue_per_customer"] == 0
        assert kpis["growth"]["monthly_growth_rate"] == 0
