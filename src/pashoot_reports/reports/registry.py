"""Report registry: maps each ReportType to its generator, renderer and metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pashoot_reports.reports import generators
from pashoot_reports.reports.renderers import render_generic_report, render_income_statement
from pashoot_reports.reports.types import (
    ReportGenerator,
    ReportRenderer,
    ReportScope,
    ReportType,
    UnknownReportTypeError,
)


@dataclass(frozen=True)
class ReportDefinition:
    report_type: ReportType
    description: str
    category: str
    generator: ReportGenerator
    renderer: ReportRenderer = render_generic_report
    scope: ReportScope = ReportScope.PERIOD

    @property
    def name(self) -> str:
        return self.report_type.display_name

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.report_type.value,
            "name": self.name,
            "description": self.description,
            "category": self.category,
        }


FINANCIAL_STATEMENTS = "Financial Statements"
REVENUE_AND_SALES = "Revenue & Sales"
EXPENSES = "Expenses"
RECEIVABLES_AND_PAYABLES = "AR & AP"
TAX_AND_COMPLIANCE = "Tax & Compliance"
MANAGEMENT = "Management"
RECONCILIATION = "Reconciliation"

_DEFINITIONS: tuple[ReportDefinition, ...] = (
    # Financial Statements
    ReportDefinition(
        ReportType.INCOME_STATEMENT,
        "Revenue and expenses breakdown with net income",
        FINANCIAL_STATEMENTS,
        generators.income_statement,
        renderer=render_income_statement,
    ),
    ReportDefinition(
        ReportType.BALANCE_SHEET,
        "Assets, liabilities, and equity at a point in time",
        FINANCIAL_STATEMENTS,
        generators.balance_sheet,
        scope=ReportScope.AS_OF,
    ),
    ReportDefinition(
        ReportType.CASH_FLOW,
        "Operating, investing, and financing cash flows",
        FINANCIAL_STATEMENTS,
        generators.cash_flow,
    ),
    ReportDefinition(
        ReportType.TRIAL_BALANCE,
        "Verification that debits equal credits",
        FINANCIAL_STATEMENTS,
        generators.trial_balance,
        scope=ReportScope.AS_OF,
    ),
    # Revenue & Sales
    ReportDefinition(
        ReportType.REVENUE_BREAKDOWN,
        "Revenue by category, source, and time period",
        REVENUE_AND_SALES,
        generators.revenue_breakdown,
    ),
    ReportDefinition(
        ReportType.SALES_BY_CUSTOMER,
        "Revenue analysis by customer",
        REVENUE_AND_SALES,
        generators.sales_by_customer,
    ),
    ReportDefinition(
        ReportType.REVENUE_TRENDS,
        "Monthly revenue trends and growth rates",
        REVENUE_AND_SALES,
        generators.revenue_trends,
    ),
    # Expenses
    ReportDefinition(
        ReportType.EXPENSE_BY_CATEGORY,
        "Expenses categorized and analyzed",
        EXPENSES,
        generators.expense_by_category,
    ),
    ReportDefinition(
        ReportType.EXPENSE_BY_VENDOR,
        "Expense analysis by vendor",
        EXPENSES,
        generators.expense_by_vendor,
    ),
    ReportDefinition(
        ReportType.TRAVEL_ENTERTAINMENT,
        "T&E expenses for tax deduction tracking",
        EXPENSES,
        generators.travel_entertainment,
    ),
    # AR & AP
    ReportDefinition(
        ReportType.AR_AGING,
        "Accounts receivable aging analysis",
        RECEIVABLES_AND_PAYABLES,
        generators.ar_aging,
        scope=ReportScope.AS_OF,
    ),
    ReportDefinition(
        ReportType.AP_AGING,
        "Accounts payable aging analysis",
        RECEIVABLES_AND_PAYABLES,
        generators.ap_aging,
        scope=ReportScope.AS_OF,
    ),
    ReportDefinition(
        ReportType.CUSTOMER_STATEMENT,
        "Detailed customer transaction history",
        RECEIVABLES_AND_PAYABLES,
        generators.customer_statement,
    ),
    ReportDefinition(
        ReportType.VENDOR_STATEMENT,
        "Detailed vendor transaction history",
        RECEIVABLES_AND_PAYABLES,
        generators.vendor_statement,
    ),
    # Tax & Compliance
    ReportDefinition(
        ReportType.CONTRACTOR_1099,
        "Contractor payments for tax reporting",
        TAX_AND_COMPLIANCE,
        generators.contractor_1099,
    ),
    ReportDefinition(
        ReportType.SALES_TAX,
        "Sales tax collection and liability",
        TAX_AND_COMPLIANCE,
        generators.sales_tax,
    ),
    ReportDefinition(
        ReportType.TAX_DEDUCTIONS,
        "Categorized deductible expenses for tax filing",
        TAX_AND_COMPLIANCE,
        generators.tax_deductions,
    ),
    ReportDefinition(
        ReportType.QUARTERLY_TAX,
        "Estimated quarterly tax calculations",
        TAX_AND_COMPLIANCE,
        generators.quarterly_tax,
    ),
    # Management
    ReportDefinition(
        ReportType.BUDGET_VS_ACTUAL,
        "Compare actual performance against budget",
        MANAGEMENT,
        generators.budget_vs_actual,
    ),
    ReportDefinition(
        ReportType.PROFIT_MARGIN,
        "Gross, operating, and net profit margins",
        MANAGEMENT,
        generators.profit_margin,
    ),
    ReportDefinition(
        ReportType.BREAK_EVEN,
        "Calculate break-even revenue and units",
        MANAGEMENT,
        generators.break_even,
    ),
    ReportDefinition(
        ReportType.KPI_DASHBOARD,
        "Key performance indicators and metrics",
        MANAGEMENT,
        generators.kpi_dashboard,
    ),
    # Reconciliation
    ReportDefinition(
        ReportType.STRIPE_RECONCILIATION,
        "Stripe revenue vs accounting reconciliation",
        RECONCILIATION,
        generators.stripe_reconciliation,
    ),
    ReportDefinition(
        ReportType.SQUARE_RECONCILIATION,
        "Square revenue vs accounting reconciliation",
        RECONCILIATION,
        generators.square_reconciliation,
    ),
    ReportDefinition(
        ReportType.CROSS_SOURCE_SUMMARY,
        "Consolidated view across all data sources",
        RECONCILIATION,
        generators.cross_source_summary,
    ),
)


def _build_registry(definitions: tuple[ReportDefinition, ...]) -> dict[ReportType, ReportDefinition]:
    registry: dict[ReportType, ReportDefinition] = {}
    for definition in definitions:
        if definition.report_type in registry:
            raise RuntimeError(f"Report type registered twice: {definition.report_type.value}")
        registry[definition.report_type] = definition

    missing = [t.value for t in ReportType if t not in registry]
    if missing:
        raise RuntimeError(f"Report types without a definition: {', '.join(missing)}")
    return registry


REGISTRY: dict[ReportType, ReportDefinition] = _build_registry(_DEFINITIONS)


def get_report_definition(report_type: str | ReportType) -> ReportDefinition:
    """Look up a report, raising UnknownReportTypeError for unregistered ids."""
    return REGISTRY[ReportType.parse(report_type)]


def list_report_types() -> list[dict[str, Any]]:
    """Catalog of available reports in registry order."""
    return [definition.to_dict() for definition in REGISTRY.values()]


__all__ = [
    "REGISTRY",
    "ReportDefinition",
    "UnknownReportTypeError",
    "get_report_definition",
    "list_report_types",
]
