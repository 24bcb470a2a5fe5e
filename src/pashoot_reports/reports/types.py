"""Report kinds, requests, parameters and the context handed to generators."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from pashoot_reports.config import KeywordCatalog, Settings, get_settings, load_keyword_catalog
from pashoot_reports.models import Connection, Transaction, TransactionType

ReportData = dict[str, Any]


class ReportError(Exception):
    """Base exception for report requests the caller must fix."""


class UnknownReportTypeError(ReportError):
    def __init__(self, report_type: str):
        super().__init__(f"Unknown report type: {report_type}")
        self.report_type = report_type


class InvalidDateRangeError(ReportError):
    def __init__(self, start_date: date, end_date: date):
        super().__init__(
            f"Invalid date range: start {start_date.isoformat()} is after end {end_date.isoformat()}"
        )
        self.start_date = start_date
        self.end_date = end_date


class ReportType(str, Enum):
    """Every report the service can produce."""

    # Financial statements
    INCOME_STATEMENT = "income_statement"
    BALANCE_SHEET = "balance_sheet"
    CASH_FLOW = "cash_flow"
    TRIAL_BALANCE = "trial_balance"
    # Revenue & sales
    REVENUE_BREAKDOWN = "revenue_breakdown"
    SALES_BY_CUSTOMER = "sales_by_customer"
    REVENUE_TRENDS = "revenue_trends"
    # Expenses
    EXPENSE_BY_CATEGORY = "expense_by_category"
    EXPENSE_BY_VENDOR = "expense_by_vendor"
    TRAVEL_ENTERTAINMENT = "travel_entertainment"
    # Receivables & payables
    AR_AGING = "ar_aging"
    AP_AGING = "ap_aging"
    CUSTOMER_STATEMENT = "customer_statement"
    VENDOR_STATEMENT = "vendor_statement"
    # Tax & compliance
    CONTRACTOR_1099 = "contractor_1099"
    SALES_TAX = "sales_tax"
    TAX_DEDUCTIONS = "tax_deductions"
    QUARTERLY_TAX = "quarterly_tax"
    # Management
    BUDGET_VS_ACTUAL = "budget_vs_actual"
    PROFIT_MARGIN = "profit_margin"
    BREAK_EVEN = "break_even"
    KPI_DASHBOARD = "kpi_dashboard"
    # Reconciliation
    STRIPE_RECONCILIATION = "stripe_reconciliation"
    SQUARE_RECONCILIATION = "square_reconciliation"
    CROSS_SOURCE_SUMMARY = "cross_source_summary"

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: str | ReportType) -> ReportType:
        """Resolve a report id, raising UnknownReportTypeError for anything else."""
        try:
            return cls(value)
        except ValueError:
            raise UnknownReportTypeError(str(value)) from None


DISPLAY_NAMES: dict[ReportType, str] = {
    ReportType.INCOME_STATEMENT: "Income Statement (P&L)",
    ReportType.BALANCE_SHEET: "Balance Sheet",
    ReportType.CASH_FLOW: "Cash Flow Statement",
    ReportType.TRIAL_BALANCE: "Trial Balance",
    ReportType.REVENUE_BREAKDOWN: "Revenue Breakdown",
    ReportType.SALES_BY_CUSTOMER: "Sales by Customer",
    ReportType.REVENUE_TRENDS: "Revenue Trends",
    ReportType.EXPENSE_BY_CATEGORY: "Expense by Category",
    ReportType.EXPENSE_BY_VENDOR: "Expense by Vendor",
    ReportType.TRAVEL_ENTERTAINMENT: "Travel & Entertainment",
    ReportType.AR_AGING: "AR Aging",
    ReportType.AP_AGING: "AP Aging",
    ReportType.CUSTOMER_STATEMENT: "Customer Statement",
    ReportType.VENDOR_STATEMENT: "Vendor Statement",
    ReportType.CONTRACTOR_1099: "1099 Contractor Report",
    ReportType.SALES_TAX: "Sales Tax Report",
    ReportType.TAX_DEDUCTIONS: "Tax Deduction Categorization",
    ReportType.QUARTERLY_TAX: "Quarterly Tax Summary",
    ReportType.BUDGET_VS_ACTUAL: "Budget vs Actual",
    ReportType.PROFIT_MARGIN: "Profit Margin Analysis",
    ReportType.BREAK_EVEN: "Break-Even Analysis",
    ReportType.KPI_DASHBOARD: "KPI Dashboard",
    ReportType.STRIPE_RECONCILIATION: "Stripe Reconciliation",
    ReportType.SQUARE_RECONCILIATION: "Square Reconciliation",
    ReportType.CROSS_SOURCE_SUMMARY: "Cross-Source Summary",
}


class ReportScope(str, Enum):
    """Which transactions a report is computed over."""

    PERIOD = "period"  # start_date <= date <= end_date
    AS_OF = "as_of"  # date <= end_date


@dataclass(frozen=True)
class ReportRequest:
    user_id: str
    report_type: ReportType
    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise InvalidDateRangeError(self.start_date, self.end_date)


def _decimal(value: float | int | str | Decimal) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


@dataclass(frozen=True)
class ReportParameters:
    """Per-user assumptions behind budget, tax and compliance reports."""

    monthly_budget_income: Decimal = Decimal("10000")
    monthly_budget_expenses: Decimal = Decimal("7000")
    default_sales_tax_rate: Decimal = Decimal("0.08")
    self_employment_tax_rate: Decimal = Decimal("0.153")
    estimated_income_tax_rate: Decimal = Decimal("0.22")
    contractor_1099_threshold: Decimal = Decimal("600")

    def __post_init__(self) -> None:
        for name in self.__dataclass_fields__:
            object.__setattr__(self, name, _decimal(getattr(self, name)))

    @property
    def monthly_budget_net_income(self) -> Decimal:
        return self.monthly_budget_income - self.monthly_budget_expenses

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ReportParameters:
        settings = settings or get_settings()
        return cls(
            monthly_budget_income=_decimal(settings.monthly_budget_income),
            monthly_budget_expenses=_decimal(settings.monthly_budget_expenses),
            default_sales_tax_rate=_decimal(settings.default_sales_tax_rate),
            self_employment_tax_rate=_decimal(settings.self_employment_tax_rate),
            estimated_income_tax_rate=_decimal(settings.estimated_income_tax_rate),
            contractor_1099_threshold=_decimal(settings.contractor_1099_threshold),
        )


@dataclass
class ReportContext:
    """Inputs of one generator run. Generators read it and never touch storage."""

    request: ReportRequest
    transactions: Sequence[Transaction]
    connections: Sequence[Connection] = ()
    parameters: ReportParameters = field(default_factory=ReportParameters)
    keywords: KeywordCatalog = field(default_factory=load_keyword_catalog)

    @property
    def start_date(self) -> date:
        return self.request.start_date

    @property
    def end_date(self) -> date:
        return self.request.end_date

    def of_type(self, transaction_type: TransactionType) -> list[Transaction]:
        return [t for t in self.transactions if t.type == transaction_type]

    @property
    def income(self) -> list[Transaction]:
        return self.of_type(TransactionType.INCOME)

    @property
    def expenses(self) -> list[Transaction]:
        return self.of_type(TransactionType.EXPENSE)

    def header(self, as_of: bool = False) -> ReportData:
        """Fields every report starts with."""
        data: ReportData = {
            "report_type": self.request.report_type.display_name,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
        }
        if as_of:
            data["as_of_date"] = self.end_date.isoformat()
        return data


ReportGenerator = Callable[[ReportContext], ReportData]
ReportRenderer = Callable[[ReportData], str]
