"""Report generators: pure functions from a ReportContext to report data."""

from pashoot_reports.reports.generators.expenses import (
    expense_by_category,
    expense_by_vendor,
    travel_entertainment,
)
from pashoot_reports.reports.generators.management import (
    break_even,
    budget_vs_actual,
    kpi_dashboard,
    profit_margin,
)
from pashoot_reports.reports.generators.receivables import (
    ap_aging,
    ar_aging,
    customer_statement,
    vendor_statement,
)
from pashoot_reports.reports.generators.reconciliation import (
    cross_source_summary,
    square_reconciliation,
    stripe_reconciliation,
)
from pashoot_reports.reports.generators.revenue import (
    revenue_breakdown,
    revenue_trends,
    sales_by_customer,
)
from pashoot_reports.reports.generators.statements import (
    balance_sheet,
    cash_flow,
    income_statement,
    trial_balance,
)
from pashoot_reports.reports.generators.tax import (
    contractor_1099,
    quarterly_tax,
    sales_tax,
    tax_deductions,
)

__all__ = [
    "ap_aging",
    "ar_aging",
    "balance_sheet",
    "break_even",
    "budget_vs_actual",
    "cash_flow",
    "contractor_1099",
    "cross_source_summary",
    "customer_statement",
    "expense_by_category",
    "expense_by_vendor",
    "income_statement",
    "kpi_dashboard",
    "profit_margin",
    "quarterly_tax",
    "revenue_breakdown",
    "revenue_trends",
    "sales_by_customer",
    "sales_tax",
    "square_reconciliation",
    "stripe_reconciliation",
    "tax_deductions",
    "travel_entertainment",
    "trial_balance",
    "vendor_statement",
]
