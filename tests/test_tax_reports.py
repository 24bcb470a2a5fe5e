"""Tests for tax & compliance report generators."""

from datetime import date
from decimal import Decimal

from pashoot_reports.models import TransactionType
from pashoot_reports.reports.generators import (
    contractor_1099,
    quarterly_tax,
    sales_tax,
    tax_deductions,
)
from pashoot_reports.reports.generators.tax import TAX_DISCLAIMER
from pashoot_reports.reports.types import ReportParameters, ReportType

INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


class TestContractor1099:
    """Tests for the 1099 contractor report."""

    def test_threshold_is_inclusive(self, make_context, make_transaction):
        transactions = [
            make_transaction("600.00", EXPENSE, metadata={"vendor": "Ana"}, category="Contractor"),
            make_transaction("599.99", EXPENSE, metadata={"vendor": "Ben"}, category="Contractor"),
        ]

        data = contractor_1099(make_context(ReportType.CONTRACTOR_1099, transactions))

        (required,) = data["contractors_1099_required"]
        (below,) = data["contractors_below_threshold"]
        assert required["name"] == "Ana"
        assert required["requires_1099"] is True
        assert len(required["transactions"]) == 1
        assert below["name"] == "Ben"
        assert below["requires_1099"] is False
        assert "transactions" not in below
        assert data["summary"] == {
            "total_contractors": 2,
            "contractors_1099_required": 1,
            "total_payments": Decimal("1199.99"),
            "threshold": Decimal("600"),
        }
        assert data["year"] == 2024

    def test_payments_summed_per_payee(self, make_context, make_transaction):
        transactions = [
            make_transaction("400.00", EXPENSE, description="Freelance design"),
            make_transaction("300.00", EXPENSE, description="Freelance design"),
            make_transaction("900.00", EXPENSE, description="Office rent"),
        ]

        data = contractor_1099(make_context(ReportType.CONTRACTOR_1099, transactions))

        (required,) = data["contractors_1099_required"]
        assert required["name"] == "Freelance design"
        assert required["total_paid"] == Decimal("700.00")
        assert required["transaction_count"] == 2
        assert data["summary"]["total_contractors"] == 1

    def test_custom_threshold(self, make_context, make_transaction):
        transactions = [make_transaction("100.00", EXPENSE, description="Consultant")]
        params = ReportParameters(contractor_1099_threshold=Decimal("100"))

        data = contractor_1099(
            make_context(ReportType.CONTRACTOR_1099, transactions, parameters=params)
        )

        assert data["summary"]["contractors_1099_required"] == 1


class TestSalesTax:
    """Tests for the sales tax report."""

    def test_rates_and_exemptions(self, make_context, make_transaction):
        transactions = [
            make_transaction("100.00", INCOME, day=date(2024, 1, 10)),
            make_transaction("200.00", INCOME, day=date(2024, 2, 10), metadata={"taxRate": 0.05}),
            make_transaction(
                "50.00",
                INCOME,
                day=date(2024, 2, 11),
                metadata={"taxExempt": True, "exemptReason": "Resale"},
            ),
            make_transaction("20.00", INCOME, metadata={"taxExempt": True}),
        ]

        data = sales_tax(make_context(ReportType.SALES_TAX, transactions))

        first, second = data["taxable_transactions"]
        assert first["tax_rate"] == Decimal("0.08")
        assert first["tax_amount"] == Decimal("8.00")
        assert first["gross_amount"] == Decimal("108.00")
        assert second["tax_rate"] == Decimal("0.05")
        assert second["tax_amount"] == Decimal("10.00")
        assert [line["reason"] for line in data["exempt_transactions"]] == [
            "Resale",
            "Not specified",
        ]
        assert data["summary"]["total_taxable_sales"] == Decimal("300.00")
        assert data["summary"]["total_tax_collected"] == Decimal("18.00")
        assert data["summary"]["total_exempt_sales"] == Decimal("70.00")
        assert data["summary"]["average_tax_rate"] == Decimal("0.06")
        assert data["monthly_data"] == [
            {"month": "2024-01", "taxable_sales": Decimal("100.00"), "tax_collected": Decimal("8.00")},
            {"month": "2024-02", "taxable_sales": Decimal("200.00"), "tax_collected": Decimal("10.00")},
        ]

    def test_no_sales_reports_default_rate(self, make_context):
        data = sales_tax(make_context(ReportType.SALES_TAX, []))

        assert data["summary"]["total_tax_collected"] == 0
        assert data["summary"]["average_tax_rate"] == Decimal("0.08")

    def test_tax_amount_rounded_to_cents(self, make_context, make_transaction):
        transactions = [make_transaction("19.99", INCOME, metadata={"taxRate": "0.0725"})]

        data = sales_tax(make_context(ReportType.SALES_TAX, transactions))

        assert data["taxable_transactions"][0]["tax_amount"] == Decimal("1.45")


class TestTaxDeductions:
    """Tests for deduction categorization."""

    def test_first_matching_bucket_wins(self, make_context, make_transaction):
        transactions = [
            # "office" (Office Expenses) is listed before "rent" (Rent & Lease).
            make_transaction("1000.00", EXPENSE, description="Office rent"),
            make_transaction("120.00", EXPENSE, description="Liability insurance"),
            make_transaction("35.00", EXPENSE, description="Mystery charge"),
            make_transaction(
                "80.00", EXPENSE, description="Gym", metadata={"nonDeductible": True}
            ),
        ]

        data = tax_deductions(make_context(ReportType.TAX_DEDUCTIONS, transactions))

        categories = {row["category"]: row for row in data["category_totals"]}
        assert categories["Office Expenses"]["total_amount"] == Decimal("1000.00")
        assert categories["Insurance"]["transaction_count"] == 1
        assert categories["Other Deductible"]["total_amount"] == Decimal("35.00")
        assert "Rent & Lease" not in categories
        assert data["non_deductible"][0]["description"] == "Gym"
        assert data["summary"] == {
            "total_deductible": Decimal("1155.00"),
            "total_non_deductible": Decimal("80.00"),
            "total_expenses": Decimal("1235.00"),
            "deductible_percentage": Decimal("93.52"),
        }

    def test_empty(self, make_context):
        data = tax_deductions(make_context(ReportType.TAX_DEDUCTIONS, []))

        assert data["category_totals"] == []
        assert data["summary"]["deductible_percentage"] == 0


class TestQuarterlyTax:
    """Tests for the quarterly estimate."""

    def test_quarters(self, make_context, make_transaction):
        transactions = [
            make_transaction("10000.00", INCOME, day=date(2024, 2, 1)),
            make_transaction("4000.00", EXPENSE, day=date(2024, 3, 1)),
            make_transaction("5000.00", INCOME, day=date(2024, 8, 1)),
            make_transaction("999.00", TransactionType.TRANSFER, day=date(2024, 8, 2)),
        ]

        data = quarterly_tax(make_context(ReportType.QUARTERLY_TAX, transactions))

        q1, q3 = data["quarters"]
        assert q1["quarter"] == "2024-Q1"
        assert q1["net_income"] == Decimal("6000.00")
        assert q1["self_employment_tax"] == Decimal("918.00")
        assert q1["estimated_income_tax"] == Decimal("1320.00")
        assert q1["total_tax_due"] == Decimal("2238.00")
        assert q3["quarter"] == "2024-Q3"
        assert q3["expenses"] == 0
        assert data["annual_summary"]["total_net_income"] == Decimal("11000.00")
        assert data["annual_summary"]["total_tax_due"] == Decimal("4103.00")
        assert data["tax_rates"] == {
            "self_employment": Decimal("0.153"),
            "estimated_income": Decimal("0.22"),
        }
        assert data["disclaimer"] == TAX_DISCLAIMER

    def test_loss_quarter_gives_negative_estimate(self, make_context, make_transaction):
        transactions = [make_transaction("100.00", EXPENSE, day=date(2024, 5, 1))]

        data = quarterly_tax(make_context(ReportType.QUARTERLY_TAX, transactions))

        assert data["quarters"][0]["self_employment_tax"] == Decimal("-15.30")
