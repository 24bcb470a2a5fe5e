"""Tests for revenue and expense report generators."""

from datetime import date
from decimal import Decimal

from pashoot_reports.models import Source, TransactionType
from pashoot_reports.reports.generators import (
    expense_by_category,
    expense_by_vendor,
    revenue_breakdown,
    revenue_trends,
    sales_by_customer,
    travel_entertainment,
)
from pashoot_reports.reports.types import ReportType

INCOME = TransactionType.INCOME
EXPENSE = TransactionType.EXPENSE


class TestRevenueBreakdown:
    def test_shares(self, make_context, make_transaction):
        transactions = [
            make_transaction("300.00", INCOME, category="Services", source=Source.STRIPE),
            make_transaction("100.00", INCOME, category="Products", source=Source.SQUARE),
            make_transaction("50.00", EXPENSE, category="Rent"),
        ]

        data = revenue_breakdown(make_context(ReportType.REVENUE_BREAKDOWN, transactions))

        assert data["total_revenue"] == Decimal("400.00")
        assert data["by_category"] == [
            {"category": "Services", "amount": Decimal("300.00"), "percentage": Decimal("75.00")},
            {"category": "Products", "amount": Decimal("100.00"), "percentage": Decimal("25.00")},
        ]
        assert [row["source"] for row in data["by_source"]] == ["stripe", "square"]
        assert data["by_month"] == [{"month": "2024-01", "amount": Decimal("400.00")}]

    def test_empty(self, make_context):
        data = revenue_breakdown(make_context(ReportType.REVENUE_BREAKDOWN, []))

        assert data["total_revenue"] == 0
        assert data["by_category"] == []
        assert data["by_month"] == []


class TestSalesByCustomer:
    def test_customers_from_metadata_and_description(self, make_context, make_transaction):
        transactions = [
            make_transaction("200.00", INCOME, description="Acme - Invoice 1"),
            make_transaction("100.00", INCOME, description="Acme - Invoice 2"),
            make_transaction("50.00", INCOME, description="Sale", metadata={"customer": "Bo"}),
        ]

        data = sales_by_customer(make_context(ReportType.SALES_BY_CUSTOMER, transactions))

        assert data["total_customers"] == 2
        acme, bo = data["customers"]
        assert acme["customer"] == "Acme"
        assert acme["total_sales"] == Decimal("300.00")
        assert acme["average_sale"] == Decimal("150.00")
        assert bo["customer"] == "Bo"
        assert data["total_sales"] == Decimal("350.00")
        assert data["top_10_percentage"] == Decimal("100.00")

    def test_top_ten(self, make_context, make_transaction):
        transactions = [
            make_transaction(str(10 * (i + 1)), INCOME, description=f"Customer {i}")
            for i in range(12)
        ]

        data = sales_by_customer(make_context(ReportType.SALES_BY_CUSTOMER, transactions))

        assert len(data["top_10_customers"]) == 10
        assert data["top_10_customers"][0]["customer"] == "Customer 11"
        # (30 + ... + 120) / (10 + ... + 120) = 750 / 780
        assert data["top_10_percentage"] == Decimal("96.15")


class TestRevenueTrends:
    def test_growth(self, make_context, make_transaction):
        transactions = [
            make_transaction("100.00", INCOME, day=date(2024, 1, 5)),
            make_transaction("150.00", INCOME, day=date(2024, 2, 5)),
            make_transaction("75.00", INCOME, day=date(2024, 3, 5)),
        ]

        data = revenue_trends(make_context(ReportType.REVENUE_TRENDS, transactions))

        first, second, third = data["monthly_data"]
        assert first["growth_rate"] == 0
        assert second["growth_amount"] == Decimal("50.00")
        assert second["growth_rate"] == Decimal("50.00")
        assert third["growth_rate"] == Decimal("-50.00")
        assert data["highest_month"]["month"] == "2024-02"
        assert data["lowest_month"]["month"] == "2024-03"
        assert data["average_monthly_revenue"] == Decimal("108.33")
        assert data["months_included"] == 3

    def test_empty(self, make_context):
        data = revenue_trends(make_context(ReportType.REVENUE_TRENDS, []))

        assert data["monthly_data"] == []
        assert data["highest_month"] is None
        assert data["average_monthly_revenue"] == 0


class TestExpenseByCategory:
    def test_categories(self, make_context, make_transaction):
        transactions = [
            make_transaction("600.00", EXPENSE, category="Rent"),
            make_transaction("150.00", EXPENSE, category="Software"),
            make_transaction("250.00", EXPENSE, category="Software"),
            make_transaction("999.00", INCOME, category="Rent"),
        ]

        data = expense_by_category(make_context(ReportType.EXPENSE_BY_CATEGORY, transactions))

        assert data["total_expenses"] == Decimal("1000.00")
        rent, software = data["categories"]
        assert rent["category"] == "Rent"
        assert rent["percentage"] == Decimal("60.00")
        assert software["count"] == 2
        assert software["average_per_transaction"] == Decimal("200.00")
        assert [line["amount"] for line in software["top_transactions"]] == [
            Decimal("250.00"),
            Decimal("150.00"),
        ]

    def test_top_transactions_capped_at_five(self, make_context, make_transaction):
        transactions = [
            make_transaction(str(i + 1), EXPENSE, category="Supplies") for i in range(8)
        ]

        data = expense_by_category(make_context(ReportType.EXPENSE_BY_CATEGORY, transactions))

        assert len(data["categories"][0]["top_transactions"]) == 5


class TestExpenseByVendor:
    def test_vendors(self, make_context, make_transaction):
        transactions = [
            make_transaction("90.00", EXPENSE, description="AWS - March", category="Hosting"),
            make_transaction("10.00", EXPENSE, description="AWS - April", category="Hosting"),
            make_transaction(
                "40.00", EXPENSE, description="Card", metadata={"vendorName": "Staples"}
            ),
        ]

        data = expense_by_vendor(make_context(ReportType.EXPENSE_BY_VENDOR, transactions))

        aws, staples = data["vendors"]
        assert aws["vendor"] == "AWS"
        assert aws["total_expenses"] == Decimal("100.00")
        assert aws["categories"] == ["Hosting"]
        assert staples["vendor"] == "Staples"
        assert staples["categories"] == []
        assert data["total_vendors"] == 2


class TestTravelEntertainment:
    def test_overlap_counted_once_in_monthly_totals(self, make_context, make_transaction):
        transactions = [
            make_transaction("300.00", EXPENSE, description="Hotel stay", category="Travel"),
            make_transaction("60.00", EXPENSE, description="Team lunch"),
            make_transaction("40.00", EXPENSE, description="Uber to client dinner"),
            make_transaction("500.00", EXPENSE, description="Rent"),
        ]

        data = travel_entertainment(make_context(ReportType.TRAVEL_ENTERTAINMENT, transactions))

        assert data["travel_expenses"]["count"] == 2
        assert data["travel_expenses"]["total"] == Decimal("340.00")
        assert data["entertainment_expenses"]["count"] == 2
        assert data["entertainment_expenses"]["total"] == Decimal("100.00")
        assert data["total_combined"] == Decimal("440.00")
        assert data["monthly_data"] == [
            {
                "month": "2024-01",
                "travel": Decimal("340.00"),
                "entertainment": Decimal("60.00"),
                "total": Decimal("400.00"),
            }
        ]
        assert data["travel_expenses"]["transactions"][0]["category"] == "Travel"
