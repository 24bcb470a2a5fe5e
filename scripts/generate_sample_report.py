#!/usr/bin/env python3
"""Generate a report from sample data without any connected sources.

This script:
1. Seeds an in-memory repository with six months of activity for a small cafe
2. Generates the requested report through ReportService
3. Writes the rendered HTML (or prints the report data as JSON)

Usage:
    python scripts/generate_sample_report.py income_statement
    python scripts/generate_sample_report.py kpi_dashboard --json
    python scripts/generate_sample_report.py --list
"""

import argparse
import asyncio
import base64
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pashoot_reports import (
    InMemoryRepository,
    ReportService,
    ReportStatus,
    Source,
    TransactionFields,
    TransactionType,
    configure_logging,
    list_report_types,
)
from pashoot_reports.reports.renderers import to_json

USER_ID = "sample-user"

# (description, category, amount, metadata) repeated every month
MONTHLY_INCOME = [
    ("Corner Office Co - Catering order", "Catering", "1850.00", {"customer": "Corner Office Co"}),
    ("Walk-in sales", "Sales", "6200.00", {"taxRate": "0.0825"}),
    ("Farmers market stall", "Sales", "940.00", {"taxExempt": True, "exemptReason": "Market permit"}),
]
MONTHLY_EXPENSES = [
    ("Main Street Properties - Rent", "Rent", "2400.00", {}),
    ("Bean Roasters - Coffee beans", "Inventory", "1320.00", {"vendor": "Bean Roasters"}),
    ("City Power - Electricity", "Utilities", "310.00", {}),
    ("Maya Lin - Freelance design", "Contractor", "275.00", {"vendor": "Maya Lin"}),
    ("Packaging Direct - Cups and lids", "Supplies", "185.00", {}),
    ("Business insurance premium", "Insurance", "160.00", {}),
]
ONE_OFF = [
    (date(2024, 2, 14), "Espresso machine", "Equipment", "4200.00", TransactionType.EXPENSE),
    (date(2024, 3, 8), "Hotel for trade show", "Travel", "420.00", TransactionType.EXPENSE),
    (date(2024, 3, 9), "Client dinner at trade show", "Meals", "138.50", TransactionType.EXPENSE),
    (date(2024, 4, 1), "Small business loan", "Loan", "10000.00", TransactionType.INCOME),
]


async def seed(repository: InMemoryRepository) -> int:
    """Seed January through June 2024. Returns the number of transactions."""
    count = 0

    async def add(day, description, category, amount, type, metadata=None):
        nonlocal count
        count += 1
        await repository.upsert_transaction(
            USER_ID,
            Source.MANUAL,
            f"sample-{count}",
            TransactionFields(
                date=day,
                description=description,
                amount=Decimal(amount),
                type=type,
                category=category,
                metadata=metadata or {},
            ),
        )

    for month in range(1, 7):
        # Income grows 5% a month
        growth = Decimal("1") + Decimal(month - 1) / 20
        for i, (description, category, amount, metadata) in enumerate(MONTHLY_INCOME):
            value = (Decimal(amount) * growth).quantize(Decimal("0.01"))
            day = date(2024, month, 5 + i * 7)
            await add(day, description, category, str(value), TransactionType.INCOME, metadata)
        for i, (description, category, amount, metadata) in enumerate(MONTHLY_EXPENSES):
            day = date(2024, month, 2 + i * 4)
            await add(day, description, category, amount, TransactionType.EXPENSE, metadata)

    for day, description, category, amount, type in ONE_OFF:
        await add(day, description, category, amount, type)

    return count


def print_catalog() -> None:
    current = None
    for report in list_report_types():
        if report["category"] != current:
            current = report["category"]
            print(f"\n{current}")
        print(f"  {report['id']:<24} {report['name']}")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a report from sample data")
    parser.add_argument("report_type", nargs="?", default="income_statement")
    parser.add_argument("--start", type=date.fromisoformat, default=date(2024, 1, 1))
    parser.add_argument("--end", type=date.fromisoformat, default=date(2024, 6, 30))
    parser.add_argument("--output", type=Path, help="HTML output path")
    parser.add_argument("--json", action="store_true", help="Print report data as JSON")
    parser.add_argument("--list", action="store_true", help="List available reports")
    args = parser.parse_args()

    if args.list:
        print_catalog()
        return 0

    configure_logging()

    print("=" * 60)
    print("PASHOOT REPORTS - SAMPLE REPORT")
    print("=" * 60)

    repository = InMemoryRepository()
    count = await seed(repository)
    print(f"  ✓ Seeded {count} sample transactions")

    service = ReportService(repository)
    report = await service.generate_report(USER_ID, args.report_type, args.start, args.end)
    if report.status != ReportStatus.COMPLETED:
        print(f"  ✗ Report failed: {report.error}")
        return 1

    if args.json:
        print(to_json(report.metadata))
        return 0

    output = args.output or Path(f"{args.report_type}.html")
    encoded = report.artifact_url.split(",", 1)[1]
    output.write_bytes(base64.b64decode(encoded))
    print(f"  ✓ Wrote {output}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
