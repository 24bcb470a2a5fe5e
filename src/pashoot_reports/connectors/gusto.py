"""Gusto connector: payroll expenses split into wages, employer taxes and benefits."""

from collections.abc import AsyncIterator
from decimal import Decimal
from typing import Any, Literal

import structlog

from pashoot_reports.connectors.base import (
    BaseConnector,
    CanonicalRecord,
    MappedRecord,
    MissingConnectionMetadataError,
    SkippedRecord,
    SourceAPIClient,
    SourceAPIError,
    SyncContext,
    to_decimal,
)
from pashoot_reports.extraction import parse_date
from pashoot_reports.models import (
    Connection,
    GustoPayrollDetails,
    Source,
    TransactionFields,
    TransactionType,
)

logger = structlog.get_logger(__name__)

PayrollComponent = Literal["wages", "employer_taxes", "benefits"]

# component -> (external id prefix, category, description label)
_COMPONENTS: dict[PayrollComponent, tuple[str, str, str]] = {
    "wages": ("payroll-", "payroll_wages", "Payroll"),
    "employer_taxes": ("payroll-tax-", "payroll_taxes", "Payroll Taxes"),
    "benefits": ("payroll-benefits-", "employee_benefits", "Employee Benefits"),
}


def map_payroll(payroll: dict[str, Any]) -> list[MappedRecord]:
    """Gross wages always; employer taxes and benefits only when positive."""
    payroll_id = str(payroll["id"])
    check_date = parse_date(payroll.get("check_date"))
    if check_date is None:
        skipped = SkippedRecord(
            external_id=f"payroll-{payroll_id}", kind="payrolls", reason="missing date"
        )
        return [skipped]

    totals = payroll.get("totals") or {}
    amounts: dict[PayrollComponent, Decimal] = {
        "wages": to_decimal(totals.get("gross_pay")),
        "employer_taxes": to_decimal(totals.get("employer_taxes")),
        "benefits": to_decimal(totals.get("benefits")),
    }
    processed = bool(payroll.get("processed"))

    records: list[MappedRecord] = []
    for component, (prefix, category, label) in _COMPONENTS.items():
        amount = amounts[component]
        if component != "wages" and amount <= 0:
            continue
        metadata: dict[str, Any] = {"payrollId": payroll_id, "type": component}
        if component == "wages":
            metadata.update(
                netPay=to_decimal(totals.get("net_pay")),
                employerTaxes=amounts["employer_taxes"],
                employeeTaxes=to_decimal(totals.get("employee_taxes")),
                benefits=amounts["benefits"],
                processed=processed,
            )
        fields = TransactionFields(
            date=check_date,
            description=f"{label} - {check_date.isoformat()}",
            amount=abs(amount),
            type=TransactionType.EXPENSE,
            category=category,
            details=GustoPayrollDetails(
                payroll_id=payroll_id,
                component=component,
                processed=processed,
                net_pay=to_decimal(totals.get("net_pay")) if component == "wages" else None,
                employee_taxes=(
                    to_decimal(totals.get("employee_taxes")) if component == "wages" else None
                ),
            ),
            metadata=metadata,
        )
        records.append(
            CanonicalRecord(external_id=f"{prefix}{payroll_id}", fields=fields, kind=category)
        )
    return records


class GustoConnector(BaseConnector):
    source = Source.GUSTO
    display_name = "Gusto"
    record_label = "payroll records"

    def create_client(self, access_token: str, connection: Connection) -> SourceAPIClient:
        return SourceAPIClient(
            base_url=self.settings.gusto_api_url,
            access_token=access_token,
            name=self.display_name,
        )

    async def _company_id(self, context: SyncContext) -> str:
        stored = context.connection.metadata.get("companyId")
        if stored:
            return str(stored)
        companies = await context.client.get("/v1/companies")
        if not isinstance(companies, list) or not companies:
            raise MissingConnectionMetadataError(
                self.source, "No companies found in Gusto account"
            )
        company_id = str(companies[0]["id"])
        await self.remember_metadata(context, companyId=company_id)
        return company_id

    async def _contractors(self, client: SourceAPIClient, company_id: str) -> list[Any]:
        """Contractor listing is optional on some Gusto plans; failures count as none."""
        try:
            result = await client.get(f"/v1/companies/{company_id}/contractors")
        except SourceAPIError as e:
            logger.info("gusto_contractors_unavailable", company_id=company_id, error=str(e))
            return []
        return result if isinstance(result, list) else []

    async def fetch_records(self, context: SyncContext) -> AsyncIterator[MappedRecord]:
        client = context.client
        company_id = await self._company_id(context)

        payrolls = await client.get(f"/v1/companies/{company_id}/payrolls")
        if not isinstance(payrolls, list):
            payrolls = []
        for payroll in payrolls[: self.settings.gusto_payroll_limit]:
            for record in map_payroll(payroll):
                yield record

        # Contractors are reported for visibility only; they are not transactions.
        contractors = await self._contractors(client, company_id)
        context.counts["contractors"] = len(contractors)
