"""Xero connector: bank transactions and paid invoices."""

import re
from collections.abc import AsyncIterator
from datetime import UTC, date, datetime
from typing import Any

from pashoot_reports.connectors.base import (
    BaseConnector,
    CanonicalRecord,
    MappedRecord,
    MissingConnectionMetadataError,
    SkippedRecord,
    SourceAPIClient,
    SyncContext,
    to_decimal,
)
from pashoot_reports.extraction import parse_date
from pashoot_reports.models import (
    Connection,
    Source,
    TransactionFields,
    TransactionType,
    XeroBankTransactionDetails,
    XeroInvoiceDetails,
)

ACCOUNTING_PATH = "/api.xro/2.0"

# Legacy JSON date format: /Date(1699920000000+0000)/
_MS_DATE = re.compile(r"/Date\((-?\d+)([+-]\d{4})?\)/")


def parse_xero_date(value: Any) -> date | None:
    """Parse Xero's ``/Date(ms+zone)/`` format, or an ISO date string."""
    if isinstance(value, str):
        match = _MS_DATE.fullmatch(value.strip())
        if match:
            return datetime.fromtimestamp(int(match.group(1)) / 1000, tz=UTC).date()
    return parse_date(value)


def map_bank_transaction(txn: dict[str, Any]) -> MappedRecord:
    record_date = parse_xero_date(txn.get("Date"))
    if record_date is None:
        return SkippedRecord(
            external_id=txn["BankTransactionID"], kind="bank_transactions", reason="missing date"
        )

    line_items = txn.get("LineItems") or []
    first_line = line_items[0] if line_items else {}
    reference = txn.get("Reference")
    account_code = first_line.get("AccountCode")
    direction = txn.get("Type", "")

    fields = TransactionFields(
        date=record_date,
        description=first_line.get("Description") or reference or "Bank transaction",
        amount=abs(to_decimal(txn.get("Total"))),
        type=TransactionType.INCOME if direction == "RECEIVE" else TransactionType.EXPENSE,
        category=account_code or None,
        details=XeroBankTransactionDetails(
            bank_transaction_id=txn["BankTransactionID"],
            direction=direction,
            reference=reference,
            account_code=account_code,
        ),
        metadata={"reference": reference, "accountCode": account_code},
    )
    return CanonicalRecord(
        external_id=txn["BankTransactionID"], fields=fields, kind="bank_transactions"
    )


def map_invoice(invoice: dict[str, Any]) -> MappedRecord:
    """Paid receivables are revenue, paid payables are expenses; anything unpaid is skipped."""
    status = invoice.get("Status", "")
    if status != "PAID":
        return SkippedRecord(
            external_id=invoice["InvoiceID"], kind="invoices", reason=f"status {status}"
        )

    record_date = parse_xero_date(invoice.get("Date"))
    if record_date is None:
        return SkippedRecord(
            external_id=invoice["InvoiceID"], kind="invoices", reason="missing date"
        )

    invoice_type = invoice.get("Type", "")
    receivable = invoice_type == "ACCREC"
    contact = (invoice.get("Contact") or {}).get("Name") or ""
    reference = invoice.get("Reference")
    due_date = parse_xero_date(invoice.get("DueDate"))

    metadata: dict[str, Any] = {
        "invoiceType": invoice_type,
        "contactName": contact,
        "reference": reference,
        "dueDate": due_date.isoformat() if due_date else None,
        "status": status,
    }
    metadata["customerName" if receivable else "vendorName"] = contact

    fields = TransactionFields(
        date=record_date,
        description=f"Invoice: {contact} - {reference or ''}",
        amount=abs(to_decimal(invoice.get("Total"))),
        type=TransactionType.INCOME if receivable else TransactionType.EXPENSE,
        category="invoice_revenue" if receivable else "invoice_expense",
        details=XeroInvoiceDetails(
            invoice_id=invoice["InvoiceID"],
            invoice_type=invoice_type,
            status=status,
            contact_name=contact,
            reference=reference,
            due_date=due_date,
        ),
        metadata=metadata,
    )
    return CanonicalRecord(external_id=invoice["InvoiceID"], fields=fields, kind="invoices")


class XeroConnector(BaseConnector):
    source = Source.XERO
    display_name = "Xero"

    def create_client(self, access_token: str, connection: Connection) -> SourceAPIClient:
        return SourceAPIClient(
            base_url=self.settings.xero_api_url,
            access_token=access_token,
            name=self.display_name,
        )

    async def _tenant_id(self, context: SyncContext) -> str:
        """Use the stored tenant, or discover the first one the token can reach."""
        stored = context.connection.metadata.get("tenantId")
        if stored:
            return str(stored)
        tenants = await context.client.get("/connections")
        if not isinstance(tenants, list) or not tenants:
            raise MissingConnectionMetadataError(
                self.source, "No Xero tenants found; please reconnect Xero"
            )
        tenant_id = str(tenants[0]["tenantId"])
        await self.remember_metadata(context, tenantId=tenant_id)
        return tenant_id

    async def fetch_records(self, context: SyncContext) -> AsyncIterator[MappedRecord]:
        client = context.client
        client.set_header("xero-tenant-id", await self._tenant_id(context))

        result = await client.get(f"{ACCOUNTING_PATH}/BankTransactions")
        for txn in client.extract_items(result, "BankTransactions")[: self.record_limit]:
            yield map_bank_transaction(txn)

        result = await client.get(f"{ACCOUNTING_PATH}/Invoices")
        for invoice in client.extract_items(result, "Invoices")[: self.record_limit]:
            yield map_invoice(invoice)
