"""Square connector: payments and completed orders."""

from collections.abc import AsyncIterator
from typing import Any

from pashoot_reports.connectors.base import (
    BaseConnector,
    CanonicalRecord,
    MappedRecord,
    SkippedRecord,
    SourceAPIClient,
    SyncContext,
    cents_to_units,
)
from pashoot_reports.extraction import parse_date
from pashoot_reports.models import (
    Connection,
    Source,
    SquareOrderDetails,
    SquarePaymentDetails,
    TransactionFields,
    TransactionType,
)

SQUARE_VERSION = "2024-12-18"


def map_payment(payment: dict[str, Any]) -> MappedRecord:
    record_date = parse_date(payment.get("created_at"))
    if record_date is None:
        return SkippedRecord(external_id=payment["id"], kind="payments", reason="missing date")

    money = payment.get("amount_money") or {}
    receipt = payment.get("receipt_number")
    description = payment.get("note") or f"Square Payment - {receipt or payment['id']}"
    fields = TransactionFields(
        date=record_date,
        description=description,
        amount=cents_to_units(money.get("amount", 0)),
        type=TransactionType.INCOME,
        category="square_payment",
        details=SquarePaymentDetails(
            payment_id=payment["id"],
            currency=money.get("currency", ""),
            status=payment.get("status", ""),
            source_type=payment.get("source_type"),
            receipt_number=receipt,
        ),
        metadata={
            "currency": money.get("currency"),
            "status": payment.get("status"),
            "sourceType": payment.get("source_type"),
            "receiptNumber": receipt,
        },
    )
    return CanonicalRecord(external_id=payment["id"], fields=fields, kind="payments")


def map_order(order: dict[str, Any]) -> MappedRecord:
    """Only completed orders count as revenue."""
    state = order.get("state", "")
    if state != "COMPLETED":
        return SkippedRecord(external_id=order["id"], kind="orders", reason=f"state {state}")

    record_date = parse_date(order.get("created_at"))
    if record_date is None:
        return SkippedRecord(external_id=order["id"], kind="orders", reason="missing date")

    money = order.get("total_money") or {}
    line_items = order.get("line_items") or []
    item_names = ", ".join(item.get("name", "") for item in line_items) or "Order"
    fields = TransactionFields(
        date=record_date,
        description=f"Order: {item_names}",
        amount=cents_to_units(money.get("amount", 0)),
        type=TransactionType.INCOME,
        category="square_order",
        details=SquareOrderDetails(
            order_id=order["id"],
            currency=money.get("currency", ""),
            state=state,
            item_count=len(line_items),
        ),
        metadata={
            "currency": money.get("currency"),
            "state": state,
            "itemCount": len(line_items),
        },
    )
    return CanonicalRecord(external_id=order["id"], fields=fields, kind="orders")


class SquareConnector(BaseConnector):
    source = Source.SQUARE
    display_name = "Square"

    def validate_connection(self, connection: Connection) -> None:
        self.require_metadata(
            connection,
            "merchantId",
            "Square merchant ID not found in connection metadata; please reconnect Square",
        )

    def create_client(self, access_token: str, connection: Connection) -> SourceAPIClient:
        return SourceAPIClient(
            base_url=self.settings.square_api_url,
            access_token=access_token,
            name=self.display_name,
            headers={"Square-Version": SQUARE_VERSION},
        )

    async def _location_ids(self, client: SourceAPIClient) -> list[str]:
        result = await client.get("/v2/locations")
        return [loc["id"] for loc in client.extract_items(result, "locations") if loc.get("id")]

    async def fetch_records(self, context: SyncContext) -> AsyncIterator[MappedRecord]:
        client = context.client

        payments = await client.get("/v2/payments")
        for payment in client.extract_items(payments, "payments")[: self.record_limit]:
            yield map_payment(payment)

        query: dict[str, Any] = {
            "limit": self.record_limit,
            "query": {
                "filter": {"state_filter": {"states": ["COMPLETED"]}},
                "sort": {"sort_field": "CREATED_AT", "sort_order": "DESC"},
            },
        }
        location_ids = await self._location_ids(client)
        if location_ids:
            query["location_ids"] = location_ids

        orders = await client.post("/v2/orders/search", json=query)
        for order in client.extract_items(orders, "orders")[: self.record_limit]:
            yield map_order(order)
