"""Stripe connector: charges and non-charge balance transactions."""

from collections.abc import AsyncIterator
from datetime import UTC, date, datetime
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
from pashoot_reports.models import (
    Connection,
    Source,
    StripeBalanceDetails,
    StripeChargeDetails,
    TransactionFields,
    TransactionType,
)


def _epoch_date(seconds: Any) -> date:
    return datetime.fromtimestamp(int(seconds), tz=UTC).date()


def _customer_id(charge: dict[str, Any]) -> str | None:
    customer = charge.get("customer")
    if isinstance(customer, str):
        return customer
    if isinstance(customer, dict):
        return customer.get("id")
    return None


def map_charge(charge: dict[str, Any]) -> CanonicalRecord:
    """A charge is revenue unless it was refunded, in which case it nets to a transfer."""
    billing_name = (charge.get("billing_details") or {}).get("name")
    description = charge.get("description") or f"Charge from {billing_name or 'customer'}"
    refunded = bool(charge.get("refunded"))
    payment_method = (charge.get("payment_method_details") or {}).get("type")
    customer_id = _customer_id(charge)

    fields = TransactionFields(
        date=_epoch_date(charge["created"]),
        description=description,
        amount=cents_to_units(charge.get("amount", 0)),
        type=TransactionType.TRANSFER if refunded else TransactionType.INCOME,
        category="stripe_payment",
        details=StripeChargeDetails(
            charge_id=charge["id"],
            currency=charge.get("currency", ""),
            status=charge.get("status", ""),
            refunded=refunded,
            customer_id=customer_id,
            payment_method=payment_method,
        ),
        metadata={
            "currency": charge.get("currency"),
            "status": charge.get("status"),
            "customerId": customer_id,
            "paymentMethod": payment_method,
        },
    )
    return CanonicalRecord(external_id=charge["id"], fields=fields, kind="charges")


def map_balance_transaction(txn: dict[str, Any]) -> MappedRecord:
    """Fees, refunds, payouts and adjustments. Charges are already covered by ``map_charge``."""
    txn_type = txn.get("type", "")
    if txn_type == "charge":
        return SkippedRecord(external_id=txn["id"], kind="balance_transactions", reason="charge")

    is_outflow = "refund" in txn_type or "fee" in txn_type
    fee = cents_to_units(txn.get("fee", 0))
    net = cents_to_units(txn.get("net", 0))
    fields = TransactionFields(
        date=_epoch_date(txn["created"]),
        description=f"{txn_type}: {txn.get('description') or 'Stripe transaction'}",
        amount=abs(cents_to_units(txn.get("amount", 0))),
        type=TransactionType.EXPENSE if is_outflow else TransactionType.INCOME,
        category=f"stripe_{txn_type}",
        details=StripeBalanceDetails(
            balance_transaction_id=txn["id"],
            balance_type=txn_type,
            currency=txn.get("currency", ""),
            fee=fee,
            net=net,
        ),
        metadata={
            "currency": txn.get("currency"),
            "fee": fee,
            "net": net,
            "type": txn_type,
        },
    )
    return CanonicalRecord(external_id=txn["id"], fields=fields, kind="balance_transactions")


class StripeConnector(BaseConnector):
    source = Source.STRIPE
    display_name = "Stripe"

    def create_client(self, access_token: str, connection: Connection) -> SourceAPIClient:
        return SourceAPIClient(
            base_url=self.settings.stripe_api_url,
            access_token=access_token,
            name=self.display_name,
        )

    async def fetch_records(self, context: SyncContext) -> AsyncIterator[MappedRecord]:
        params = {"limit": self.record_limit}

        charges = await context.client.get("/v1/charges", params=params)
        for charge in context.client.extract_items(charges, "data"):
            yield map_charge(charge)

        balance = await context.client.get("/v1/balance_transactions", params=params)
        for txn in context.client.extract_items(balance, "data"):
            yield map_balance_transaction(txn)
