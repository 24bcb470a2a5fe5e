"""Canonical data model shared by connectors and report generators.

Every connector normalizes its native records into ``Transaction`` and every
report reads ``Transaction``. Source-native fields with a fixed schema are kept
in a typed ``details`` record; cross-cutting hints (customer, vendor, tax
flags, fees) live in the open ``metadata`` map that reports probe.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

UNCATEGORIZED = "Uncategorized"


class Source(str, Enum):
    """Origin of a canonical transaction."""

    WAVE = "wave"
    STRIPE = "stripe"
    SQUARE = "square"
    XERO = "xero"
    GUSTO = "gusto"
    AIRTABLE = "airtable"
    NOTION = "notion"
    MANUAL = "manual"


class TransactionType(str, Enum):
    """Cash-flow direction. Transfers count as neither income nor expense."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class ReportStatus(str, Enum):
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# SOURCE DETAILS
# =============================================================================


@dataclass(frozen=True)
class StripeChargeDetails:
    charge_id: str
    currency: str
    status: str
    refunded: bool
    customer_id: str | None = None
    payment_method: str | None = None
    kind: Literal["stripe_charge"] = "stripe_charge"


@dataclass(frozen=True)
class StripeBalanceDetails:
    balance_transaction_id: str
    balance_type: str
    currency: str
    fee: Decimal
    net: Decimal
    kind: Literal["stripe_balance"] = "stripe_balance"


@dataclass(frozen=True)
class SquarePaymentDetails:
    payment_id: str
    currency: str
    status: str
    source_type: str | None = None
    receipt_number: str | None = None
    kind: Literal["square_payment"] = "square_payment"


@dataclass(frozen=True)
class SquareOrderDetails:
    order_id: str
    currency: str
    state: str
    item_count: int
    kind: Literal["square_order"] = "square_order"


@dataclass(frozen=True)
class XeroBankTransactionDetails:
    bank_transaction_id: str
    direction: str
    reference: str | None = None
    account_code: str | None = None
    kind: Literal["xero_bank_transaction"] = "xero_bank_transaction"


@dataclass(frozen=True)
class XeroInvoiceDetails:
    invoice_id: str
    invoice_type: str
    status: str
    contact_name: str
    reference: str | None = None
    due_date: date | None = None
    kind: Literal["xero_invoice"] = "xero_invoice"


@dataclass(frozen=True)
class WaveTransactionDetails:
    transaction_id: str
    direction: str
    currency: str
    kind: Literal["wave_transaction"] = "wave_transaction"


@dataclass(frozen=True)
class GustoPayrollDetails:
    payroll_id: str
    component: Literal["wages", "employer_taxes", "benefits"]
    processed: bool
    net_pay: Decimal | None = None
    employee_taxes: Decimal | None = None
    kind: Literal["gusto_payroll"] = "gusto_payroll"


@dataclass(frozen=True)
class SchemalessRecordDetails:
    """Raw Airtable fields or Notion properties, kept as synced."""

    container_id: str
    fields: dict[str, Any]
    table: str | None = None
    url: str | None = None
    kind: Literal["schemaless_record"] = "schemaless_record"


SourceDetails = (
    StripeChargeDetails
    | StripeBalanceDetails
    | SquarePaymentDetails
    | SquareOrderDetails
    | XeroBankTransactionDetails
    | XeroInvoiceDetails
    | WaveTransactionDetails
    | GustoPayrollDetails
    | SchemalessRecordDetails
)


# =============================================================================
# TRANSACTIONS
# =============================================================================


@dataclass(frozen=True)
class TransactionFields:
    """Insert/update payload a connector produces for one native record."""

    date: date
    description: str
    amount: Decimal
    type: TransactionType
    category: str | None = None
    details: SourceDetails | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative, got {self.amount}")
        if not self.description:
            raise ValueError("description must not be empty")


@dataclass(frozen=True)
class Transaction:
    """Canonical financial event, unique per (user_id, source, external_id)."""

    id: str
    user_id: str
    source: Source
    external_id: str
    date: date
    description: str
    amount: Decimal
    type: TransactionType
    category: str | None = None
    details: SourceDetails | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def key(self) -> tuple[str, Source, str]:
        return (self.user_id, self.source, self.external_id)

    @property
    def category_name(self) -> str:
        """Category with missing values reported as ``Uncategorized``."""
        return self.category or UNCATEGORIZED

    @property
    def month(self) -> str:
        return self.date.strftime("%Y-%m")

    @classmethod
    def create(
        cls,
        user_id: str,
        source: Source,
        external_id: str,
        fields: TransactionFields,
    ) -> "Transaction":
        return cls(
            id=uuid4().hex,
            user_id=user_id,
            source=source,
            external_id=external_id,
            date=fields.date,
            description=fields.description,
            amount=fields.amount,
            type=fields.type,
            category=fields.category,
            details=fields.details,
            metadata=dict(fields.metadata),
        )

    def updated_with(self, fields: TransactionFields) -> "Transaction":
        """Return a copy carrying ``fields``; identity and creation time are kept."""
        return replace(
            self,
            date=fields.date,
            description=fields.description,
            amount=fields.amount,
            type=fields.type,
            category=fields.category,
            details=fields.details,
            metadata=dict(fields.metadata),
            updated_at=utc_now(),
        )


# =============================================================================
# CONNECTIONS & REPORTS
# =============================================================================


@dataclass
class Connection:
    """OAuth connection to one source. At most one per (user_id, source)."""

    user_id: str
    source: Source
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    last_sync_at: datetime | None = None
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class Report:
    """A generated report and its lifecycle state."""

    user_id: str
    report_type: str
    start_date: date
    end_date: date
    status: ReportStatus = ReportStatus.GENERATING
    metadata: dict[str, Any] = field(default_factory=dict)
    artifact_url: str | None = None
    id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_terminal(self) -> bool:
        return self.status in (ReportStatus.COMPLETED, ReportStatus.FAILED)

    @property
    def error(self) -> str | None:
        if self.status != ReportStatus.FAILED:
            return None
        return self.metadata.get("error")


@dataclass(frozen=True)
class ChatMessage:
    user_id: str
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime = field(default_factory=utc_now)
