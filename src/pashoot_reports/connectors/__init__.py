"""Source connectors and the integration catalog."""

from dataclasses import dataclass
from typing import Any, Literal

from pashoot_reports.connectors.airtable import AirtableConnector
from pashoot_reports.connectors.base import (
    BaseConnector,
    ConnectionNotFoundError,
    MissingConnectionMetadataError,
    SourceAPIClient,
    SourceAPIError,
    SourceAuthenticationError,
    SourceRateLimitError,
    SyncError,
    SyncResult,
)
from pashoot_reports.connectors.gusto import GustoConnector
from pashoot_reports.connectors.notion import NotionConnector
from pashoot_reports.connectors.square import SquareConnector
from pashoot_reports.connectors.stripe import StripeConnector
from pashoot_reports.connectors.wave import WaveConnector
from pashoot_reports.connectors.xero import XeroConnector
from pashoot_reports.models import Source
from pashoot_reports.storage import Repository

IntegrationCategory = Literal["accounting", "payments", "payroll", "productivity"]


@dataclass(frozen=True)
class Integration:
    """A source users can connect, as shown in the connections catalog."""

    source: Source
    name: str
    description: str
    category: IntegrationCategory
    connector: type[BaseConnector]

    @property
    def id(self) -> str:
        return self.source.value


INTEGRATIONS: tuple[Integration, ...] = (
    Integration(
        Source.WAVE,
        "Wave Accounting",
        "Sync transactions, invoices, and customers from Wave",
        "accounting",
        WaveConnector,
    ),
    Integration(
        Source.STRIPE,
        "Stripe",
        "Import payments, refunds, and customer data",
        "payments",
        StripeConnector,
    ),
    Integration(
        Source.XERO,
        "Xero",
        "Connect bank transactions, invoices, and bills",
        "accounting",
        XeroConnector,
    ),
    Integration(
        Source.SQUARE,
        "Square",
        "Sync payments, orders, and customer data",
        "payments",
        SquareConnector,
    ),
    Integration(
        Source.GUSTO,
        "Gusto",
        "Import payroll, contractor payments, and benefits data",
        "payroll",
        GustoConnector,
    ),
    Integration(
        Source.AIRTABLE,
        "Airtable",
        "Import records from your Airtable bases",
        "productivity",
        AirtableConnector,
    ),
    Integration(
        Source.NOTION,
        "Notion",
        "Sync database records for expense tracking",
        "productivity",
        NotionConnector,
    ),
)

_BY_SOURCE = {integration.source: integration for integration in INTEGRATIONS}


def get_integration(source: str | Source) -> Integration | None:
    try:
        return _BY_SOURCE.get(Source(source))
    except ValueError:
        return None


def integrations_by_category(category: str) -> list[Integration]:
    return [integration for integration in INTEGRATIONS if integration.category == category]


def get_connector(source: str | Source, repository: Repository, **kwargs: Any) -> BaseConnector:
    """Instantiate the connector for ``source``.

    Raises:
        ValueError: ``source`` has no connector (e.g. ``manual``).
    """
    integration = get_integration(source)
    if integration is None:
        raise ValueError(f"No connector for source: {source}")
    return integration.connector(repository, **kwargs)


__all__ = [
    "AirtableConnector",
    "BaseConnector",
    "ConnectionNotFoundError",
    "GustoConnector",
    "INTEGRATIONS",
    "Integration",
    "MissingConnectionMetadataError",
    "NotionConnector",
    "SourceAPIClient",
    "SourceAPIError",
    "SourceAuthenticationError",
    "SourceRateLimitError",
    "SquareConnector",
    "StripeConnector",
    "SyncError",
    "SyncResult",
    "WaveConnector",
    "XeroConnector",
    "get_connector",
    "get_integration",
    "integrations_by_category",
]
