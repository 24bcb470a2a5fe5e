"""Wave connector (GraphQL public API)."""

from collections.abc import AsyncIterator
from typing import Any

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
    Source,
    TransactionFields,
    TransactionType,
    WaveTransactionDetails,
)

GRAPHQL_PATH = "/graphql/public"
PAGE_SIZE = 50

BUSINESS_QUERY = """
query {
  user {
    defaultBusiness {
      id
    }
  }
}
"""

TRANSACTIONS_QUERY = """
query($businessId: ID!, $page: Int!) {
  business(id: $businessId) {
    transactions(page: $page, pageSize: %d) {
      pageInfo {
        currentPage
        totalPages
      }
      edges {
        node {
          id
          date
          description
          amount {
            value
            currency {
              code
            }
          }
          direction
        }
      }
    }
  }
}
""" % PAGE_SIZE


def map_transaction(node: dict[str, Any]) -> MappedRecord:
    record_date = parse_date(node.get("date"))
    if record_date is None:
        return SkippedRecord(external_id=node["id"], kind="transactions", reason="missing date")

    amount = node.get("amount") or {}
    currency = (amount.get("currency") or {}).get("code", "")
    direction = node.get("direction", "")
    fields = TransactionFields(
        date=record_date,
        description=node.get("description") or "Wave transaction",
        amount=abs(to_decimal(amount.get("value"))),
        type=TransactionType.INCOME if direction == "DEPOSIT" else TransactionType.EXPENSE,
        category=None,
        details=WaveTransactionDetails(
            transaction_id=node["id"],
            direction=direction,
            currency=currency,
        ),
        metadata={"currency": currency, "direction": direction},
    )
    return CanonicalRecord(external_id=node["id"], fields=fields, kind="transactions")


class WaveConnector(BaseConnector):
    source = Source.WAVE
    display_name = "Wave"

    def create_client(self, access_token: str, connection: Connection) -> SourceAPIClient:
        return SourceAPIClient(
            base_url=self.settings.wave_api_url,
            access_token=access_token,
            name=self.display_name,
        )

    async def _query(
        self, client: SourceAPIClient, query: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables
        result = await client.post(GRAPHQL_PATH, json=body)
        if result.get("errors"):
            raise SourceAPIError("Wave GraphQL error", details=result["errors"])
        return result.get("data") or {}

    async def _business_id(self, context: SyncContext) -> str:
        stored = context.connection.metadata.get("businessId")
        if stored:
            return str(stored)
        data = await self._query(context.client, BUSINESS_QUERY)
        business = ((data.get("user") or {}).get("defaultBusiness")) or {}
        if not business.get("id"):
            raise MissingConnectionMetadataError(
                self.source, "No default Wave business found; please reconnect Wave"
            )
        await self.remember_metadata(context, businessId=business["id"])
        return str(business["id"])

    async def fetch_records(self, context: SyncContext) -> AsyncIterator[MappedRecord]:
        business_id = await self._business_id(context)

        fetched = 0
        page = 1
        while True:
            data = await self._query(
                context.client,
                TRANSACTIONS_QUERY,
                {"businessId": business_id, "page": page},
            )
            transactions = ((data.get("business") or {}).get("transactions")) or {}
            for edge in transactions.get("edges") or []:
                yield map_transaction(edge["node"])
                fetched += 1

            total_pages = (transactions.get("pageInfo") or {}).get("totalPages") or 0
            if page >= total_pages or fetched >= self.record_limit:
                break
            page += 1
