"""Airtable connector over a user-chosen base and table."""

from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

from pashoot_reports.connectors.base import (
    BaseConnector,
    CanonicalRecord,
    MappedRecord,
    SkippedRecord,
    SourceAPIClient,
    SyncContext,
)
from pashoot_reports.extraction import AirtableExtractor
from pashoot_reports.models import (
    Connection,
    SchemalessRecordDetails,
    Source,
)

DEFAULT_TABLE = "Expenses"


class AirtableConnector(BaseConnector):
    source = Source.AIRTABLE
    display_name = "Airtable"
    record_label = "records"

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.extractor = AirtableExtractor()

    def validate_connection(self, connection: Connection) -> None:
        self.require_metadata(
            connection, "baseId", "Airtable base ID not found. Please reconnect."
        )

    def create_client(self, access_token: str, connection: Connection) -> SourceAPIClient:
        return SourceAPIClient(
            base_url=self.settings.airtable_api_url,
            access_token=access_token,
            name=self.display_name,
        )

    def map_record(self, record: dict[str, Any], base_id: str, table_id: str) -> MappedRecord:
        fields = record.get("fields") or {}
        extracted = self.extractor.extract(fields)
        if extracted is None:
            return SkippedRecord(
                external_id=record["id"], kind="records", reason="missing date or amount"
            )
        details = SchemalessRecordDetails(container_id=base_id, fields=fields, table=table_id)
        metadata = {"baseId": base_id, "tableId": table_id}
        return CanonicalRecord(
            external_id=record["id"],
            fields=extracted.to_fields(details, metadata),
            kind="records",
        )

    async def fetch_records(self, context: SyncContext) -> AsyncIterator[MappedRecord]:
        metadata = context.connection.metadata
        base_id = str(metadata["baseId"])
        table_id = str(metadata.get("tableId") or DEFAULT_TABLE)

        result = await context.client.get(
            f"/v0/{base_id}/{quote(table_id, safe='')}",
            params={"maxRecords": self.record_limit},
        )
        for record in context.client.extract_items(result, "records"):
            yield self.map_record(record, base_id, table_id)
