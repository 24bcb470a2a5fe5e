"""Notion connector over one database the user shared with the integration."""

from collections.abc import AsyncIterator
from typing import Any

from pashoot_reports.connectors.base import (
    BaseConnector,
    CanonicalRecord,
    MappedRecord,
    SkippedRecord,
    SourceAPIClient,
    SyncContext,
)
from pashoot_reports.extraction import NotionExtractor
from pashoot_reports.models import Connection, SchemalessRecordDetails, Source

NOTION_VERSION = "2022-06-28"


def page_url(page_id: str) -> str:
    return f"https://notion.so/{page_id.replace('-', '')}"


class NotionConnector(BaseConnector):
    source = Source.NOTION
    display_name = "Notion"
    record_label = "pages"

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.extractor = NotionExtractor()

    def validate_connection(self, connection: Connection) -> None:
        self.require_metadata(
            connection,
            "databaseId",
            "Notion database ID not found. Please reconnect and select a database.",
        )

    def create_client(self, access_token: str, connection: Connection) -> SourceAPIClient:
        return SourceAPIClient(
            base_url=self.settings.notion_api_url,
            access_token=access_token,
            name=self.display_name,
            headers={"Notion-Version": NOTION_VERSION},
        )

    def map_page(self, page: dict[str, Any], database_id: str) -> MappedRecord:
        properties = page.get("properties") or {}
        extracted = self.extractor.extract(properties)
        if extracted is None:
            return SkippedRecord(
                external_id=page["id"], kind="pages", reason="missing date or amount"
            )
        url = page_url(page["id"])
        details = SchemalessRecordDetails(container_id=database_id, fields=properties, url=url)
        metadata = {"databaseId": database_id, "pageUrl": url}
        return CanonicalRecord(
            external_id=page["id"],
            fields=extracted.to_fields(details, metadata),
            kind="pages",
        )

    async def fetch_records(self, context: SyncContext) -> AsyncIterator[MappedRecord]:
        database_id = str(context.connection.metadata["databaseId"])
        result = await context.client.post(
            f"/v1/databases/{database_id}/query",
            json={"page_size": self.record_limit},
        )
        for page in context.client.extract_items(result, "results"):
            yield self.map_page(page, database_id)
