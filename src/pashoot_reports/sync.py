"""Sync orchestration: run connectors and report failures as results."""

from typing import Any

import structlog

from pashoot_reports.config import Settings, get_settings, log_context
from pashoot_reports.connectors import (
    SourceAPIError,
    SyncError,
    SyncResult,
    get_connector,
    get_integration,
)
from pashoot_reports.connectors.base import TokenDecryptor
from pashoot_reports.models import Source
from pashoot_reports.storage import Repository

logger = structlog.get_logger(__name__)


class SyncService:
    """Entry point used by the API layer to sync one or all connected sources."""

    def __init__(
        self,
        repository: Repository,
        settings: Settings | None = None,
        decrypt: TokenDecryptor | None = None,
    ):
        self.repository = repository
        self.settings = settings or get_settings()
        self._decrypt = decrypt

    async def sync(self, user_id: str, source: str | Source) -> SyncResult:
        """Sync one source. Never raises; failures come back as ``success=False``."""
        log = logger.bind(user_id=user_id, source=str(getattr(source, "value", source)))

        if get_integration(source) is None:
            log.warning("sync_unknown_source")
            return SyncResult(
                source=Source.MANUAL,
                success=False,
                error=f"Unknown source: {source}",
            )
        source = Source(source)

        connector = get_connector(
            source, self.repository, decrypt=self._decrypt, settings=self.settings
        )
        try:
            with log_context(user_id=user_id, source=source.value):
                return await connector.sync(user_id)
        except SyncError as e:
            log.warning("sync_rejected", error=str(e))
            return SyncResult(source=source, success=False, error=str(e))
        except SourceAPIError as e:
            log.error(
                "sync_failed",
                error=str(e),
                status_code=e.status_code,
                synced=e.synced_count,
            )
            return SyncResult(
                source=source,
                success=False,
                synced_count=e.synced_count,
                skipped_count=e.skipped_count,
                counts=e.counts,
                error=str(e),
            )
        except Exception as e:
            log.exception("sync_crashed")
            return SyncResult(source=source, success=False, error=f"{type(e).__name__}: {e}")

    async def sync_all(self, user_id: str) -> dict[Source, SyncResult]:
        """Sync every connected source in turn."""
        results: dict[Source, SyncResult] = {}
        for connection in await self.repository.list_connections(user_id):
            if get_integration(connection.source) is None:
                continue
            results[connection.source] = await self.sync(user_id, connection.source)

        logger.info(
            "sync_all_completed",
            user_id=user_id,
            sources=[source.value for source in results],
            failed=[source.value for source, result in results.items() if not result.success],
        )
        return results

    @staticmethod
    def summarize(results: dict[Source, SyncResult]) -> dict[str, Any]:
        return {source.value: result.to_dict() for source, result in results.items()}
