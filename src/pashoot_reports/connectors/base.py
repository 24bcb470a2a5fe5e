"""Shared HTTP client and sync template for source connectors."""

import asyncio
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar

import httpx
import structlog

from pashoot_reports.config import Settings, get_settings
from pashoot_reports.models import Connection, Source, TransactionFields, utc_now
from pashoot_reports.storage import Repository

logger = structlog.get_logger(__name__)

TokenDecryptor = Callable[[str], str]


def _identity(token: str) -> str:
    return token


# =============================================================================
# ERRORS
# =============================================================================


class SyncError(Exception):
    """Configuration problem that prevents a sync from starting."""

    def __init__(self, source: Source, message: str):
        super().__init__(message)
        self.source = source


class ConnectionNotFoundError(SyncError):
    """The user has no connection for the source."""


class MissingConnectionMetadataError(SyncError):
    """The connection lacks configuration the source needs (base ID, merchant ID...)."""


class SourceAPIError(Exception):
    """Base exception for source API errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details
        # Progress of the sync pass this error interrupted, filled in by BaseConnector.sync
        self.synced_count = 0
        self.skipped_count = 0
        self.counts: dict[str, int] = {}


class SourceAuthenticationError(SourceAPIError):
    """Access token rejected by the source."""


class SourceRateLimitError(SourceAPIError):
    """Rate limit exceeded."""

    @property
    def retry_after(self) -> int | None:
        if isinstance(self.details, dict):
            return self.details.get("retry_after")
        return None


# =============================================================================
# HTTP CLIENT
# =============================================================================


class SourceAPIClient:
    """Async JSON client for one source API authenticated with a bearer token."""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        name: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        settings = get_settings()
        self.base_url = base_url.rstrip("/")
        self.name = name
        self._access_token = access_token
        self._extra_headers = dict(headers or {})
        self._timeout = timeout if timeout is not None else settings.source_timeout
        self._max_retries = max_retries if max_retries is not None else settings.source_max_retries
        self._client: httpx.AsyncClient | None = None
        self._logger = logger.bind(api=name)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SourceAPIClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def set_header(self, name: str, value: str) -> None:
        self._extra_headers[name] = value

    def _get_headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        headers.update(self._extra_headers)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        retry_count: int = 0,
    ) -> Any:
        """Make an authenticated request and return the decoded JSON body."""
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=path,
                params=params,
                json=json,
                headers=self._get_headers(),
            )
        except httpx.RequestError as e:
            if retry_count < self._max_retries:
                await asyncio.sleep(2**retry_count)
                return await self._request(method, path, params, json, retry_count + 1)
            raise SourceAPIError(f"{self.name} request failed: {e}") from e

        if response.status_code == 401:
            raise SourceAuthenticationError(
                f"{self.name} rejected the access token; please reconnect",
                status_code=401,
            )

        if response.status_code == 429:
            retry_after = int(response.headers.get("Retry-After", "60"))
            raise SourceRateLimitError(
                f"{self.name} rate limited, retry after {retry_after}s",
                status_code=429,
                details={"retry_after": retry_after},
            )

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except ValueError:
                error_detail = {"raw": response.text[:500] if response.text else "empty response"}
            self._logger.warning(
                "source_api_error",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise SourceAPIError(
                f"{self.name} API error: {response.status_code}",
                status_code=response.status_code,
                details=error_detail,
            )

        return response.json() if response.content else {}

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make GET request."""
        return await self._request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make POST request."""
        return await self._request("POST", path, params=params, json=json)

    @staticmethod
    def extract_items(result: Any, key: str) -> list[dict[str, Any]]:
        """Return the list under ``key`` (or the body itself when it is a list)."""
        if isinstance(result, list):
            return result
        if isinstance(result, dict):
            items = result.get(key)
            if isinstance(items, list):
                return items
        return []


# =============================================================================
# SYNC TEMPLATE
# =============================================================================


@dataclass(frozen=True)
class CanonicalRecord:
    """One native record mapped to canonical fields, ready to upsert."""

    external_id: str
    fields: TransactionFields
    kind: str


@dataclass(frozen=True)
class SkippedRecord:
    """A native record intentionally left out of the canonical store."""

    external_id: str
    kind: str
    reason: str


MappedRecord = CanonicalRecord | SkippedRecord


@dataclass
class SyncResult:
    """Outcome of one sync pass. Partial progress is visible through the counts."""

    source: Source
    success: bool
    synced_count: int = 0
    skipped_count: int = 0
    counts: dict[str, int] = field(default_factory=dict)
    message: str = ""
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {
                "success": False,
                "source": self.source.value,
                "synced_count": self.synced_count,
                "skipped_count": self.skipped_count,
                "counts": dict(self.counts),
                "error": self.error,
            }
        return {
            "success": True,
            "source": self.source.value,
            "synced_count": self.synced_count,
            "skipped_count": self.skipped_count,
            "counts": dict(self.counts),
            "message": self.message,
        }


@dataclass
class SyncContext:
    """Everything a connector needs while fetching from its source."""

    user_id: str
    connection: Connection
    client: SourceAPIClient
    counts: Counter[str] = field(default_factory=Counter)


class BaseConnector(ABC):
    """Fetch native records, map them to canonical transactions, upsert by external id.

    Subclasses implement ``create_client`` and ``fetch_records``; they may
    override ``validate_connection`` to demand source-specific metadata.
    Records already upserted stay committed if a later request fails.
    """

    source: ClassVar[Source]
    display_name: ClassVar[str]
    record_label: ClassVar[str] = "transactions"

    def __init__(
        self,
        repository: Repository,
        decrypt: TokenDecryptor | None = None,
        settings: Settings | None = None,
    ):
        self.repository = repository
        self._decrypt = decrypt or _identity
        self.settings = settings or get_settings()
        self._logger = logger.bind(source=self.source.value)

    @property
    def record_limit(self) -> int:
        return self.settings.sync_record_limit

    @abstractmethod
    def create_client(self, access_token: str, connection: Connection) -> SourceAPIClient:
        """Build the API client for this source."""

    @abstractmethod
    def fetch_records(self, context: SyncContext) -> AsyncIterator[MappedRecord]:
        """Yield mapped (or skipped) native records."""

    def validate_connection(self, connection: Connection) -> None:
        """Raise MissingConnectionMetadataError when required metadata is absent."""

    def require_metadata(self, connection: Connection, key: str, message: str) -> str:
        value = connection.metadata.get(key)
        if not value:
            raise MissingConnectionMetadataError(self.source, message)
        return str(value)

    async def remember_metadata(self, context: SyncContext, **values: Any) -> None:
        """Persist configuration discovered from the source (tenant, business...)."""
        merged = {**context.connection.metadata, **values}
        if merged == context.connection.metadata:
            return
        context.connection = await self.repository.update_connection(
            context.connection.id, metadata=merged
        )

    async def load_connection(self, user_id: str) -> Connection:
        connection = await self.repository.get_connection(user_id, self.source)
        if connection is None:
            raise ConnectionNotFoundError(
                self.source, f"{self.display_name} connection not found"
            )
        return connection

    async def sync(self, user_id: str) -> SyncResult:
        """Run one sync pass for ``user_id``.

        Raises:
            ConnectionNotFoundError: no connection for this source.
            MissingConnectionMetadataError: connection needs to be re-established.
            SourceAPIError: the source API failed; earlier upserts are kept.
        """
        connection = await self.load_connection(user_id)
        self.validate_connection(connection)
        access_token = self._decrypt(connection.access_token)

        log = self._logger.bind(user_id=user_id)
        log.info("sync_started")

        synced = 0
        skipped = 0
        counts: Counter[str] = Counter()
        try:
            async with self.create_client(access_token, connection) as client:
                context = SyncContext(
                    user_id=user_id, connection=connection, client=client, counts=counts
                )
                async for record in self.fetch_records(context):
                    if isinstance(record, SkippedRecord):
                        skipped += 1
                        log.debug(
                            "record_skipped",
                            external_id=record.external_id,
                            kind=record.kind,
                            reason=record.reason,
                        )
                        continue
                    await self.repository.upsert_transaction(
                        user_id, self.source, record.external_id, record.fields
                    )
                    counts[record.kind] += 1
                    synced += 1
        except SourceAPIError as e:
            e.synced_count = synced
            e.skipped_count = skipped
            e.counts = dict(counts)
            log.warning("sync_interrupted", synced=synced, skipped=skipped, error=str(e))
            raise

        await self.repository.update_connection(context.connection.id, last_sync_at=utc_now())

        log.info("sync_completed", synced=synced, skipped=skipped, counts=dict(counts))
        return SyncResult(
            source=self.source,
            success=True,
            synced_count=synced,
            skipped_count=skipped,
            counts=dict(counts),
            message=f"Synced {synced} {self.record_label} from {self.display_name}",
        )


def cents_to_units(amount: Any) -> Decimal:
    """Convert an integer minor-unit amount (cents) to currency units."""
    return (Decimal(int(amount)) / 100).quantize(Decimal("0.01"))


def to_decimal(value: Any, default: str = "0") -> Decimal:
    """Parse a decimal string/number from an API payload."""
    if value is None or value == "":
        return Decimal(default)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal(default)
