"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("ANTHROPIC_API_KEY", "sk-ant-test")
os.environ.setdefault("SOURCE_MAX_RETRIES", "0")

from pashoot_reports.config import load_keyword_catalog  # noqa: E402
from pashoot_reports.models import (  # noqa: E402
    Connection,
    Source,
    Transaction,
    TransactionFields,
    TransactionType,
)
from pashoot_reports.reports.types import (  # noqa: E402
    ReportContext,
    ReportParameters,
    ReportRequest,
    ReportType,
)
from pashoot_reports.storage import InMemoryRepository  # noqa: E402

USER_ID = "user-1"


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def repository():
    """Empty in-memory repository."""
    return InMemoryRepository()


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Factory for canonical transactions with sensible defaults."""
    counter = {"n": 0}

    def factory(
        amount: str | Decimal = "100.00",
        type: TransactionType = TransactionType.INCOME,
        day: date = date(2024, 1, 15),
        description: str = "Test transaction",
        category: str | None = None,
        source: Source = Source.MANUAL,
        metadata: dict[str, Any] | None = None,
        external_id: str | None = None,
    ) -> Transaction:
        counter["n"] += 1
        fields = TransactionFields(
            date=day,
            description=description,
            amount=Decimal(str(amount)),
            type=type,
            category=category,
            metadata=metadata or {},
        )
        return Transaction.create(
            USER_ID, source, external_id or f"ext-{counter['n']}", fields
        )

    return factory


@pytest.fixture
def make_context() -> Callable[..., ReportContext]:
    """Build a ReportContext for calling a generator directly."""

    def factory(
        report_type: ReportType,
        transactions: list[Transaction],
        start: date = date(2024, 1, 1),
        end: date = date(2024, 12, 31),
        connections: list[Connection] | None = None,
        parameters: ReportParameters | None = None,
    ) -> ReportContext:
        return ReportContext(
            request=ReportRequest(USER_ID, report_type, start, end),
            transactions=transactions,
            connections=connections or [],
            parameters=parameters or ReportParameters(),
            keywords=load_keyword_catalog(),
        )

    return factory


@pytest.fixture
def mock_source_api() -> Callable[[dict[tuple[str, str], Any]], AsyncMock]:
    """Build a replacement for SourceAPIClient._request that answers by (method, path).

    A route value may be a JSON body, a tuple of bodies returned in turn, or an
    exception to raise.
    """

    def factory(routes: dict[tuple[str, str], Any]) -> AsyncMock:
        queued = {key: list(value) for key, value in routes.items() if isinstance(value, tuple)}

        async def respond(method, path, params=None, json=None, retry_count=0):
            key = (method, path)
            if key in queued:
                return queued[key].pop(0)
            if key not in routes:
                raise AssertionError(f"Unexpected request: {method} {path}")
            value = routes[key]
            if isinstance(value, Exception):
                raise value
            return value

        return AsyncMock(side_effect=respond)

    return factory


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    client = AsyncMock()
    client.request = AsyncMock()
    client.aclose = AsyncMock()
    return client
