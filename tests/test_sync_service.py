"""Tests for the sync service."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, patch

import pytest

from pashoot_reports.connectors import SourceAPIClient, SourceAPIError, StripeConnector
from pashoot_reports.models import Connection, Source
from pashoot_reports.sync import SyncService


def _charge(charge_id, cents):
    return {
        "id": charge_id,
        "amount": cents,
        "created": int(datetime(2024, 2, 1, tzinfo=UTC).timestamp()),
        "currency": "usd",
        "status": "succeeded",
    }


STRIPE_ROUTES = {
    ("GET", "/v1/charges"): {"data": [_charge("ch_1", 1000)]},
    ("GET", "/v1/balance_transactions"): {"data": []},
}


@pytest.fixture
def service(repository):
    return SyncService(repository)


class TestSync:
    """Tests for SyncService.sync."""

    @pytest.mark.asyncio
    async def test_success(self, service, repository, user_id, mock_source_api):
        await repository.save_connection(Connection(user_id, Source.STRIPE, "token"))

        with patch.object(SourceAPIClient, "_request", mock_source_api(STRIPE_ROUTES)):
            result = await service.sync(user_id, "stripe")

        assert result.to_dict() == {
            "success": True,
            "source": "stripe",
            "synced_count": 1,
            "skipped_count": 0,
            "counts": {"charges": 1},
            "message": "Synced 1 transactions from Stripe",
        }

    @pytest.mark.asyncio
    async def test_missing_connection_is_a_failed_result(self, service, user_id):
        result = await service.sync(user_id, Source.SQUARE)

        assert result.to_dict() == {
            "success": False,
            "source": "square",
            "synced_count": 0,
            "skipped_count": 0,
            "counts": {},
            "error": "Square connection not found",
        }

    @pytest.mark.asyncio
    async def test_unknown_source(self, service, user_id):
        result = await service.sync(user_id, "quickbooks")

        assert not result.success
        assert result.error == "Unknown source: quickbooks"

    @pytest.mark.asyncio
    async def test_manual_source_is_not_syncable(self, service, user_id):
        result = await service.sync(user_id, Source.MANUAL)

        assert not result.success
        assert "Unknown source" in result.error

    @pytest.mark.asyncio
    async def test_api_error_is_a_failed_result(
        self, service, repository, user_id, mock_source_api
    ):
        await repository.save_connection(Connection(user_id, Source.STRIPE, "token"))
        routes = {("GET", "/v1/charges"): SourceAPIError("Stripe API error: 500", 500)}

        with patch.object(SourceAPIClient, "_request", mock_source_api(routes)):
            result = await service.sync(user_id, "stripe")

        assert not result.success
        assert result.error == "Stripe API error: 500"
        assert result.synced_count == 0

    @pytest.mark.asyncio
    async def test_api_error_reports_partial_progress(
        self, service, repository, user_id, mock_source_api
    ):
        await repository.save_connection(Connection(user_id, Source.STRIPE, "token"))
        routes = {
            ("GET", "/v1/charges"): {"data": [_charge("ch_1", 1000)]},
            ("GET", "/v1/balance_transactions"): SourceAPIError("Stripe API error: 500", 500),
        }

        with patch.object(SourceAPIClient, "_request", mock_source_api(routes)):
            result = await service.sync(user_id, "stripe")

        assert await repository.count_transactions(user_id) == 1
        assert result.to_dict() == {
            "success": False,
            "source": "stripe",
            "synced_count": 1,
            "skipped_count": 0,
            "counts": {"charges": 1},
            "error": "Stripe API error: 500",
        }
        connection = await repository.get_connection(user_id, Source.STRIPE)
        assert connection.last_sync_at is None

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported(self, service, repository, user_id):
        await repository.save_connection(Connection(user_id, Source.STRIPE, "token"))

        with patch.object(StripeConnector, "sync", AsyncMock(side_effect=KeyError("id"))):
            result = await service.sync(user_id, "stripe")

        assert not result.success
        assert result.error.startswith("KeyError")


class TestSyncAll:
    """Tests for syncing every connected source."""

    @pytest.mark.asyncio
    async def test_each_connection_reports_independently(
        self, service, repository, user_id, mock_source_api
    ):
        await repository.save_connection(Connection(user_id, Source.STRIPE, "token"))
        await repository.save_connection(Connection(user_id, Source.AIRTABLE, "token"))

        with patch.object(SourceAPIClient, "_request", mock_source_api(STRIPE_ROUTES)):
            results = await service.sync_all(user_id)

        assert set(results) == {Source.STRIPE, Source.AIRTABLE}
        assert results[Source.STRIPE].success
        assert not results[Source.AIRTABLE].success
        assert "base ID" in results[Source.AIRTABLE].error

        summary = SyncService.summarize(results)
        assert summary["stripe"]["synced_count"] == 1
        assert summary["airtable"]["success"] is False

    @pytest.mark.asyncio
    async def test_no_connections(self, service, user_id):
        assert await service.sync_all(user_id) == {}
