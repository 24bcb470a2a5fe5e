"""Repository interface over transactions, connections, reports and chat history.

The storage engine itself lives outside this package. ``InMemoryRepository``
is the reference implementation used by tests and local tooling.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any

import structlog

from pashoot_reports.models import (
    ChatMessage,
    Connection,
    Report,
    ReportStatus,
    Source,
    Transaction,
    TransactionFields,
    TransactionType,
)

logger = structlog.get_logger(__name__)


class ReportFinalizedError(ValueError):
    """A completed or failed report cannot change status again."""

    def __init__(self, report_id: str, status: ReportStatus):
        super().__init__(f"Report {report_id} is already {status.value}")
        self.report_id = report_id
        self.status = status


@dataclass(frozen=True)
class TransactionFilter:
    """Query filter; date bounds are inclusive and either may be omitted."""

    type: TransactionType | None = None
    source: Source | None = None
    start_date: date | None = None
    end_date: date | None = None

    def matches(self, transaction: Transaction) -> bool:
        if self.type is not None and transaction.type != self.type:
            return False
        if self.source is not None and transaction.source != self.source:
            return False
        if self.start_date is not None and transaction.date < self.start_date:
            return False
        if self.end_date is not None and transaction.date > self.end_date:
            return False
        return True


class Repository(ABC):
    """Data access used by connectors, the report service and the assistant."""

    # === Connections ===

    @abstractmethod
    async def get_connection(self, user_id: str, source: Source) -> Connection | None:
        """Return the user's connection for ``source``, if any."""

    @abstractmethod
    async def list_connections(self, user_id: str) -> list[Connection]:
        """Return every connection the user has."""

    @abstractmethod
    async def save_connection(self, connection: Connection) -> Connection:
        """Insert or replace the connection for (user_id, source)."""

    @abstractmethod
    async def update_connection(self, connection_id: str, **changes: Any) -> Connection:
        """Apply field changes (``last_sync_at``, ``metadata``...) to a connection."""

    # === Transactions ===

    @abstractmethod
    async def upsert_transaction(
        self,
        user_id: str,
        source: Source,
        external_id: str,
        fields: TransactionFields,
    ) -> Transaction:
        """Insert or update the transaction keyed by (user_id, source, external_id)."""

    @abstractmethod
    async def query_transactions(
        self, user_id: str, filter: TransactionFilter | None = None
    ) -> list[Transaction]:
        """Return matching transactions ordered by date ascending."""

    async def count_transactions(
        self, user_id: str, filter: TransactionFilter | None = None
    ) -> int:
        return len(await self.query_transactions(user_id, filter))

    # === Reports ===

    @abstractmethod
    async def create_report(
        self, user_id: str, report_type: str, start_date: date, end_date: date
    ) -> Report:
        """Create a report in the ``generating`` state."""

    @abstractmethod
    async def update_report(
        self,
        report_id: str,
        status: ReportStatus,
        artifact_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Report:
        """Move a report to ``completed`` or ``failed``.

        Raises:
            ReportFinalizedError: the report already reached a terminal status.
        """

    @abstractmethod
    async def get_report(self, report_id: str) -> Report | None:
        """Return a report by id."""

    # === Chat ===

    @abstractmethod
    async def add_chat_message(self, message: ChatMessage) -> None:
        """Store a chat message."""

    @abstractmethod
    async def count_chat_messages(self, user_id: str, role: str, since: datetime) -> int:
        """Count the user's messages with ``role`` created at or after ``since``."""


class InMemoryRepository(Repository):
    """Dict-backed repository keyed by the model's natural keys."""

    def __init__(self) -> None:
        self._connections: dict[tuple[str, Source], Connection] = {}
        self._transactions: dict[tuple[str, Source, str], Transaction] = {}
        self._reports: dict[str, Report] = {}
        self._chat: list[ChatMessage] = []

    async def get_connection(self, user_id: str, source: Source) -> Connection | None:
        return self._connections.get((user_id, Source(source)))

    async def list_connections(self, user_id: str) -> list[Connection]:
        return [c for (owner, _), c in self._connections.items() if owner == user_id]

    async def save_connection(self, connection: Connection) -> Connection:
        key = (connection.user_id, connection.source)
        existing = self._connections.get(key)
        if existing is not None:
            connection = replace(connection, id=existing.id, created_at=existing.created_at)
        self._connections[key] = connection
        return connection

    async def update_connection(self, connection_id: str, **changes: Any) -> Connection:
        for key, connection in self._connections.items():
            if connection.id == connection_id:
                updated = replace(connection, **changes)
                self._connections[key] = updated
                return updated
        raise KeyError(f"Connection {connection_id} not found")

    async def upsert_transaction(
        self,
        user_id: str,
        source: Source,
        external_id: str,
        fields: TransactionFields,
    ) -> Transaction:
        key = (user_id, Source(source), external_id)
        existing = self._transactions.get(key)
        if existing is None:
            transaction = Transaction.create(user_id, Source(source), external_id, fields)
        else:
            transaction = existing.updated_with(fields)
        self._transactions[key] = transaction
        return transaction

    async def query_transactions(
        self, user_id: str, filter: TransactionFilter | None = None
    ) -> list[Transaction]:
        criteria = filter or TransactionFilter()
        matches = [
            t
            for (owner, _, _), t in self._transactions.items()
            if owner == user_id and criteria.matches(t)
        ]
        return sorted(matches, key=lambda t: t.date)

    async def create_report(
        self, user_id: str, report_type: str, start_date: date, end_date: date
    ) -> Report:
        report = Report(
            user_id=user_id,
            report_type=report_type,
            start_date=start_date,
            end_date=end_date,
        )
        self._reports[report.id] = report
        return report

    async def update_report(
        self,
        report_id: str,
        status: ReportStatus,
        artifact_url: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Report:
        report = self._reports.get(report_id)
        if report is None:
            raise KeyError(f"Report {report_id} not found")
        if report.is_terminal:
            raise ReportFinalizedError(report_id, report.status)
        report.status = status
        if artifact_url is not None:
            report.artifact_url = artifact_url
        if metadata is not None:
            report.metadata = metadata
        logger.debug("report_updated", report_id=report_id, status=status.value)
        return report

    async def get_report(self, report_id: str) -> Report | None:
        return self._reports.get(report_id)

    async def add_chat_message(self, message: ChatMessage) -> None:
        self._chat.append(message)

    async def count_chat_messages(self, user_id: str, role: str, since: datetime) -> int:
        return sum(
            1
            for m in self._chat
            if m.user_id == user_id and m.role == role and m.created_at >= since
        )
