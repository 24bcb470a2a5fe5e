"""Pashoot Reports - financial reporting core for small businesses."""

__version__ = "0.1.0"

from pashoot_reports.assistant import ChatQuotaExceededError, FinancialAssistant
from pashoot_reports.config import configure_logging, get_settings
from pashoot_reports.connectors import INTEGRATIONS, get_connector, get_integration
from pashoot_reports.models import (
    Connection,
    Report,
    ReportStatus,
    Source,
    Transaction,
    TransactionFields,
    TransactionType,
)
from pashoot_reports.reports import (
    ReportService,
    ReportType,
    get_report_definition,
    list_report_types,
)
from pashoot_reports.storage import (
    InMemoryRepository,
    ReportFinalizedError,
    Repository,
    TransactionFilter,
)
from pashoot_reports.sync import SyncService

__all__ = [
    # Version
    "__version__",
    # Models
    "Connection",
    "Report",
    "ReportStatus",
    "Source",
    "Transaction",
    "TransactionFields",
    "TransactionType",
    # Storage
    "Repository",
    "InMemoryRepository",
    "ReportFinalizedError",
    "TransactionFilter",
    # Sync
    "INTEGRATIONS",
    "SyncService",
    "get_connector",
    "get_integration",
    # Reports
    "ReportService",
    "ReportType",
    "get_report_definition",
    "list_report_types",
    # Assistant
    "FinancialAssistant",
    "ChatQuotaExceededError",
    # Config
    "get_settings",
    "configure_logging",
]
