"""Report generation: load data, run the generator, render and persist."""

import base64
from datetime import date

import structlog

from pashoot_reports.config import KeywordCatalog, load_keyword_catalog
from pashoot_reports.models import Report, ReportStatus
from pashoot_reports.reports.registry import ReportDefinition, get_report_definition
from pashoot_reports.reports.types import (
    ReportContext,
    ReportData,
    ReportParameters,
    ReportRequest,
    ReportScope,
    ReportType,
)
from pashoot_reports.storage import Repository, TransactionFilter

logger = structlog.get_logger(__name__)


def html_data_url(html: str) -> str:
    encoded = base64.b64encode(html.encode("utf-8")).decode("ascii")
    return f"data:text/html;base64,{encoded}"


class ReportService:
    """Generates reports on demand and records them in the repository."""

    def __init__(
        self,
        repository: Repository,
        parameters: ReportParameters | None = None,
        keywords: KeywordCatalog | None = None,
    ):
        self.repository = repository
        self.parameters = parameters or ReportParameters.from_settings()
        self.keywords = keywords or load_keyword_catalog()

    async def _load_context(
        self, definition: ReportDefinition, request: ReportRequest
    ) -> ReportContext:
        if definition.scope == ReportScope.AS_OF:
            criteria = TransactionFilter(end_date=request.end_date)
        else:
            criteria = TransactionFilter(start_date=request.start_date, end_date=request.end_date)

        transactions = await self.repository.query_transactions(request.user_id, criteria)
        connections = await self.repository.list_connections(request.user_id)
        return ReportContext(
            request=request,
            transactions=transactions,
            connections=connections,
            parameters=self.parameters,
            keywords=self.keywords,
        )

    async def build_report_data(
        self,
        user_id: str,
        report_type: str | ReportType,
        start_date: date,
        end_date: date,
    ) -> ReportData:
        """Run a generator without persisting anything."""
        definition = get_report_definition(report_type)
        request = ReportRequest(user_id, definition.report_type, start_date, end_date)
        return definition.generator(await self._load_context(definition, request))

    async def generate_report(
        self,
        user_id: str,
        report_type: str | ReportType,
        start_date: date,
        end_date: date,
    ) -> Report:
        """Generate, render and store a report.

        Raises:
            UnknownReportTypeError: If the report type is not registered.
            InvalidDateRangeError: If start_date is after end_date.

        Both are checked before a report record is created. Failures during
        generation are recorded on the returned report instead of raised.
        """
        definition = get_report_definition(report_type)
        request = ReportRequest(user_id, definition.report_type, start_date, end_date)
        log = logger.bind(user_id=user_id, report_type=definition.report_type.value)

        report = await self.repository.create_report(
            user_id, definition.report_type.value, start_date, end_date
        )
        log = log.bind(report_id=report.id)
        log.info("report_started", start_date=start_date.isoformat(), end_date=end_date.isoformat())

        try:
            context = await self._load_context(definition, request)
            data = definition.generator(context)
            html = definition.renderer(data)
        except Exception as e:
            log.exception("report_failed")
            return await self.repository.update_report(
                report.id, ReportStatus.FAILED, metadata={"error": str(e)}
            )

        report = await self.repository.update_report(
            report.id,
            ReportStatus.COMPLETED,
            artifact_url=html_data_url(html),
            metadata=data,
        )
        log.info("report_completed", transactions=len(context.transactions))
        return report
