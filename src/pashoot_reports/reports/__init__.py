"""Report types, generators, registry, renderers and the report service."""

from pashoot_reports.reports.registry import (
    REGISTRY,
    ReportDefinition,
    get_report_definition,
    list_report_types,
)
from pashoot_reports.reports.renderers import render_generic_report, render_income_statement
from pashoot_reports.reports.service import ReportService
from pashoot_reports.reports.types import (
    InvalidDateRangeError,
    ReportContext,
    ReportData,
    ReportError,
    ReportParameters,
    ReportRequest,
    ReportScope,
    ReportType,
    UnknownReportTypeError,
)

__all__ = [
    "REGISTRY",
    "InvalidDateRangeError",
    "ReportContext",
    "ReportData",
    "ReportDefinition",
    "ReportError",
    "ReportParameters",
    "ReportRequest",
    "ReportScope",
    "ReportService",
    "ReportType",
    "UnknownReportTypeError",
    "get_report_definition",
    "list_report_types",
    "render_generic_report",
    "render_income_statement",
]
