"""Configuration module for Pashoot Reports."""

from pashoot_reports.config.keywords import KeywordCatalog, load_keyword_catalog
from pashoot_reports.config.logging import configure_logging, get_logger, log_context
from pashoot_reports.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "log_context",
    "KeywordCatalog",
    "load_keyword_catalog",
]
