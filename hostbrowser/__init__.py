"""Orchestrate search, scrape and screenshot requests on a hosted browser."""

__version__ = "0.1.0"

from hostbrowser.batch import BatchItem, BatchReport, BatchSequencer, Failure, Success
from hostbrowser.behavior import HumanBehavior, PointerStep
from hostbrowser.errors import (
    ConfigurationError,
    ExecutionError,
    ExtractionError,
    HostBrowserError,
    MissingCredentialError,
    ValidationError,
)
from hostbrowser.intents import (
    FieldSelector,
    ScrapeIntent,
    ScreenshotIntent,
    SearchFilters,
    SearchIntent,
)
from hostbrowser.normalize import SearchEntry, normalize_scrape, normalize_search
from hostbrowser.remote.client import RemoteExecutionClient
from hostbrowser.service import BrowserService

__all__ = [
    "BatchItem",
    "BatchReport",
    "BatchSequencer",
    "BrowserService",
    "ConfigurationError",
    "ExecutionError",
    "ExtractionError",
    "Failure",
    "FieldSelector",
    "HostBrowserError",
    "HumanBehavior",
    "MissingCredentialError",
    "PointerStep",
    "RemoteExecutionClient",
    "ScrapeIntent",
    "ScreenshotIntent",
    "SearchEntry",
    "SearchFilters",
    "SearchIntent",
    "Success",
    "ValidationError",
    "normalize_scrape",
    "normalize_search",
]
