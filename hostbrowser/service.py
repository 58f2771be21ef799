"""Library entry point tying templates, remote execution and normalization together."""

from __future__ import annotations

import asyncio
import base64
from collections.abc import Awaitable, Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from loguru import logger

from hostbrowser.batch import BatchReport, BatchSequencer
from hostbrowser.behavior import HumanBehavior
from hostbrowser.config.loader import load_config
from hostbrowser.config.schema import Config
from hostbrowser.errors import ExecutionError, ValidationError
from hostbrowser.intents import (
    DEFAULT_SCRAPE_TIMEOUT_MS,
    DEFAULT_SCREENSHOT_TIMEOUT_MS,
    Intent,
    ScrapeIntent,
    ScreenshotIntent,
    SearchFilters,
    SearchIntent,
)
from hostbrowser.normalize import SearchEntry, normalize_scrape, normalize_search
from hostbrowser.program.templates import ScriptTemplateEngine
from hostbrowser.remote.client import RemoteExecutionClient
from hostbrowser.responses import ScrapeResponse, SearchResponse, now_iso
from hostbrowser.utils.safety import validate_target_url

DISPATCH_ACTIONS = ("google_search", "scrape_url", "screenshot")


class BrowserService:
    """Search, scrape and screenshot through a hosted browser.

    Unless a ``behavior`` is injected, every call draws its own
    ``HumanBehavior`` from ``config.seed``, so concurrent callers never share
    a random source and a seeded call always yields the same program.
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        client: RemoteExecutionClient | None = None,
        behavior: HumanBehavior | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config or Config()
        self.client = client or RemoteExecutionClient(self.config.remote)
        self.behavior = behavior
        self._sleep = sleep

    def templates(self) -> ScriptTemplateEngine:
        """Template engine for a single call."""
        return ScriptTemplateEngine(
            behavior=self.behavior or HumanBehavior.seeded(self.config.seed),
            search_config=self.config.search,
            scrape_config=self.config.scrape,
        )

    @classmethod
    def from_env(cls, config_path: Path | None = None) -> "BrowserService":
        """Build from the config file plus ``BROWSERLESS_*`` environment variables."""
        return cls(load_config(config_path))

    async def search(
        self,
        query: str,
        *,
        max_results: int | None = None,
        filters: SearchFilters | Mapping[str, Any] | None = None,
    ) -> list[SearchEntry]:
        intent = SearchIntent(
            query=query,
            max_results=self._max_results(max_results),
        )
        return await self._search(intent, _coerce_filters(filters))

    async def scrape(
        self,
        url: str,
        selectors: Mapping[str, Any] | None = None,
        *,
        timeout_ms: int = DEFAULT_SCRAPE_TIMEOUT_MS,
    ) -> dict[str, str | list[str] | None]:
        intent = ScrapeIntent.create(url, selectors, timeout_ms=timeout_ms)
        return await self._scrape(intent)

    async def screenshot(
        self,
        url: str,
        *,
        format: str = "png",
        quality: int = 80,
        full_page: bool = False,
        timeout_ms: int = DEFAULT_SCREENSHOT_TIMEOUT_MS,
    ) -> bytes:
        intent = ScreenshotIntent(
            url=url,
            format=format,  # type: ignore[arg-type]
            quality=quality,
            full_page=full_page,
            timeout_ms=timeout_ms,
        )
        return await self._screenshot(intent)

    async def run_batch(
        self,
        queries: Sequence[str],
        *,
        max_results: int | None = None,
    ) -> BatchReport:
        """Search each query in turn with the configured inter-item delay.

        A query that fails validation becomes that item's failure; the
        other queries still run.
        """
        if isinstance(queries, str) or not isinstance(queries, Sequence) or not queries:
            raise ValidationError("queries array is required")
        if len(queries) > self.config.batch.max_items:
            raise ValidationError(
                f"queries count exceeds batch.maxItems={self.config.batch.max_items}"
            )
        limit = self._max_results(max_results)

        async def search_one(query: Any) -> list[SearchEntry]:
            return await self._search(SearchIntent(query=query, max_results=limit), None)

        return await self._sequencer(search_one).run(queries)

    async def run_intents(self, intents: Sequence[Intent]) -> BatchReport:
        return await self._sequencer(self.execute).run(intents)

    def _sequencer(self, runner: Callable[[Any], Awaitable[Any]]) -> BatchSequencer:
        return BatchSequencer(
            runner,
            delay_ms=self.config.batch.delay_ms,
            sleep=self._sleep,
        )

    def _max_results(self, max_results: int | None) -> int:
        if max_results is None:
            return self.config.search.default_max_results
        return max_results

    async def execute(self, intent: Intent) -> Any:
        """Run one intent through the full pipeline."""
        if isinstance(intent, SearchIntent):
            return await self._search(intent, None)
        if isinstance(intent, ScrapeIntent):
            return await self._scrape(intent)
        if isinstance(intent, ScreenshotIntent):
            return await self._screenshot(intent)
        raise ValidationError(f"unsupported intent: {type(intent).__name__}")

    async def dispatch(self, action: str, data: Mapping[str, Any] | None) -> dict[str, Any]:
        """Webhook-style entry point keyed by action name."""
        if action not in DISPATCH_ACTIONS:
            raise ValidationError(f"invalid action '{action}', expected one of {DISPATCH_ACTIONS}")
        data = data or {}
        options = data.get("options") or {}

        if action == "google_search":
            entries = await self.search(
                data.get("query", ""),
                max_results=options.get("maxResults"),
                filters=options.get("filters"),
            )
            result: Any = [entry.to_dict() for entry in entries]
        elif action == "scrape_url":
            result = await self.scrape(
                data.get("url", ""),
                data.get("selectors"),
                timeout_ms=options.get("timeout", DEFAULT_SCRAPE_TIMEOUT_MS),
            )
        else:
            image = await self.screenshot(
                data.get("url", ""),
                format=options.get("type", "png"),
                quality=options.get("quality", 80),
                full_page=bool(options.get("fullPage", False)),
                timeout_ms=options.get("timeout", DEFAULT_SCREENSHOT_TIMEOUT_MS),
            )
            result = base64.b64encode(image).decode("ascii")

        return {"success": True, "action": action, "result": result, "timestamp": now_iso()}

    async def search_response(self, query: str, **kwargs: Any) -> SearchResponse:
        return SearchResponse(query=query, results=await self.search(query, **kwargs))

    async def scrape_response(self, url: str, selectors: Mapping[str, Any] | None = None, **kwargs: Any) -> ScrapeResponse:
        return ScrapeResponse(url=url, data=await self.scrape(url, selectors, **kwargs))

    async def _search(self, intent: SearchIntent, filters: SearchFilters | None) -> list[SearchEntry]:
        logger.info("Performing search for: {!r}", intent.query)
        program = self.templates().search_program(intent)
        raw = await self.client.submit(program, self.config.remote.function_timeout_ms)
        if not isinstance(raw, list):
            raise ExecutionError(
                ExecutionError.INVALID_RESPONSE,
                f"search program returned {type(raw).__name__}, expected a list",
            )
        entries = normalize_search(raw, filters)
        logger.debug("Search {!r}: {} raw, {} kept", intent.query, len(raw), len(entries))
        return entries

    async def _scrape(self, intent: ScrapeIntent) -> dict[str, str | list[str] | None]:
        self._check_url(intent.url)
        logger.info("Scraping URL: {}", intent.url)
        program = self.templates().scrape_program(intent)
        raw = await self.client.submit(program, intent.timeout_ms)
        return normalize_scrape(raw, intent.selector_map)

    async def _screenshot(self, intent: ScreenshotIntent) -> bytes:
        self._check_url(intent.url)
        logger.info("Taking screenshot of: {}", intent.url)
        image = await self.client.call(self.templates().screenshot_call(intent))
        if not isinstance(image, (bytes, bytearray)) or not image:
            raise ExecutionError(
                ExecutionError.INVALID_RESPONSE,
                "screenshot capability returned an empty body",
            )
        return bytes(image)

    def _check_url(self, url: str) -> None:
        ok, error = validate_target_url(
            url,
            allow_private_network=self.config.scrape.allow_private_network,
        )
        if not ok:
            raise ValidationError(error)


def _coerce_filters(filters: SearchFilters | Mapping[str, Any] | None) -> SearchFilters | None:
    if filters is None or isinstance(filters, SearchFilters):
        return filters
    return SearchFilters.from_dict(filters)
