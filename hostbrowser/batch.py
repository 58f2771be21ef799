"""Serial batch execution with a fixed inter-item delay."""

from __future__ import annotations

import asyncio
import base64
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar, Union

from loguru import logger

from hostbrowser.errors import ExecutionError
from hostbrowser.intents import Intent, ScrapeIntent, ScreenshotIntent, SearchIntent

T = TypeVar("T")

DEFAULT_DELAY_MS = 2000


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    result: T


@dataclass(frozen=True, slots=True)
class Failure:
    reason: str
    cause: str = "error"


Outcome = Union[Success[Any], Failure]


@dataclass(frozen=True, slots=True)
class BatchItem:
    """Outcome of one batch entry.

    ``intent`` is whatever was handed to the sequencer: an intent, or the raw
    query a search intent is built from.
    """

    index: int
    intent: Intent | str
    outcome: Outcome
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Success)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"index": self.index, **_describe_intent(self.intent)}
        payload["success"] = self.ok
        if isinstance(self.outcome, Success):
            payload["results"] = _jsonable(self.outcome.result)
        else:
            payload["error"] = self.outcome.reason
            payload["cause"] = self.outcome.cause
        payload["elapsedMs"] = self.elapsed_ms
        return payload


@dataclass(slots=True)
class BatchReport:
    """Index-aligned batch outcomes plus aggregate counts."""

    items: list[BatchItem] = field(default_factory=list)
    finished_at: str = ""

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.ok)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [item.to_dict() for item in self.items],
            "timestamp": self.finished_at,
        }


class BatchSequencer:
    """Run intents strictly one at a time, pausing ``delay_ms`` between them.

    Each item's failure is captured in its own outcome and never stops the
    remaining items. No retries.
    """

    def __init__(
        self,
        runner: Callable[[Any], Awaitable[Any]],
        *,
        delay_ms: int = DEFAULT_DELAY_MS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self.runner = runner
        self.delay_ms = delay_ms
        self._sleep = sleep
        self._clock = clock

    async def run(self, intents: Sequence[Intent | str]) -> BatchReport:
        report = BatchReport()
        count = len(intents)
        logger.info("Processing batch of {} intents", count)

        for index, intent in enumerate(intents):
            report.items.append(await self._run_one(index, intent))
            if index < count - 1 and self.delay_ms > 0:
                await self._sleep(self.delay_ms / 1000)

        report.finished_at = datetime.now(timezone.utc).isoformat()
        logger.info(
            "Batch finished: {} total, {} succeeded, {} failed",
            report.total,
            report.succeeded,
            report.failed,
        )
        return report

    async def _run_one(self, index: int, intent: Intent | str) -> BatchItem:
        started = self._clock()
        try:
            result = await self.runner(intent)
            outcome: Outcome = Success(result)
        except ExecutionError as e:
            logger.warning("Batch item {} failed ({}): {}", index, e.cause, e)
            outcome = Failure(reason=str(e), cause=e.cause)
        except Exception as e:
            logger.warning("Batch item {} failed: {}", index, e)
            outcome = Failure(reason=str(e) or type(e).__name__, cause=type(e).__name__)
        elapsed_ms = int((self._clock() - started) * 1000)
        return BatchItem(index=index, intent=intent, outcome=outcome, elapsed_ms=elapsed_ms)


def _describe_intent(intent: Intent | str) -> dict[str, Any]:
    if isinstance(intent, str):
        return {"query": intent}
    if isinstance(intent, SearchIntent):
        return {"query": intent.query}
    if isinstance(intent, (ScrapeIntent, ScreenshotIntent)):
        return {"url": intent.url}
    return {}


def _jsonable(value: Any) -> Any:
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value
