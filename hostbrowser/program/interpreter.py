"""Local reference interpreter for programs.

Runs the same step semantics as ``shim.js`` against any object exposing the
async page API (``goto``, ``evaluate``, ``mouse``, ``keyboard``,
``wait_for_selector``, ``query_selector``/``query_selector_all``). Useful for
dry runs against a local page and as the executable definition of each step.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from hostbrowser.errors import ExtractionError
from hostbrowser.program.steps import RESULT_STEPS, Program, validate_program

_WAIT_UNTIL_ALIASES = {
    "networkidle0": "networkidle",
    "networkidle2": "networkidle",
}
_CLOSEST_ANCHOR_JS = "el => { const a = el.closest('a'); return a ? a.href : null; }"
_SCROLL_JS = "dy => window.scrollBy(0, dy)"


class ProgramInterpreter:
    """Execute a program step by step against a page object."""

    def __init__(self, page: Any, *, honor_delays: bool = True, default_timeout_ms: int = 30000):
        self.page = page
        self.honor_delays = honor_delays
        self.default_timeout_ms = default_timeout_ms

    async def run(self, program: Program) -> Any:
        validate_program(program)
        result: Any = None
        for step in program.steps:
            value = await self._execute_step(step)
            if step["type"] in RESULT_STEPS:
                result = value
        return result

    async def _pause(self, ms: float) -> None:
        if self.honor_delays and ms > 0:
            await self.page.wait_for_timeout(ms)

    async def _execute_step(self, step: dict[str, Any]) -> Any:
        step_type = step["type"]
        timeout_ms = int(step.get("timeoutMs") or self.default_timeout_ms)

        if step_type == "goto":
            wait_until = step.get("waitUntil") or "domcontentloaded"
            await self.page.goto(
                step["url"],
                wait_until=_WAIT_UNTIL_ALIASES.get(wait_until, wait_until),
                timeout=timeout_ms,
            )
            return None

        if step_type == "move":
            for point in step["path"]:
                await self.page.mouse.move(point["x"], point["y"])
                await self._pause(point["delayMs"])
            return None

        if step_type == "type":
            await self.page.focus(step["selector"])
            for char, delay in zip(step["text"], step["delaysMs"]):
                await self.page.keyboard.type(char)
                await self._pause(delay)
            return None

        if step_type == "sleep":
            await self._pause(step["ms"])
            return None

        if step_type == "press":
            await self.page.keyboard.press(step["key"])
            return None

        if step_type == "scroll":
            await self.page.evaluate(_SCROLL_JS, step["dy"])
            return None

        if step_type == "wait_for":
            await self.page.wait_for_selector(step["selector"], timeout=timeout_ms)
            return None

        if step_type == "collect":
            return await self._collect(step["selector"], int(step["limit"]))

        if step_type == "extract":
            return {
                name: await self._extract_or_none(name, spec)
                for name, spec in step["fields"].items()
            }

        raise RuntimeError(f"Unsupported step type: {step_type}")

    async def _collect(self, selector: str, limit: int) -> list[dict[str, Any]]:
        elements = await self.page.query_selector_all(selector)
        entries: list[dict[str, Any]] = []
        for element in elements[:limit]:
            title = await element.inner_text()
            link = await element.evaluate(_CLOSEST_ANCHOR_JS)
            entries.append({"title": title, "link": link})
        return entries

    async def _extract_or_none(self, name: str, spec: dict[str, Any]) -> Any:
        try:
            return await self._extract(name, spec)
        except Exception as e:
            logger.debug("Field {} extracted as null: {}", name, e)
            return None

    async def _extract(self, name: str, spec: dict[str, Any]) -> Any:
        selector = spec.get("selector")
        if not selector:
            raise ExtractionError(name, "no usable selector")

        if spec.get("multiple"):
            elements = await self.page.query_selector_all(selector)
            return [await element.inner_text() for element in elements]

        element = await self.page.query_selector(selector)
        if element is None:
            return None
        return await element.inner_text()
