"""Turns intents into remote programs or capability calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from hostbrowser.behavior import HumanBehavior
from hostbrowser.config.schema import ScrapeConfig, SearchConfig
from hostbrowser.intents import Intent, ScrapeIntent, ScreenshotIntent, SearchIntent
from hostbrowser.program import steps
from hostbrowser.program.steps import Program

POINTER_ORIGIN = (0.0, 0.0)
POINTER_TARGET = (200.0, 200.0)
PRE_SUBMIT_PAUSE_MS = 1500
SCROLL_STEPS = 5
SCROLL_DY = 200


@dataclass(frozen=True, slots=True)
class CapabilityCall:
    """A built-in remote capability invoked directly rather than via a program."""

    name: str
    params: dict[str, Any] = field(default_factory=dict)
    timeout_ms: int = 30000


class ScriptTemplateEngine:
    """Builds the program for each intent kind."""

    def __init__(
        self,
        behavior: HumanBehavior | None = None,
        search_config: SearchConfig | None = None,
        scrape_config: ScrapeConfig | None = None,
    ):
        self.behavior = behavior or HumanBehavior()
        self.search_config = search_config or SearchConfig()
        self.scrape_config = scrape_config or ScrapeConfig()

    def build(self, intent: Intent) -> Program | CapabilityCall:
        if isinstance(intent, SearchIntent):
            return self.search_program(intent)
        if isinstance(intent, ScrapeIntent):
            return self.scrape_program(intent)
        if isinstance(intent, ScreenshotIntent):
            return self.screenshot_call(intent)
        raise TypeError(f"unsupported intent: {type(intent).__name__}")

    def search_program(self, intent: SearchIntent) -> Program:
        cfg = self.search_config
        limit = min(intent.max_results, cfg.max_results_limit)
        query = intent.query

        program = Program(kind="search")
        program.add(steps.goto(cfg.engine_url, wait_until="domcontentloaded"))
        program.add(steps.move(self.behavior.pointer_path(POINTER_ORIGIN, POINTER_TARGET)))
        program.add(steps.type_text(cfg.input_selector, query, self.behavior.typing_delays(query)))
        program.add(steps.sleep(PRE_SUBMIT_PAUSE_MS))
        program.add(steps.press("Enter"))
        for _ in range(SCROLL_STEPS):
            program.add(steps.scroll(SCROLL_DY))
            program.add(steps.sleep(self.behavior.scroll_pause()))
        program.add(steps.wait_for(cfg.result_selector))
        program.add(steps.collect(cfg.result_selector, limit))
        return program

    def scrape_program(self, intent: ScrapeIntent) -> Program:
        cfg = self.scrape_config
        program = Program(kind="scrape")
        program.add(
            steps.goto(
                intent.url,
                wait_until="domcontentloaded",
                timeout_ms=cfg.navigation_timeout_ms,
            )
        )
        program.add(steps.sleep(cfg.settle_ms))
        program.add(
            steps.extract({name: spec.to_dict() for name, spec in intent.selectors})
        )
        return program

    def screenshot_call(self, intent: ScreenshotIntent) -> CapabilityCall:
        options: dict[str, Any] = {
            "fullPage": intent.full_page,
            "type": intent.format,
        }
        # png is lossless; the remote host rejects a quality option for it.
        if intent.format != "png":
            options["quality"] = intent.quality
        return CapabilityCall(
            name="screenshot",
            params={"url": intent.url, "options": options},
            timeout_ms=intent.timeout_ms,
        )
