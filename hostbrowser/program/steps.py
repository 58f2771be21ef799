"""Structured automation programs interpreted by the remote shim."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from typing import Any

from hostbrowser.behavior import PointerStep

SUPPORTED_STEPS = (
    "goto",
    "move",
    "type",
    "sleep",
    "press",
    "scroll",
    "wait_for",
    "collect",
    "extract",
)
SUPPORTED_WAIT_UNTIL = ("domcontentloaded", "load", "networkidle0", "networkidle2")
RESULT_STEPS = ("collect", "extract")


@dataclass(slots=True)
class Program:
    """Ordered step list plus the kind of result its final step yields."""

    kind: str
    steps: list[dict[str, Any]] = field(default_factory=list)

    def add(self, step: dict[str, Any]) -> "Program":
        self.steps.append(step)
        return self

    def to_context(self) -> dict[str, Any]:
        return {"kind": self.kind, "steps": self.steps}

    def to_json(self) -> str:
        return json.dumps(self.to_context(), ensure_ascii=False)

    def total_sleep_ms(self) -> float:
        """Sum of every pause encoded in the program."""
        total = 0.0
        for step in self.steps:
            step_type = step["type"]
            if step_type == "sleep":
                total += step["ms"]
            elif step_type == "move":
                total += sum(point["delayMs"] for point in step["path"])
            elif step_type == "type":
                total += sum(step["delaysMs"])
        return total


@lru_cache(maxsize=1)
def load_shim() -> str:
    """Source of the fixed interpreter program sent to the remote host."""
    return resources.files("hostbrowser.program").joinpath("shim.js").read_text(encoding="utf-8")


def goto(url: str, *, wait_until: str = "domcontentloaded", timeout_ms: int | None = None) -> dict[str, Any]:
    step: dict[str, Any] = {"type": "goto", "url": url, "waitUntil": wait_until}
    if timeout_ms is not None:
        step["timeoutMs"] = timeout_ms
    return step


def move(path: list[PointerStep]) -> dict[str, Any]:
    return {"type": "move", "path": [point.to_dict() for point in path]}


def type_text(selector: str, text: str, delays_ms: list[float]) -> dict[str, Any]:
    return {
        "type": "type",
        "selector": selector,
        "text": text,
        "delaysMs": [round(delay, 1) for delay in delays_ms],
    }


def sleep(ms: float) -> dict[str, Any]:
    return {"type": "sleep", "ms": round(ms, 1)}


def press(key: str) -> dict[str, Any]:
    return {"type": "press", "key": key}


def scroll(dy: int) -> dict[str, Any]:
    return {"type": "scroll", "dy": dy}


def wait_for(selector: str, *, timeout_ms: int | None = None) -> dict[str, Any]:
    step: dict[str, Any] = {"type": "wait_for", "selector": selector}
    if timeout_ms is not None:
        step["timeoutMs"] = timeout_ms
    return step


def collect(selector: str, limit: int) -> dict[str, Any]:
    return {"type": "collect", "selector": selector, "limit": limit}


def extract(fields: dict[str, dict[str, Any]]) -> dict[str, Any]:
    return {"type": "extract", "fields": fields}


def validate_program(program: Program) -> None:
    """Reject step lists the remote shim would not understand."""
    if not program.steps:
        raise ValueError("program must contain at least one step")

    for index, step in enumerate(program.steps, start=1):
        if not isinstance(step, dict):
            raise ValueError(f"step #{index} must be an object")

        step_type = step.get("type")
        if step_type not in SUPPORTED_STEPS:
            raise ValueError(
                f"step #{index}: unsupported type '{step_type}', expected {SUPPORTED_STEPS}"
            )

        if step_type == "goto":
            if not isinstance(step.get("url"), str) or not step["url"]:
                raise ValueError(f"step #{index}: goto requires non-empty url")
            if step.get("waitUntil") not in SUPPORTED_WAIT_UNTIL:
                raise ValueError(
                    f"step #{index}: waitUntil must be one of {SUPPORTED_WAIT_UNTIL}"
                )

        if step_type in {"type", "wait_for", "collect"}:
            selector = step.get("selector")
            if not isinstance(selector, str) or not selector:
                raise ValueError(f"step #{index}: {step_type} requires selector")

        if step_type == "type":
            text = step.get("text")
            if not isinstance(text, str):
                raise ValueError(f"step #{index}: type requires text")
            if len(step.get("delaysMs", [])) != len(text):
                raise ValueError(f"step #{index}: type requires one delay per character")

        if step_type == "sleep" and step.get("ms", -1) < 0:
            raise ValueError(f"step #{index}: sleep requires ms >= 0")

        if step_type == "collect" and int(step.get("limit", 0)) < 1:
            raise ValueError(f"step #{index}: collect requires limit >= 1")

    if program.steps[-1]["type"] not in RESULT_STEPS:
        raise ValueError(f"program must end with one of {RESULT_STEPS}")
