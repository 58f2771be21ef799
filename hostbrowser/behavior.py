"""Randomized but bounded timing and pointer paths that resemble human input."""

from __future__ import annotations

import random
from dataclasses import dataclass

TYPING_DELAY_MS = (100, 300)
POINTER_STEPS = (20, 30)
POINTER_JITTER = 2.0
POINTER_DELAY_MS = (10, 40)
SCROLL_PAUSE_MS = (800, 1800)


@dataclass(frozen=True, slots=True)
class PointerStep:
    """One intermediate pointer position and the pause after moving there."""

    x: float
    y: float
    delay_ms: float

    def to_dict(self) -> dict[str, float]:
        return {"x": round(self.x, 2), "y": round(self.y, 2), "delayMs": round(self.delay_ms, 1)}


class HumanBehavior:
    """Draws human-looking delays and pointer paths from an injected random source.

    Given the same seeded ``random.Random`` the output is fully reproducible.
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng if rng is not None else random.Random()

    @classmethod
    def seeded(cls, seed: int | None) -> "HumanBehavior":
        return cls(random.Random(seed))

    def typing_delay(self) -> float:
        """Delay after one typed character, in [100, 300) ms."""
        low, high = TYPING_DELAY_MS
        return low + self.rng.random() * (high - low)

    def typing_delays(self, text: str) -> list[float]:
        """One typing delay per character of ``text``."""
        return [self.typing_delay() for _ in text]

    def scroll_pause(self) -> float:
        """Reading pause after a scroll step, in [800, 1800) ms."""
        low, high = SCROLL_PAUSE_MS
        return low + self.rng.random() * (high - low)

    def pointer_path(
        self,
        start: tuple[float, float],
        end: tuple[float, float],
    ) -> list[PointerStep]:
        """Linear path from ``start`` toward ``end`` with small positive jitter.

        The step count is drawn from [20, 30); point ``i`` sits at fraction
        ``i / steps`` of the way, so the path stops just short of ``end``.
        """
        steps = self.rng.randrange(*POINTER_STEPS)
        x0, y0 = start
        x1, y1 = end
        low, high = POINTER_DELAY_MS

        path: list[PointerStep] = []
        for i in range(steps):
            x = x0 + (x1 - x0) * i / steps + self.rng.random() * POINTER_JITTER
            y = y0 + (y1 - y0) * i / steps + self.rng.random() * POINTER_JITTER
            delay = low + self.rng.random() * (high - low)
            path.append(PointerStep(x=x, y=y, delay_ms=delay))
        return path
