"""Response envelopes handed to the calling API layer."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from hostbrowser.normalize import SearchEntry

_CONTENT_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}


def now_iso() -> str:
    """Current UTC time in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def content_type_for(image_format: str) -> str:
    return _CONTENT_TYPES.get(image_format, "application/octet-stream")


def screenshot_filename(image_format: str, *, now_ms: int | None = None) -> str:
    """Attachment name in the form ``screenshot-<epoch ms>.<ext>``."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    ext = "jpg" if image_format == "jpeg" else image_format
    return f"screenshot-{stamp}.{ext}"


@dataclass(slots=True)
class SearchResponse:
    query: str
    results: list[SearchEntry] = field(default_factory=list)
    timestamp: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "query": self.query,
            "resultsCount": len(self.results),
            "results": [entry.to_dict() for entry in self.results],
            "timestamp": self.timestamp,
        }


@dataclass(slots=True)
class ScrapeResponse:
    url: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "url": self.url,
            "data": self.data,
            "timestamp": self.timestamp,
        }
