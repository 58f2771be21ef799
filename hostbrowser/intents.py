"""Structured descriptions of one browser-automation task."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, Union

from hostbrowser.errors import ValidationError

ImageFormat = Literal["png", "jpeg", "webp"]
IMAGE_FORMATS: tuple[str, ...] = ("png", "jpeg", "webp")

DEFAULT_MAX_RESULTS = 5
DEFAULT_SCRAPE_TIMEOUT_MS = 30000
DEFAULT_SCREENSHOT_TIMEOUT_MS = 30000


@dataclass(frozen=True, slots=True)
class FieldSelector:
    """One entry of a selector map.

    ``selector`` is None when the caller supplied something unusable; such a
    field always extracts to None instead of failing the whole request.
    """

    selector: str | None
    multiple: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"selector": self.selector, "multiple": self.multiple}


@dataclass(frozen=True, slots=True)
class SearchFilters:
    """Caller-supplied exclusion filters for search results."""

    exclude_domains: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "exclude_domains",
            frozenset(
                str(domain).strip().lower() for domain in self.exclude_domains if str(domain).strip()
            ),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "SearchFilters":
        if not data:
            return cls()
        raw = data.get("excludeDomains", data.get("exclude_domains")) or ()
        if isinstance(raw, str):
            raw = (raw,)
        return cls(exclude_domains=frozenset(raw))


@dataclass(frozen=True, slots=True)
class SearchIntent:
    query: str
    max_results: int = DEFAULT_MAX_RESULTS

    def __post_init__(self) -> None:
        if not isinstance(self.query, str) or not self.query.strip():
            raise ValidationError("query parameter is required")
        if isinstance(self.max_results, bool) or not isinstance(self.max_results, int):
            raise ValidationError("maxResults must be an integer")
        if self.max_results < 1:
            raise ValidationError("maxResults must be >= 1")


@dataclass(frozen=True, slots=True)
class ScrapeIntent:
    url: str
    selectors: tuple[tuple[str, FieldSelector], ...] = ()
    timeout_ms: int = DEFAULT_SCRAPE_TIMEOUT_MS

    def __post_init__(self) -> None:
        if not isinstance(self.url, str) or not self.url.strip():
            raise ValidationError("url parameter is required")
        _check_timeout(self.timeout_ms)

    @classmethod
    def create(
        cls,
        url: str,
        selectors: Mapping[str, Any] | None = None,
        *,
        timeout_ms: int = DEFAULT_SCRAPE_TIMEOUT_MS,
    ) -> "ScrapeIntent":
        parsed = parse_selector_spec(selectors)
        return cls(url=url, selectors=tuple(parsed.items()), timeout_ms=timeout_ms)

    @property
    def selector_map(self) -> dict[str, FieldSelector]:
        return dict(self.selectors)


@dataclass(frozen=True, slots=True)
class ScreenshotIntent:
    url: str
    format: ImageFormat = "png"
    quality: int = 80
    full_page: bool = False
    timeout_ms: int = DEFAULT_SCREENSHOT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if not isinstance(self.url, str) or not self.url.strip():
            raise ValidationError("url parameter is required")
        if self.format not in IMAGE_FORMATS:
            raise ValidationError(f"format must be one of {IMAGE_FORMATS}")
        if isinstance(self.quality, bool) or not isinstance(self.quality, int):
            raise ValidationError("quality must be an integer")
        if self.quality < 0 or self.quality > 100:
            raise ValidationError("quality must be in [0, 100]")
        _check_timeout(self.timeout_ms)


Intent = Union[SearchIntent, ScrapeIntent, ScreenshotIntent]


def parse_selector_spec(raw: Mapping[str, Any] | None) -> dict[str, FieldSelector]:
    """Parse a caller selector map into field selectors.

    Accepts ``{"field": "css"}`` and ``{"field": {"selector": "css", "multiple": true}}``.
    Unusable descriptors become ``FieldSelector(None)`` rather than raising.
    """
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValidationError("selectors must be an object mapping field names to selectors")

    parsed: dict[str, FieldSelector] = {}
    for key, value in raw.items():
        if not isinstance(key, str) or not key:
            raise ValidationError("selector field names must be non-empty strings")
        parsed[key] = _parse_field_selector(value)
    return parsed


def _parse_field_selector(value: Any) -> FieldSelector:
    if isinstance(value, str):
        return FieldSelector(selector=value.strip() or None)
    if isinstance(value, Mapping):
        selector = value.get("selector")
        multiple = bool(value.get("multiple", False))
        if isinstance(selector, str) and selector.strip():
            return FieldSelector(selector=selector.strip(), multiple=multiple)
        return FieldSelector(selector=None, multiple=multiple)
    return FieldSelector(selector=None)


def _check_timeout(timeout_ms: Any) -> None:
    if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, int):
        raise ValidationError("timeoutMs must be an integer")
    if timeout_ms < 1000 or timeout_ms > 600000:
        raise ValidationError("timeoutMs must be in [1000, 600000]")
