"""Cleans and validates raw results returned by the remote host."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from hostbrowser.intents import FieldSelector, SearchFilters


@dataclass(frozen=True, slots=True)
class SearchEntry:
    """Normalized search result item."""

    title: str
    link: str | None
    domain: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "link": self.link, "domain": self.domain}


def derive_domain(link: Any) -> str | None:
    """Host component of ``link``, or None when absent or unparsable."""
    if not isinstance(link, str) or not link.strip():
        return None
    try:
        host = urlsplit(link.strip()).hostname
    except ValueError:
        return None
    return host or None


def normalize_search(raw: Any, filters: SearchFilters | None = None) -> list[SearchEntry]:
    """Trim titles, drop empty entries, derive domains and apply exclusions."""
    if not isinstance(raw, list):
        return []

    excluded = filters.exclude_domains if filters else frozenset()
    entries: list[SearchEntry] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        title = item.get("title")
        if not isinstance(title, str) or not title.strip():
            continue
        link = item.get("link")
        if not isinstance(link, str) or not link.strip():
            link = None
        domain = derive_domain(link)
        if domain is not None and domain in excluded:
            continue
        entries.append(SearchEntry(title=title.strip(), link=link, domain=domain))
    return entries


def normalize_scrape(
    raw: Any,
    selectors: Mapping[str, FieldSelector],
) -> dict[str, str | list[str] | None]:
    """One entry per declared field; anything missing or malformed becomes None."""
    source = raw if isinstance(raw, Mapping) else {}
    data: dict[str, str | list[str] | None] = {}
    for name, spec in selectors.items():
        data[name] = _clean_value(source.get(name), spec.multiple)
    return data


def _clean_value(value: Any, multiple: bool) -> str | list[str] | None:
    if value is None:
        return None
    if multiple:
        if not isinstance(value, list):
            return None
        return [item.strip() for item in value if isinstance(item, str)]
    if isinstance(value, str):
        return value.strip()
    return None
