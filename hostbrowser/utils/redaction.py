"""Utilities for redacting credentials from log lines and error messages."""

from __future__ import annotations

import re
from typing import Iterable


class SensitiveOutputRedactor:
    """Redact remote host tokens and other secrets from text."""

    SECRET_PLACEHOLDER = "[REDACTED_SECRET]"

    _QUERY_TOKEN_RE = re.compile(r"(?i)([?&](?:token|api[_-]?key|key)=)(?!\[REDACTED_)([^&#\s\"'`]+)")
    _KV_SECRET_RE = re.compile(
        r'(?i)(["\']?(?:api[_-]?key|token|secret|password|authorization)["\']?\s*[:=]\s*["\']?)(?!\[REDACTED_)([^"\'\s,}\]&]+)'
    )
    _BEARER_RE = re.compile(r"(?i)\bBearer\s+[A-Za-z0-9._~+/=\-]{8,}\b")

    def __init__(self, enabled: bool = True, extra_secrets: Iterable[str] | None = None):
        self.enabled = enabled
        self._literal_secrets: set[str] = set()
        self._add_extra_secrets(extra_secrets)

    def redact(self, text: str) -> str:
        """Redact sensitive values from text."""
        if not self.enabled or not text:
            return text

        sanitized = self._replace_literals(text, self._literal_secrets, self.SECRET_PLACEHOLDER)
        sanitized = self._QUERY_TOKEN_RE.sub(rf"\1{self.SECRET_PLACEHOLDER}", sanitized)
        sanitized = self._KV_SECRET_RE.sub(rf"\1{self.SECRET_PLACEHOLDER}", sanitized)
        sanitized = self._BEARER_RE.sub(f"Bearer {self.SECRET_PLACEHOLDER}", sanitized)
        return sanitized

    def _add_extra_secrets(self, values: Iterable[str] | None) -> None:
        if not values:
            return
        for raw in values:
            if not raw:
                continue
            value = str(raw).strip()
            if len(value) >= 6:
                self._literal_secrets.add(value)

    @staticmethod
    def _replace_literals(text: str, values: Iterable[str], placeholder: str) -> str:
        sanitized = text
        for value in sorted(set(values), key=len, reverse=True):
            sanitized = sanitized.replace(value, placeholder)
        return sanitized
