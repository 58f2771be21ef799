"""Target URL validation for scrape and screenshot intents."""

from __future__ import annotations

import ipaddress
from urllib.parse import urlparse

_LOCAL_HOSTNAMES = {
    "localhost",
    "localhost.localdomain",
    "host.docker.internal",
}


def validate_target_url(url: str, *, allow_private_network: bool) -> tuple[bool, str]:
    """Validate a URL the remote browser will be asked to open."""
    if not isinstance(url, str) or not url.strip():
        return False, "URL is required"

    parsed = urlparse(url.strip())
    scheme = (parsed.scheme or "").lower()

    if scheme not in {"http", "https"}:
        return False, f"Only http/https URLs are allowed, got '{scheme or 'none'}'"

    try:
        host = parsed.hostname
    except ValueError:
        host = None
    if not host:
        return False, "URL host is required"

    if not allow_private_network and is_private_or_local_host(host):
        return False, f"Private/local host blocked: {host}"

    return True, ""


def is_private_or_local_host(host: str) -> bool:
    """Check whether a host is local/private based on hostname or literal IP."""
    normalized = host.rstrip(".").lower()

    if normalized in _LOCAL_HOSTNAMES or normalized.endswith(".local"):
        return True

    try:
        ip = ipaddress.ip_address(normalized)
    except ValueError:
        return False

    return (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_multicast
        or ip.is_unspecified
    )
