"""SSRF protection: validate user-supplied book links before fetching them."""

from __future__ import annotations

import asyncio
import ipaddress
import socket
from urllib.parse import urlparse

from booklog.config import allow_private_urls


class UnsafeURLError(ValueError):
    """Raised when a URL fails SSRF validation."""


def validate_public_url(url: str) -> None:
    """Validate a link for SSRF safety.

    Rules:
    - Scheme must be http or https.
    - Private/reserved IPs are blocked unless ALLOW_PRIVATE_URLS is set.
    """
    parsed = urlparse(url)

    if parsed.scheme not in {"https", "http"}:
        raise UnsafeURLError(f"URL scheme must be http or https, got '{parsed.scheme}'")

    hostname = parsed.hostname
    if not hostname:
        raise UnsafeURLError("URL has no hostname")

    if allow_private_urls():
        return

    try:
        addr_infos = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except socket.gaierror:
        raise UnsafeURLError(f"Cannot resolve hostname: {hostname}")

    for family, _, _, _, sockaddr in addr_infos:
        ip_str = sockaddr[0]
        try:
            addr = ipaddress.ip_address(ip_str)
        except ValueError:
            continue

        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            raise UnsafeURLError(
                f"URL resolves to private/reserved address ({ip_str}); blocked"
            )


async def check_public_url(url: str) -> None:
    """Run validate_public_url in a worker thread (hostname lookup blocks)."""
    loop = asyncio.get_event_loop()
    await loop.run_in_executor(None, validate_public_url, url)
