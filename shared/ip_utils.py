"""
Client IP resolution for FastAPI requests.

Takes an explicit ``Request`` parameter so the function is testable without
a running server.
"""

from __future__ import annotations

import ipaddress

from fastapi import Request


def get_client_ip(request: Request) -> str:
    """Extract the real client IP from a FastAPI ``Request``.

    Checks proxy headers in priority order before falling back to the
    direct connection address:

    1. ``CF-Connecting-IP`` — Cloudflare
    2. ``True-Client-IP`` — Akamai and others
    3. ``X-Forwarded-For`` — standard proxy header (first IP in list)
    4. ``X-Real-IP`` — nginx / other reverse proxies

    Returns:
        The resolved client IP string, or ``""`` if none can be found.
    """
    headers_to_check: list[str] = [
        "CF-Connecting-IP",
        "True-Client-IP",
        "X-Forwarded-For",
        "X-Real-IP",
    ]

    for header in headers_to_check:
        ip_value: str | None = request.headers.get(header)
        if ip_value:
            client_ip: str = ip_value.split(",")[0].strip()
            if client_ip:
                return client_ip

    return request.client.host if request.client else ""


def is_loopback(address: str) -> bool:
    """True for 127.0.0.0/8, ::1 and IPv4-mapped loopback (``::ffff:127.0.0.1``)."""
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    mapped = getattr(ip, "ipv4_mapped", None)
    if mapped is not None:
        ip = mapped
    return ip.is_loopback


def resolve_lookup_address(address: str, loopback_fallback: str) -> str:
    """Return the address to geolocate, swapping loopback callers for *loopback_fallback*."""
    if not address or is_loopback(address):
        return loopback_fallback
    return address
