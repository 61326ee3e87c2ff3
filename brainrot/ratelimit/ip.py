"""Client IP extraction and hashing.

Proxy headers are consulted in a fixed priority order. The winning address
is validated, sanitized and hashed before it becomes a cache identity, so
raw client addresses never reach the cache.
"""

import hashlib
import ipaddress
import re
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_IP = "127.0.0.1"

# First header with a valid address wins
HEADER_PRIORITY: tuple[str, ...] = (
    "cf-connecting-ip",
    "x-real-ip",
    "x-forwarded-for",
    "x-remote-address",
    "remote-addr",
)

_IPV4_WITH_PORT = re.compile(r"^(\d{1,3}(?:\.\d{1,3}){3}):\d+$")
_UNSAFE_CHARS = re.compile(r"[^0-9a-fA-F:.]")

# RFC 1918, loopback and their IPv6 counterparts; documentation and CGNAT ranges count as public
PRIVATE_NETWORKS: tuple[ipaddress.IPv4Network | ipaddress.IPv6Network, ...] = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
)


@dataclass(frozen=True)
class ClientIP:
    """Result of IP extraction."""

    ip: str
    source: str
    is_private: bool


def is_valid_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def is_private_ip(value: str) -> bool:
    try:
        address = ipaddress.ip_address(value)
    except ValueError:
        return False
    return any(address in network for network in PRIVATE_NETWORKS)


def _parse_header_value(value: str) -> str:
    # x-forwarded-for lists the client first, then proxies
    candidate = value.split(",")[0].strip()
    match = _IPV4_WITH_PORT.match(candidate)
    if match:
        candidate = match.group(1)
    return candidate


def sanitize_ip(value: str | None) -> str:
    """Strip anything that cannot appear in an address; fall back to DEFAULT_IP."""
    if not value:
        return DEFAULT_IP
    sanitized = _UNSAFE_CHARS.sub("", value)
    return sanitized if is_valid_ip(sanitized) else DEFAULT_IP


def extract_client_ip(headers: Mapping[str, str], peer: str | None = None) -> ClientIP:
    """Resolve the client address from request headers.

    Args:
        headers: Request headers (case-insensitive mapping or lowercase keys)
        peer: Socket peer address, used when no header is usable

    Returns:
        ClientIP with the sanitized address and the header it came from
    """
    for header in HEADER_PRIORITY:
        raw = headers.get(header)
        if not raw:
            continue
        candidate = _parse_header_value(raw)
        if is_valid_ip(candidate):
            ip = sanitize_ip(candidate)
            return ClientIP(ip=ip, source=header, is_private=is_private_ip(ip))

    if peer and is_valid_ip(peer):
        ip = sanitize_ip(peer)
        return ClientIP(ip=ip, source="peer", is_private=is_private_ip(ip))

    return ClientIP(ip=DEFAULT_IP, source="default", is_private=True)


def hash_ip(ip: str, salt: str) -> str:
    """Stable pseudonymous identity for an address."""
    digest = hashlib.sha256(f"{salt}:{ip}".encode()).hexdigest()
    return digest[:32]
