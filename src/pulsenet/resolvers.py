"""
Built-in resolver set and resolver address parsing.

The DNS test always probes the public resolvers below, followed by any
caller-supplied addresses.
"""

import ipaddress
from typing import Iterable, Optional

from .errors import InvalidServerAddress
from .models import ResolverConfig


# Order matters: results are reported in this order.
BUILTIN_RESOLVERS: list[ResolverConfig] = [
    ResolverConfig(name="Google", ip="8.8.8.8", description="Google Public DNS"),
    ResolverConfig(name="Google Secondary", ip="8.8.4.4", description="Google Public DNS secondary"),
    ResolverConfig(name="Cloudflare", ip="1.1.1.1", description="Cloudflare's privacy-focused DNS resolver"),
    ResolverConfig(name="Cloudflare Secondary", ip="1.0.0.1", description="Cloudflare's secondary DNS resolver"),
    ResolverConfig(name="Quad9", ip="9.9.9.9", description="Quad9 with malware blocking"),
    ResolverConfig(name="Quad9 Secondary", ip="149.112.112.112", description="Quad9 secondary resolver"),
    ResolverConfig(name="OpenDNS", ip="208.67.222.222", description="Cisco OpenDNS"),
    ResolverConfig(name="OpenDNS Secondary", ip="208.67.220.220", description="Cisco OpenDNS secondary"),
]

DEFAULT_PORT = 53


def builtin_addresses() -> list[str]:
    """Built-in resolver addresses as strings, in probe order."""
    return [resolver.address for resolver in BUILTIN_RESOLVERS]


def _builtin_name(address: str) -> Optional[str]:
    for resolver in BUILTIN_RESOLVERS:
        if resolver.address == address:
            return resolver.name
    return None


def parse_resolver_address(text: str) -> ResolverConfig:
    """
    Parse ``ip``, ``ip:port`` or ``[ipv6]:port`` into a resolver config.

    Raises:
        InvalidServerAddress: if the text is not an IP with an optional port
    """
    value = text.strip()
    if not value:
        raise InvalidServerAddress(f"Empty resolver address: {text!r}")

    host, port = value, DEFAULT_PORT
    if value.startswith("["):
        # [v6]:port
        closing = value.find("]")
        if closing == -1 or not value[closing + 1:].startswith(":"):
            raise InvalidServerAddress(f"Malformed resolver address: {text!r}")
        host = value[1:closing]
        port = _parse_port(value[closing + 2:], text)
        try:
            ip = ipaddress.IPv6Address(host)
        except ValueError:
            raise InvalidServerAddress(f"Malformed resolver address: {text!r}") from None
    elif value.count(":") == 1:
        # v4:port
        host, port_text = value.split(":")
        port = _parse_port(port_text, text)
        try:
            ip = ipaddress.IPv4Address(host)
        except ValueError:
            raise InvalidServerAddress(f"Malformed resolver address: {text!r}") from None
    else:
        try:
            ip = ipaddress.ip_address(host)
        except ValueError:
            raise InvalidServerAddress(f"Malformed resolver address: {text!r}") from None

    return ResolverConfig(
        name=_builtin_name(value) or "Custom",
        ip=str(ip),
        port=port,
        description=f"Resolver at {value}",
    )


def _parse_port(port_text: str, original: str) -> int:
    if not port_text.isascii() or not port_text.isdigit():
        raise InvalidServerAddress(f"Malformed resolver port: {original!r}")
    port = int(port_text)
    if port > 65535:
        raise InvalidServerAddress(f"Resolver port out of range: {original!r}")
    return port


def build_resolver_set(custom_servers: Optional[Iterable[str]] = None) -> list[str]:
    """
    Effective resolver list for a DNS test.

    Built-ins first, then custom entries. Custom entries are trimmed,
    blank ones skipped, and duplicates removed by exact string match
    (``"1.1.1.1"`` and ``"1.1.1.1:53"`` are distinct entries).
    """
    servers = builtin_addresses()
    for server in custom_servers or ():
        normalized = str(server).strip()
        if not normalized:
            continue
        if normalized not in servers:
            servers.append(normalized)
    return servers
