"""
Per-resolver DNS prober.

Resolves a domain against exactly one resolver address over UDP, bounded
by an external timeout that matches the resolver's own lifetime so the
external bound always decides.
"""

import asyncio
import logging
import time

import dns.asyncresolver
import dns.exception

from .errors import InvalidDomain, InvalidServerAddress
from .models import DnsResult, ErrorKind, ResolverConfig
from .resolvers import parse_resolver_address


logger = logging.getLogger(__name__)


def sanitize_domain(raw: str) -> str:
    """
    Reduce user input such as ``https://example.com/path?q=1#frag`` to
    the bare host ``example.com``.

    The scheme is stripped, then the value is cut at the first ``/``,
    then ``?``, then ``#``.

    Raises:
        InvalidDomain: if nothing is left
    """
    value = raw.strip()
    for prefix in ("https://", "http://"):
        while value.startswith(prefix):
            value = value[len(prefix):]
    for delimiter in ("/", "?", "#"):
        value = value.split(delimiter, 1)[0]
    if not value.strip():
        raise InvalidDomain(f"Invalid domain: {raw!r}")
    return value


def _elapsed_ms(start_ns: int) -> int:
    return max(0, (time.perf_counter_ns() - start_ns) // 1_000_000)


class DNSProber:
    """
    Probes one resolver at a time.

    A fresh resolver is built per probe, scoped to a single nameserver,
    so no state is shared between concurrent probes.
    """

    def __init__(self, timeout_ms: int = 4000):
        """
        Initialize the prober.

        Args:
            timeout_ms: Bound for a single lookup, applied both to the
                resolver (timeout and lifetime) and as an external race
        """
        self.timeout_ms = timeout_ms

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000

    def _create_resolver(self, server: ResolverConfig) -> dns.asyncresolver.Resolver:
        """Create a resolver that only talks to ``server``."""
        resolver = dns.asyncresolver.Resolver(configure=False)
        # Port first: newer dnspython binds it when nameservers are assigned.
        resolver.port = server.port
        resolver.nameservers = [server.ip]
        resolver.timeout = self.timeout_s
        resolver.lifetime = self.timeout_s
        return resolver

    async def probe(self, domain: str, server: str) -> DnsResult:
        """
        Look up ``domain`` against the resolver written as ``server``.

        Args:
            domain: Already sanitized domain
            server: Resolver address string, ``ip[:port]``

        Returns:
            DnsResult; never raises
        """
        start = time.perf_counter_ns()

        try:
            resolver_config = parse_resolver_address(server)
        except InvalidServerAddress as e:
            logger.debug("Skipping unparsable resolver %r: %s", server, e)
            return DnsResult(
                server=server,
                status=False,
                response_time_ms=_elapsed_ms(start),
                error=ErrorKind.INVALID_SERVER.value,
                error_kind=ErrorKind.INVALID_SERVER,
            )

        resolver = self._create_resolver(resolver_config)

        try:
            await asyncio.wait_for(
                resolver.resolve_name(domain),
                timeout=self.timeout_s,
            )
        except (asyncio.TimeoutError, dns.exception.Timeout):
            logger.debug("Lookup of %s via %s timed out", domain, server)
            return DnsResult(
                server=server,
                status=False,
                response_time_ms=_elapsed_ms(start),
                error=ErrorKind.TIMEOUT.value,
                error_kind=ErrorKind.TIMEOUT,
            )
        except Exception as e:
            logger.debug("Lookup of %s via %s failed: %s", domain, server, e)
            return DnsResult(
                server=server,
                status=False,
                response_time_ms=_elapsed_ms(start),
                error=str(e) or type(e).__name__,
                error_kind=ErrorKind.TRANSPORT_ERROR,
            )

        return DnsResult(
            server=server,
            status=True,
            response_time_ms=_elapsed_ms(start),
        )
