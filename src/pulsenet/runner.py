"""
DNS test harness.

Fans the DNS prober out over the built-in resolvers plus any
caller-supplied ones, producing exactly one result per resolver.
"""

import logging
from typing import Callable, Iterable, Optional

from .errors import InvalidDomain
from .models import DnsTestResponse, ErrorKind
from .query_engine import DNSProber, sanitize_domain
from .resolvers import build_resolver_set


logger = logging.getLogger(__name__)


# Type for progress callback
ProgressCallback = Callable[[str, int, int], None]


class DnsTestHarness:
    """
    Runs one DNS test: every effective resolver, sequentially, in order.
    """

    def __init__(self, prober: Optional[DNSProber] = None, timeout_ms: int = 4000):
        """
        Initialize the harness.

        Args:
            prober: Prober to use (default: a DNSProber with ``timeout_ms``)
            timeout_ms: Per-resolver bound when no prober is given
        """
        self.prober = prober or DNSProber(timeout_ms=timeout_ms)

    async def test_dns_servers(
        self,
        domain: str,
        custom_servers: Optional[Iterable[str]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> DnsTestResponse:
        """
        Probe every effective resolver for ``domain``.

        Args:
            domain: Raw user input; scheme, path, query and fragment are stripped
            custom_servers: Extra resolver addresses, ``ip[:port]``
            progress_callback: Optional callback for progress updates

        Returns:
            DnsTestResponse with ``error="invalid-domain"`` and no results if
            the domain is empty after sanitizing, else one result per resolver
        """
        try:
            sanitized = sanitize_domain(domain)
        except InvalidDomain:
            logger.info("Rejected DNS test for invalid domain %r", domain)
            return DnsTestResponse(error=ErrorKind.INVALID_DOMAIN.value, results=[])

        servers = build_resolver_set(custom_servers)
        logger.info("Testing %s against %d resolvers", sanitized, len(servers))

        response = DnsTestResponse()
        for index, server in enumerate(servers, start=1):
            if progress_callback:
                progress_callback(f"Resolving {sanitized} via {server}", index, len(servers))
            response.results.append(await self.prober.probe(sanitized, server))

        failed = sum(1 for r in response.results if not r.status)
        if failed:
            logger.info("%d of %d resolvers failed for %s", failed, len(servers), sanitized)
        return response
