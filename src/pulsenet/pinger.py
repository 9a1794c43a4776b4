"""
Host resolution and single-shot ICMP echo.

The echo is sent with ping3, which blocks, so it runs in the default
executor and is raced against the same bound it was given. When the
race is lost the worker thread is abandoned, not cancelled.
"""

import asyncio
import errno
import ipaddress
import logging
import socket
from typing import Optional

import ping3
import ping3.errors

from .errors import ResolutionFailed
from .models import ErrorKind, PingResult


logger = logging.getLogger(__name__)


class HostResolver:
    """Resolves a hostname to one routable address."""

    async def resolve(self, host: str) -> str:
        """
        Return the first address the platform resolver yields, any family.

        Raises:
            ResolutionFailed: if the lookup errors or returns nothing
        """
        if not host or not host.strip():
            raise ResolutionFailed("Unable to resolve host")

        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(host.strip(), None)
        except (socket.gaierror, UnicodeError, OSError) as e:
            raise ResolutionFailed(str(e) or "Unable to resolve host") from e

        for _family, _type, _proto, _canonname, sockaddr in infos:
            if sockaddr:
                return sockaddr[0]
        raise ResolutionFailed("Unable to resolve host")


class PingProber:
    """Sends exactly one ICMP echo per call. No retries."""

    def __init__(
        self,
        resolver: Optional[HostResolver] = None,
        timeout_s: float = 2.0,
        payload_bytes: int = 32,
    ):
        """
        Initialize the prober.

        Args:
            resolver: Host resolver (default: HostResolver())
            timeout_s: Wait for the echo reply
            payload_bytes: ICMP payload size
        """
        self.resolver = resolver or HostResolver()
        self.timeout_s = timeout_s
        self.payload_bytes = payload_bytes

    def _echo(self, address: str) -> Optional[float]:
        """Blocking echo; returns milliseconds, None on timeout, False on error."""
        return ping3.ping(
            address,
            timeout=self.timeout_s,
            unit="ms",
            size=self.payload_bytes,
            version=ipaddress.ip_address(address.split("%", 1)[0]).version,
        )

    async def ping(self, host: str) -> PingResult:
        """
        Resolve ``host`` and send one echo to it.

        Returns:
            PingResult; never raises
        """
        try:
            address = await self.resolver.resolve(host)
        except ResolutionFailed as e:
            logger.debug("Ping to %r: %s", host, e)
            return PingResult.failure(host, ErrorKind.RESOLUTION_FAILED, str(e))

        loop = asyncio.get_running_loop()
        try:
            delay = await asyncio.wait_for(
                loop.run_in_executor(None, self._echo, address),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            return PingResult.failure(host, ErrorKind.TIMEOUT, f"No reply from {address}")
        except PermissionError as e:
            logger.warning("Raw ICMP socket unavailable: %s", e)
            return PingResult.failure(host, ErrorKind.SOCKET_UNAVAILABLE, str(e))
        except ping3.errors.Timeout as e:
            return PingResult.failure(host, ErrorKind.TIMEOUT, str(e))
        except (ping3.errors.PingError, OSError) as e:
            if getattr(e, "errno", None) in (errno.EPERM, errno.EACCES):
                return PingResult.failure(host, ErrorKind.SOCKET_UNAVAILABLE, str(e))
            return PingResult.failure(host, ErrorKind.TRANSPORT_ERROR, str(e))

        if delay is None:
            return PingResult.failure(host, ErrorKind.TIMEOUT, f"No reply from {address}")
        if delay is False:
            return PingResult.failure(host, ErrorKind.TRANSPORT_ERROR, f"Echo to {address} failed")
        return PingResult.success(host, float(delay))
