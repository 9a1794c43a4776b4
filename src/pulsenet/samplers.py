"""
HTTP samplers for the speed test.

- LatencySampler: repeated lightweight GETs, average and jitter
- ThroughputSampler: one timed download and one timed upload

Every request is raced against an explicit timeout. Failures never
raise out of a sampler; they show up as failure counts or 0.0 Mbps.
"""

import asyncio
import logging
import time
from typing import Optional

import httpx

from .models import ErrorKind, LatencyStats, ThroughputSample
from .statistics import megabits_per_second, summarize_latency


logger = logging.getLogger(__name__)

# Failures a sampler folds into its result instead of raising.
TRANSFER_ERRORS = (asyncio.TimeoutError, httpx.HTTPError, httpx.StreamError, OSError)


def _classify(error: BaseException) -> str:
    if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
        return ErrorKind.TIMEOUT.value
    return ErrorKind.TRANSPORT_ERROR.value


class LatencySampler:
    """Sequential round-trips against a low-payload endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        samples: int = 5,
        request_timeout_s: float = 5.0,
    ):
        """
        Initialize the sampler.

        Args:
            client: Shared HTTP client
            samples: Number of requests per run
            request_timeout_s: Bound for each request
        """
        self.client = client
        self.samples = samples
        self.request_timeout_s = request_timeout_s

    async def sample(self, url: str) -> LatencyStats:
        """
        Issue ``samples`` GETs and derive average and jitter.

        A failed request still contributes its elapsed time.
        """
        elapsed: list[float] = []
        failures = 0

        for _ in range(self.samples):
            start = time.perf_counter_ns()
            try:
                await asyncio.wait_for(self.client.get(url), timeout=self.request_timeout_s)
            except TRANSFER_ERRORS as e:
                failures += 1
                logger.debug("Latency request to %s failed: %s", url, _classify(e))
            elapsed.append((time.perf_counter_ns() - start) / 1_000_000)

        return summarize_latency(elapsed, failures)


class ThroughputSampler:
    """Timed fixed-size transfers."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        upload_bytes: int = 5 * 1024 * 1024,
        timeout_s: float = 60.0,
    ):
        """
        Initialize the sampler.

        Args:
            client: Shared HTTP client
            upload_bytes: Size of the zero-filled upload payload
            timeout_s: Bound for each transfer
        """
        self.client = client
        self.upload_bytes = upload_bytes
        self.timeout_s = timeout_s

    async def _receive(self, url: str) -> int:
        received = 0
        async with self.client.stream("GET", url) as response:
            async for chunk in response.aiter_bytes():
                received += len(chunk)
        return received

    async def download(self, url: str) -> ThroughputSample:
        """Mbps from the bytes actually received by one GET."""
        start = time.perf_counter()
        try:
            received = await asyncio.wait_for(self._receive(url), timeout=self.timeout_s)
        except TRANSFER_ERRORS as e:
            logger.warning("Download from %s failed: %s", url, str(e) or type(e).__name__)
            return ThroughputSample.failed(_classify(e), time.perf_counter() - start)

        elapsed = time.perf_counter() - start
        return ThroughputSample(
            mbps=megabits_per_second(received, elapsed),
            ok=True,
            bytes_transferred=received,
            elapsed_s=elapsed,
        )

    async def upload(self, url: str, payload_size: Optional[int] = None) -> ThroughputSample:
        """
        Mbps from the bytes sent by one POST.

        Endpoints do not reliably echo the payload size, so the configured
        payload size is used rather than anything in the response.
        """
        size = self.upload_bytes if payload_size is None else payload_size
        payload = bytes(size)

        start = time.perf_counter()
        try:
            await asyncio.wait_for(
                self.client.post(url, content=payload),
                timeout=self.timeout_s,
            )
        except TRANSFER_ERRORS as e:
            logger.warning("Upload to %s failed: %s", url, str(e) or type(e).__name__)
            return ThroughputSample.failed(_classify(e), time.perf_counter() - start)

        elapsed = time.perf_counter() - start
        return ThroughputSample(
            mbps=megabits_per_second(size, elapsed),
            ok=True,
            bytes_transferred=size,
            elapsed_s=elapsed,
        )
