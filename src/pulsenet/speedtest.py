"""
Speed test orchestration.

Runs latency, download, upload and geo/IP lookup against one provider
profile and folds them into a single best-effort report. Each stage is
independent: a failing stage leaves its placeholder value and the next
stage still runs.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from .config import EngineConfig
from .geo import parse_ip_info, parse_trace
from .models import NOT_AVAILABLE, ErrorKind, SpeedTestReport
from .samplers import TRANSFER_ERRORS, LatencySampler, ThroughputSampler
from .statistics import round2


logger = logging.getLogger(__name__)


# Type for progress callback: (stage, current, total)
ProgressCallback = Callable[[str, int, int], None]

STAGES = ("latency", "download", "upload", "geo")


@dataclass(frozen=True)
class SpeedTestProvider:
    """A named set of endpoints used together for one run."""
    name: str
    alias: str
    ping_url: str
    download_url: str  # may contain {bytes}
    upload_url: str
    geo_url: str
    geo_format: str  # "trace" or "json"
    description: Optional[str] = None

    def download_url_for(self, byte_count: int) -> str:
        return self.download_url.format(bytes=byte_count)

    def parse_geo(self, body: str) -> tuple[str, str]:
        if self.geo_format == "trace":
            return parse_trace(body)
        return parse_ip_info(body)


CLOUDFLARE_BASE = "https://speed.cloudflare.com"

PROVIDERS: dict[str, SpeedTestProvider] = {
    "cloudflare": SpeedTestProvider(
        name="cloudflare",
        alias="A",
        ping_url=f"{CLOUDFLARE_BASE}/__ping",
        download_url=f"{CLOUDFLARE_BASE}/__down?bytes={{bytes}}",
        upload_url=f"{CLOUDFLARE_BASE}/__up",
        geo_url=f"{CLOUDFLARE_BASE}/cdn-cgi/trace",
        geo_format="trace",
        description="Cloudflare edge: ping, download, upload and trace on one service",
    ),
    "hetzner": SpeedTestProvider(
        name="hetzner",
        alias="B",
        ping_url="https://www.gstatic.com/generate_204",
        download_url="https://speed.hetzner.de/10MB.bin",
        upload_url="https://httpbin.org/post",
        geo_url="https://ipwho.is/",
        geo_format="json",
        description="Static file host for download, echo endpoint for upload, ipwho.is for geo",
    ),
}

DEFAULT_PROVIDER = "cloudflare"


def get_provider(name: str) -> SpeedTestProvider:
    """Get a provider by name or alias (case-insensitive)."""
    key = name.strip().lower()
    if key in PROVIDERS:
        return PROVIDERS[key]
    for provider in PROVIDERS.values():
        if provider.alias.lower() == key:
            return provider
    raise ValueError(f"Unknown provider: {name}. Available: {list_providers()}")


def list_providers() -> list[str]:
    """List provider names with their aliases."""
    return [f"{p.name} ({p.alias})" for p in PROVIDERS.values()]


class SpeedTestOrchestrator:
    """
    Composes the samplers and the geo/IP lookup into one report.

    The orchestrator never raises; failures are visible as 0.0 or "N/A"
    fields, and ``error`` is only set when every stage failed.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Engine configuration (default: EngineConfig())
            client: HTTP client to reuse; one is created per run otherwise
        """
        self.config = config or EngineConfig()
        self._client = client

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
            timeout=httpx.Timeout(self.config.transfer_timeout_s, connect=10.0),
        )

    async def _lookup_geo(self, client: httpx.AsyncClient, provider: SpeedTestProvider) -> tuple[str, str]:
        try:
            response = await asyncio.wait_for(
                client.get(provider.geo_url, headers={"User-Agent": self.config.user_agent}),
                timeout=self.config.geo_timeout_s,
            )
        except TRANSFER_ERRORS as e:
            logger.warning("Geo lookup via %s failed: %s", provider.geo_url, str(e) or type(e).__name__)
            return NOT_AVAILABLE, NOT_AVAILABLE
        return provider.parse_geo(response.text)

    async def run(
        self,
        provider_name: str = DEFAULT_PROVIDER,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SpeedTestReport:
        """
        Run one speed test.

        Args:
            provider_name: Provider name or alias ("cloudflare"/"A", "hetzner"/"B")
            progress_callback: Optional callback invoked before each stage

        Returns:
            SpeedTestReport with all fields populated
        """
        try:
            provider = get_provider(provider_name)
        except ValueError as e:
            logger.warning("%s", e)
            return SpeedTestReport(provider=str(provider_name), error=ErrorKind.INVALID_INPUT.value)

        def progress(stage: str):
            if progress_callback:
                progress_callback(stage, STAGES.index(stage) + 1, len(STAGES))

        client = self._client or self._create_client()
        try:
            logger.info("Starting %s speed test", provider.name)

            progress("latency")
            latency = await LatencySampler(
                client,
                samples=self.config.latency_samples,
                request_timeout_s=self.config.latency_request_timeout_s,
            ).sample(provider.ping_url)

            throughput = ThroughputSampler(
                client,
                upload_bytes=self.config.upload_bytes,
                timeout_s=self.config.transfer_timeout_s,
            )

            progress("download")
            download = await throughput.download(provider.download_url_for(self.config.download_bytes))

            progress("upload")
            upload = await throughput.upload(provider.upload_url)

            progress("geo")
            ip, country = await self._lookup_geo(client, provider)
        finally:
            if self._client is None:
                await client.aclose()

        report = SpeedTestReport(
            provider=provider.name,
            download_mbps=round2(download.mbps),
            upload_mbps=round2(upload.mbps),
            latency_ms=round2(latency.average_ms),
            jitter_ms=round2(latency.jitter_ms),
            ip=ip,
            country=country,
        )

        if (
            latency.all_failed
            and not download.ok
            and not upload.ok
            and ip == NOT_AVAILABLE
            and country == NOT_AVAILABLE
        ):
            report.error = ErrorKind.TRANSPORT_ERROR.value

        logger.info(
            "%s: down %.2f Mbps, up %.2f Mbps, latency %.2f ms, jitter %.2f ms",
            provider.name,
            report.download_mbps,
            report.upload_mbps,
            report.latency_ms,
            report.jitter_ms,
        )
        return report
