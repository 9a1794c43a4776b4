"""
Public diagnostics operations.

DiagnosticsEngine is what the GUI shell, the CLI and the API bridge
call. Every operation takes simple arguments, returns a result with a
``to_dict()`` JSON shape, and never raises: failures, including
unexpected ones, are folded into the result.
"""

import asyncio
import logging
from typing import Iterable, Optional, Union

from . import __version__
from .adapters import DnsAdapterManager, create_adapter_manager
from .config import EngineConfig
from .models import (
    AdapterList,
    CloseAction,
    DnsManagerResult,
    DnsTestResponse,
    ErrorKind,
    PingResult,
    SpeedTestReport,
    UpdateCheckResult,
)
from .pinger import PingProber
from .query_engine import DNSProber
from .runner import DnsTestHarness
from .settings import CloseActionState
from .speedtest import DEFAULT_PROVIDER, ProgressCallback, SpeedTestOrchestrator
from .versioning import UpdateChecker


logger = logging.getLogger(__name__)


class DiagnosticsEngine:
    """
    Facade over the probes.

    Invocations share no state except the close-action setting and the
    adapter manager's cache, both lock-guarded, so distinct invocations
    may run concurrently.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        adapter_manager: Optional[DnsAdapterManager] = None,
        close_action: Optional[CloseActionState] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (default: EngineConfig())
            adapter_manager: OS adapter capability (default: picked by platform)
            close_action: Close-action state (default: in-memory, ``ask``)
        """
        self.config = config or EngineConfig()
        self.adapter_manager = adapter_manager or create_adapter_manager(
            cache_ttl_ms=self.config.adapter_cache_ttl_ms,
        )
        self.close_action = close_action or CloseActionState()

        self.pinger = PingProber(
            timeout_s=self.config.ping_timeout_s,
            payload_bytes=self.config.ping_payload_bytes,
        )
        self.dns_harness = DnsTestHarness(DNSProber(timeout_ms=self.config.dns_timeout_ms))
        self.speed_tester = SpeedTestOrchestrator(self.config)
        self.update_checker = UpdateChecker(self.config)

    def app_version(self) -> str:
        return self.config.current_version or __version__

    async def ping(self, host: str) -> PingResult:
        try:
            return await self.pinger.ping(host)
        except Exception as e:
            logger.exception("Unexpected failure pinging %r", host)
            return PingResult.failure(host, ErrorKind.TRANSPORT_ERROR, str(e))

    async def test_dns_servers(
        self,
        domain: str,
        custom_servers: Optional[Iterable[str]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> DnsTestResponse:
        try:
            return await self.dns_harness.test_dns_servers(domain, custom_servers, progress_callback)
        except Exception:
            logger.exception("Unexpected failure testing DNS for %r", domain)
            return DnsTestResponse(error=ErrorKind.TRANSPORT_ERROR.value, results=[])

    async def speed_test(
        self,
        provider: str = DEFAULT_PROVIDER,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> SpeedTestReport:
        try:
            return await self.speed_tester.run(provider, progress_callback)
        except Exception:
            logger.exception("Unexpected failure in %s speed test", provider)
            return SpeedTestReport(provider=str(provider), error=ErrorKind.TRANSPORT_ERROR.value)

    async def check_for_updates(self, include_prerelease: bool = False) -> UpdateCheckResult:
        try:
            return await self.update_checker.check(include_prerelease)
        except Exception:
            logger.exception("Unexpected failure checking for updates")
            return UpdateCheckResult(
                current_version=self.app_version(),
                url=self.config.releases_page_url,
                error=ErrorKind.UPDATE_CHECK_FAILED.value,
            )

    # OS adapter calls block on a child process, so they run in the
    # default executor to keep the loop free for other diagnostics.

    async def list_dns_adapters(self, force_refresh: bool = False) -> AdapterList:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None, self.adapter_manager.list_adapters, bool(force_refresh)
            )
        except Exception as e:
            logger.exception("Unexpected failure listing DNS adapters")
            return AdapterList(adapters=[], error=str(e) or ErrorKind.TRANSPORT_ERROR.value)

    async def set_adapter_dns(
        self,
        adapter_name: str,
        primary_dns: str,
        secondary_dns: Optional[str] = None,
    ) -> DnsManagerResult:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None, self.adapter_manager.set_dns, adapter_name, primary_dns, secondary_dns
            )
        except Exception as e:
            logger.exception("Unexpected failure setting DNS on %r", adapter_name)
            return DnsManagerResult(success=False, error=str(e) or ErrorKind.TRANSPORT_ERROR.value)

    async def reset_adapter_dns(self, adapter_name: str) -> DnsManagerResult:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None, self.adapter_manager.reset_dns, adapter_name
            )
        except Exception as e:
            logger.exception("Unexpected failure resetting DNS on %r", adapter_name)
            return DnsManagerResult(success=False, error=str(e) or ErrorKind.TRANSPORT_ERROR.value)

    def get_close_action(self) -> str:
        return self.close_action.get().value

    def set_close_action(self, action: Union[str, CloseAction]) -> str:
        return self.close_action.set(action).value
