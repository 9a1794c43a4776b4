"""
OS DNS adapter management.

Lists network adapters with their DNS servers and changes them. Only
Windows is supported, through PowerShell; every other platform gets a
stub reporting ``unsupported-platform``. The DNS test code never uses
this module.
"""

import json
import logging
import os
import platform
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from typing import Optional

from .models import AdapterList, DnsAdapter, DnsManagerResult, ErrorKind


logger = logging.getLogger(__name__)

CREATE_NO_WINDOW = 0x08000000

LIST_ADAPTERS_COMMAND = (
    "Get-DnsClientServerAddress -AddressFamily IPv4 "
    "| Select-Object InterfaceAlias,ServerAddresses "
    "| ConvertTo-Json -Depth 4 -Compress"
)


def get_platform() -> str:
    """Get the current platform name."""
    system = platform.system().lower()
    if system == "darwin":
        return "macos"
    return system  # "windows" or "linux"


def ps_escape_single(value: str) -> str:
    """Escape a value for use inside a single-quoted PowerShell string."""
    return value.replace("'", "''")


def parse_adapters(output: str) -> list[DnsAdapter]:
    """
    Parse ``ConvertTo-Json`` output of ``Get-DnsClientServerAddress``.

    PowerShell emits a bare object for a single adapter and an array
    otherwise. Entries without an alias are skipped; the result is
    sorted by adapter name.
    """
    if not output or not output.strip():
        return []
    try:
        parsed = json.loads(output)
    except ValueError:
        logger.warning("Could not parse adapter list output")
        return []

    items = parsed if isinstance(parsed, list) else [parsed]
    adapters = []
    for item in items:
        if not isinstance(item, dict):
            continue
        name = item.get("InterfaceAlias")
        name = name.strip() if isinstance(name, str) else ""
        if not name:
            continue
        servers = item.get("ServerAddresses")
        if not isinstance(servers, list):
            servers = []
        dns = tuple(
            s.strip() for s in servers
            if isinstance(s, str) and s.strip()
        )
        adapters.append(DnsAdapter(name=name, dns=dns))

    adapters.sort(key=lambda adapter: adapter.name)
    return adapters


class AdapterCache:
    """
    Short-lived adapter list cache.

    Entries older than ``ttl_ms`` are treated as absent. All access goes
    through one lock; a refresh replaces the entry in a single step.
    """

    def __init__(self, ttl_ms: int = 5000, clock=time.monotonic):
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._lock = threading.Lock()
        self._entry: Optional[tuple[float, list[DnsAdapter]]] = None

    def get(self) -> Optional[list[DnsAdapter]]:
        with self._lock:
            if self._entry is None:
                return None
            cached_at, adapters = self._entry
            if (self._clock() - cached_at) * 1000 > self.ttl_ms:
                return None
            return list(adapters)

    def put(self, adapters: list[DnsAdapter]) -> None:
        with self._lock:
            self._entry = (self._clock(), list(adapters))

    def clear(self) -> None:
        with self._lock:
            self._entry = None


class DnsAdapterManager(ABC):
    """Capability interface for reading and changing adapter DNS servers."""

    @abstractmethod
    def list_adapters(self, force_refresh: bool = False) -> AdapterList:
        pass

    @abstractmethod
    def set_dns(
        self,
        adapter_name: str,
        primary_dns: str,
        secondary_dns: Optional[str] = None,
    ) -> DnsManagerResult:
        pass

    @abstractmethod
    def reset_dns(self, adapter_name: str) -> DnsManagerResult:
        pass


class UnsupportedDnsAdapterManager(DnsAdapterManager):
    """Stub for platforms without adapter management."""

    def list_adapters(self, force_refresh: bool = False) -> AdapterList:
        return AdapterList(adapters=[], error=ErrorKind.UNSUPPORTED_PLATFORM.value)

    def set_dns(self, adapter_name, primary_dns, secondary_dns=None) -> DnsManagerResult:
        return DnsManagerResult(success=False, error=ErrorKind.UNSUPPORTED_PLATFORM.value)

    def reset_dns(self, adapter_name) -> DnsManagerResult:
        return DnsManagerResult(success=False, error=ErrorKind.UNSUPPORTED_PLATFORM.value)


class PowerShellError(Exception):
    """PowerShell exited non-zero or could not be started."""


class WindowsDnsAdapterManager(DnsAdapterManager):
    """Adapter management through PowerShell's DnsClient cmdlets."""

    def __init__(self, cache_ttl_ms: int = 5000, timeout_s: float = 30.0):
        self.cache = AdapterCache(ttl_ms=cache_ttl_ms)
        self.timeout_s = timeout_s

    def run_powershell(self, command: str) -> str:
        """
        Run one PowerShell command without a console window.

        Returns:
            Trimmed stdout

        Raises:
            PowerShellError: with trimmed stderr on failure
        """
        try:
            result = subprocess.run(
                [
                    "powershell",
                    "-NoLogo",
                    "-NoProfile",
                    "-NonInteractive",
                    "-ExecutionPolicy",
                    "Bypass",
                    "-Command",
                    command,
                ],
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
                creationflags=CREATE_NO_WINDOW if os.name == "nt" else 0,
            )
        except subprocess.TimeoutExpired:
            raise PowerShellError("PowerShell command timed out") from None
        except OSError as e:
            raise PowerShellError(str(e)) from e

        if result.returncode != 0:
            raise PowerShellError(result.stderr.strip())
        return result.stdout.strip()

    def list_adapters(self, force_refresh: bool = False) -> AdapterList:
        if not force_refresh:
            cached = self.cache.get()
            if cached is not None:
                return AdapterList(adapters=cached)

        try:
            output = self.run_powershell(LIST_ADAPTERS_COMMAND)
        except PowerShellError as e:
            logger.warning("Listing DNS adapters failed: %s", e)
            return AdapterList(adapters=[], error=str(e) or ErrorKind.TRANSPORT_ERROR.value)

        adapters = parse_adapters(output)
        self.cache.put(adapters)
        return AdapterList(adapters=adapters)

    def set_dns(
        self,
        adapter_name: str,
        primary_dns: str,
        secondary_dns: Optional[str] = None,
    ) -> DnsManagerResult:
        adapter = (adapter_name or "").strip()
        primary = (primary_dns or "").strip()
        if not adapter or not primary:
            return DnsManagerResult(success=False, error=ErrorKind.INVALID_INPUT.value)

        servers = [f"'{ps_escape_single(primary)}'"]
        if secondary_dns and secondary_dns.strip():
            servers.append(f"'{ps_escape_single(secondary_dns.strip())}'")

        command = (
            f"Set-DnsClientServerAddress -InterfaceAlias '{ps_escape_single(adapter)}' "
            f"-ServerAddresses @({','.join(servers)})"
        )
        return self._apply(command, adapter)

    def reset_dns(self, adapter_name: str) -> DnsManagerResult:
        adapter = (adapter_name or "").strip()
        if not adapter:
            return DnsManagerResult(success=False, error=ErrorKind.INVALID_INPUT.value)

        command = (
            f"Set-DnsClientServerAddress -InterfaceAlias '{ps_escape_single(adapter)}' "
            "-ResetServerAddresses"
        )
        return self._apply(command, adapter)

    def _apply(self, command: str, adapter: str) -> DnsManagerResult:
        try:
            self.run_powershell(command)
        except PowerShellError as e:
            logger.warning("Changing DNS of %s failed: %s", adapter, e)
            return DnsManagerResult(success=False, error=str(e))
        self.cache.clear()
        logger.info("Updated DNS configuration of %s", adapter)
        return DnsManagerResult(success=True)


def create_adapter_manager(cache_ttl_ms: int = 5000) -> DnsAdapterManager:
    """Pick the adapter manager for the running platform."""
    if get_platform() == "windows":
        return WindowsDnsAdapterManager(cache_ttl_ms=cache_ttl_ms)
    return UnsupportedDnsAdapterManager()
