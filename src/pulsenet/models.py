"""
Data models for the PulseNet diagnostics engine.

Defines structured types for probe results, resolver configurations,
speed test reports and the small OS-facing DNS adapter records.
Every result type renders to the JSON shape the GUI shell consumes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


NOT_AVAILABLE = "N/A"


class ErrorKind(Enum):
    """Failure classes folded into result fields."""
    RESOLUTION_FAILED = "resolution-failed"
    SOCKET_UNAVAILABLE = "socket-unavailable"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport-error"
    INVALID_DOMAIN = "invalid-domain"
    INVALID_SERVER = "invalid-server"
    INVALID_INPUT = "invalid-input"
    UNSUPPORTED_PLATFORM = "unsupported-platform"
    UPDATE_CHECK_FAILED = "update-check-failed"
    INVALID_RESPONSE = "invalid-response"


class CloseAction(Enum):
    """What the window shell does when the user closes the main window."""
    HIDE = "hide"
    EXIT = "exit"
    ASK = "ask"


@dataclass(frozen=True)
class ResolverConfig:
    """A DNS resolver queried directly by address."""
    name: str
    ip: str
    port: int = 53
    description: Optional[str] = None

    @property
    def is_ipv6(self) -> bool:
        return ":" in self.ip

    @property
    def address(self) -> str:
        """Address as written by users: ip, ip:port or [ip]:port."""
        if self.port == 53:
            return self.ip
        if self.is_ipv6:
            return f"[{self.ip}]:{self.port}"
        return f"{self.ip}:{self.port}"


@dataclass(frozen=True)
class DnsResult:
    """Outcome of probing one resolver."""
    server: str
    status: bool
    response_time_ms: int
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    def to_dict(self) -> dict:
        return {
            "server": self.server,
            "status": self.status,
            "responseTimeMs": self.response_time_ms,
            "error": self.error,
        }


@dataclass
class DnsTestResponse:
    """One DNS test run: a result per effective resolver, in order."""
    error: Optional[str] = None
    results: list[DnsResult] = field(default_factory=list)

    @property
    def fastest(self) -> Optional[DnsResult]:
        """Quickest resolver that answered, if any did."""
        answered = [r for r in self.results if r.status]
        if not answered:
            return None
        return min(answered, key=lambda r: r.response_time_ms)

    def to_dict(self) -> dict:
        return {
            "error": self.error,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class PingResult:
    """
    Outcome of a single ICMP echo.

    Exactly one of ``alive=True`` with ``time`` or ``alive=False`` with
    ``error`` is populated.
    """
    host: str
    alive: bool
    time: Optional[float] = None
    error: Optional[str] = None
    detail: Optional[str] = None

    @classmethod
    def success(cls, host: str, round_trip_ms: float) -> "PingResult":
        return cls(host=host, alive=True, time=round_trip_ms)

    @classmethod
    def failure(cls, host: str, kind: ErrorKind, detail: Optional[str] = None) -> "PingResult":
        return cls(host=host, alive=False, error=kind.value, detail=detail)

    def to_dict(self) -> dict:
        return {
            "alive": self.alive,
            "time": self.time,
            "error": self.error,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class LatencyStats:
    """Latency samples of one run and the values derived from them."""
    samples: tuple[float, ...]
    failures: int
    average_ms: float
    jitter_ms: float

    @property
    def all_failed(self) -> bool:
        return bool(self.samples) and self.failures == len(self.samples)


@dataclass(frozen=True)
class ThroughputSample:
    """
    One timed transfer.

    ``ok`` separates "no data" from a measured rate; ``mbps`` is 0.0
    whenever the transfer failed.
    """
    mbps: float
    ok: bool
    bytes_transferred: int = 0
    elapsed_s: float = 0.0
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str, elapsed_s: float = 0.0) -> "ThroughputSample":
        return cls(mbps=0.0, ok=False, elapsed_s=elapsed_s, error=error)


@dataclass
class SpeedTestReport:
    """Best-effort speed test report; every field is always populated."""
    provider: str
    download_mbps: float = 0.0
    upload_mbps: float = 0.0
    latency_ms: float = 0.0
    jitter_ms: float = 0.0
    ip: str = NOT_AVAILABLE
    country: str = NOT_AVAILABLE
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "downloadMbps": self.download_mbps,
            "uploadMbps": self.upload_mbps,
            "latencyMs": self.latency_ms,
            "jitterMs": self.jitter_ms,
            "ip": self.ip,
            "country": self.country,
            "error": self.error,
        }


@dataclass
class UpdateCheckResult:
    """Result of comparing the running version with the latest release."""
    current_version: str
    latest_version: str = ""
    update_available: bool = False
    is_prerelease: bool = False
    url: str = ""
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "currentVersion": self.current_version,
            "latestVersion": self.latest_version,
            "updateAvailable": self.update_available,
            "isPrerelease": self.is_prerelease,
            "url": self.url,
            "error": self.error,
        }


@dataclass(frozen=True)
class DnsAdapter:
    """A network adapter and its configured IPv4 DNS servers."""
    name: str
    dns: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"name": self.name, "dns": list(self.dns)}


@dataclass
class AdapterList:
    """Adapters known to the OS, or an error explaining why there are none."""
    adapters: list[DnsAdapter] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "adapters": [a.to_dict() for a in self.adapters],
            "error": self.error,
        }


@dataclass(frozen=True)
class DnsManagerResult:
    """Outcome of changing an adapter's DNS configuration."""
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {"success": self.success, "error": self.error}
