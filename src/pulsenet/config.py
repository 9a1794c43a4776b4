"""
Engine configuration.

A single dataclass of defaults. The CLI and the API bridge override
individual fields; nothing here reads files or the environment.
"""

from dataclasses import dataclass, fields, replace

from . import __version__


MIB = 1024 * 1024


@dataclass(frozen=True)
class EngineConfig:
    """Timeouts, sample sizes and endpoints used by the probes."""

    # DNS
    dns_timeout_ms: int = 4000

    # ICMP
    ping_timeout_s: float = 2.0
    ping_payload_bytes: int = 32

    # Speed test
    latency_samples: int = 5
    latency_request_timeout_s: float = 5.0
    download_bytes: int = 10 * MIB
    upload_bytes: int = 5 * MIB
    transfer_timeout_s: float = 60.0
    geo_timeout_s: float = 10.0

    # Self-update
    update_timeout_s: float = 10.0
    release_repo: str = "SM8KE1/PulseNet"
    current_version: str = __version__

    # OS adapters
    adapter_cache_ttl_ms: int = 5000

    user_agent: str = "PulseNet"

    @property
    def dns_timeout_s(self) -> float:
        return self.dns_timeout_ms / 1000

    @property
    def releases_latest_url(self) -> str:
        return f"https://api.github.com/repos/{self.release_repo}/releases/latest"

    @property
    def releases_list_url(self) -> str:
        return f"https://api.github.com/repos/{self.release_repo}/releases?per_page=20"

    @property
    def releases_page_url(self) -> str:
        return f"https://github.com/{self.release_repo}/releases/latest"

    def with_overrides(self, **overrides) -> "EngineConfig":
        """
        Return a copy with the given fields replaced.

        ``None`` values are ignored so unset CLI options keep the default.
        Unknown field names raise ValueError.
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)
