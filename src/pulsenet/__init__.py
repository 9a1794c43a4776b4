"""
PulseNet - network diagnostics engine.

Measures reachability, DNS resolver performance and end-to-end
throughput for the PulseNet desktop shell.
"""

__version__ = "1.0.0"
__author__ = "PulseNet Team"

from .config import EngineConfig
from .engine import DiagnosticsEngine
from .models import DnsTestResponse, PingResult, SpeedTestReport, UpdateCheckResult
from .versioning import is_newer

__all__ = [
    "__version__",
    "DiagnosticsEngine",
    "EngineConfig",
    "DnsTestResponse",
    "PingResult",
    "SpeedTestReport",
    "UpdateCheckResult",
    "is_newer",
]
