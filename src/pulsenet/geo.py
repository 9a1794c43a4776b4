"""
Public IP and country extraction from speed test identification calls.

Two response shapes are understood: the line-oriented ``key=value``
trace served by CDN edges, and an IP-info JSON object.
"""

import json
from typing import Optional

from .models import NOT_AVAILABLE


def _trace_value(body: str, key: str) -> Optional[str]:
    prefix = f"{key}="
    for line in body.splitlines():
        if line.startswith(prefix):
            value = line[len(prefix):].strip()
            if value:
                return value
    return None


def parse_trace(body: str) -> tuple[str, str]:
    """
    Extract ``(ip, country)`` from a trace body.

    The first ``ip=`` and ``loc=`` lines win; either missing gives "N/A".
    """
    ip = _trace_value(body, "ip") or NOT_AVAILABLE
    country = _trace_value(body, "loc") or NOT_AVAILABLE
    return ip, country


def parse_ip_info(body: str) -> tuple[str, str]:
    """
    Extract ``(ip, country)`` from an IP-info JSON object.

    The country comes from ``country_code``, falling back to
    ``countryCode``. Malformed JSON or absent fields give "N/A" for the
    affected value only.
    """
    try:
        data = json.loads(body)
    except (TypeError, ValueError):
        return NOT_AVAILABLE, NOT_AVAILABLE
    if not isinstance(data, dict):
        return NOT_AVAILABLE, NOT_AVAILABLE

    ip = data.get("ip")
    country = data.get("country_code")
    if country is None:
        country = data.get("countryCode")

    return (
        ip if isinstance(ip, str) else NOT_AVAILABLE,
        country if isinstance(country, str) else NOT_AVAILABLE,
    )
