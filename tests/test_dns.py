"""
Tests for the per-resolver DNS prober and the DNS test harness.

The resolver's network call is replaced, so nothing leaves the machine.
"""

import asyncio

import dns.asyncresolver
import dns.exception
import dns.resolver
import pytest

from pulsenet.models import DnsResult
from pulsenet.query_engine import DNSProber
from pulsenet.resolvers import builtin_addresses
from pulsenet.runner import DnsTestHarness


class RecordingProber:
    """Stands in for DNSProber; fails every resolver listed in ``failing``."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    async def probe(self, domain, server):
        self.calls.append((domain, server))
        if server in self.failing:
            return DnsResult(server=server, status=False, response_time_ms=3, error="timeout")
        return DnsResult(server=server, status=True, response_time_ms=1)


class TestDnsTestHarness:

    @pytest.mark.asyncio
    async def test_one_result_per_builtin(self):
        prober = RecordingProber()
        response = await DnsTestHarness(prober).test_dns_servers("example.com")

        assert response.error is None
        assert [r.server for r in response.results] == builtin_addresses()

    @pytest.mark.asyncio
    async def test_custom_servers_deduplicated_and_ordered(self):
        prober = RecordingProber()
        custom = ["192.168.1.1", "8.8.8.8", "192.168.1.1", "10.0.0.53:5353"]

        response = await DnsTestHarness(prober).test_dns_servers("example.com", custom)

        servers = [r.server for r in response.results]
        assert servers == builtin_addresses() + ["192.168.1.1", "10.0.0.53:5353"]
        assert len(servers) == len(set(servers))

    @pytest.mark.asyncio
    async def test_failures_do_not_cancel_siblings(self):
        prober = RecordingProber(failing={"8.8.8.8", "1.1.1.1"})

        response = await DnsTestHarness(prober).test_dns_servers("example.com")

        assert len(response.results) == 8
        assert [r.status for r in response.results].count(False) == 2
        assert response.fastest.server == "8.8.4.4"

    @pytest.mark.asyncio
    async def test_domain_is_sanitized_before_probing(self):
        prober = RecordingProber()

        await DnsTestHarness(prober).test_dns_servers("https://example.com/path?q=1#frag")

        assert {domain for domain, _ in prober.calls} == {"example.com"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("domain", ["", "   ", "https://"])
    async def test_invalid_domain_probes_nothing(self, domain):
        prober = RecordingProber()

        response = await DnsTestHarness(prober).test_dns_servers(domain, ["192.168.1.1"])

        assert response.error == "invalid-domain"
        assert response.results == []
        assert prober.calls == []

    @pytest.mark.asyncio
    async def test_progress_callback(self):
        seen = []

        await DnsTestHarness(RecordingProber()).test_dns_servers(
            "example.com",
            progress_callback=lambda message, current, total: seen.append((current, total)),
        )

        assert seen[0] == (1, 8)
        assert seen[-1] == (8, 8)


class TestDNSProber:

    @pytest.mark.asyncio
    async def test_success(self, monkeypatch):
        seen = {}

        async def fake_resolve_name(self, name, *args, **kwargs):
            seen["name"] = name
            seen["port"] = self.port
            seen["lifetime"] = self.lifetime
            seen["timeout"] = self.timeout
            return object()

        monkeypatch.setattr(dns.asyncresolver.Resolver, "resolve_name", fake_resolve_name)

        result = await DNSProber(timeout_ms=4000).probe("example.com", "10.0.0.53:5353")

        assert result.status is True
        assert result.error is None
        assert result.response_time_ms >= 0
        assert seen == {"name": "example.com", "port": 5353, "lifetime": 4.0, "timeout": 4.0}

    @pytest.mark.asyncio
    async def test_resolver_error_text(self, monkeypatch):
        async def fake_resolve_name(self, name, *args, **kwargs):
            raise dns.resolver.NoNameservers("All nameservers failed to answer the query.")

        monkeypatch.setattr(dns.asyncresolver.Resolver, "resolve_name", fake_resolve_name)

        result = await DNSProber().probe("example.com", "1.1.1.1")

        assert result.status is False
        assert result.error
        assert result.error != "timeout"

    @pytest.mark.asyncio
    async def test_resolver_lifetime_reports_timeout(self, monkeypatch):
        async def fake_resolve_name(self, name, *args, **kwargs):
            raise dns.exception.Timeout()

        monkeypatch.setattr(dns.asyncresolver.Resolver, "resolve_name", fake_resolve_name)

        result = await DNSProber().probe("example.com", "1.1.1.1")

        assert result.status is False
        assert result.error == "timeout"

    @pytest.mark.asyncio
    async def test_external_bound_fires(self, monkeypatch):
        async def fake_resolve_name(self, name, *args, **kwargs):
            await asyncio.sleep(5)

        monkeypatch.setattr(dns.asyncresolver.Resolver, "resolve_name", fake_resolve_name)

        result = await DNSProber(timeout_ms=50).probe("example.com", "1.1.1.1")

        assert result.status is False
        assert result.error == "timeout"
        assert result.response_time_ms < 5000

    @pytest.mark.asyncio
    async def test_invalid_server(self, monkeypatch):
        async def fail_if_called(self, name, *args, **kwargs):
            raise AssertionError("no lookup expected")

        monkeypatch.setattr(dns.asyncresolver.Resolver, "resolve_name", fail_if_called)

        result = await DNSProber().probe("example.com", "not-a-server")

        assert result.status is False
        assert result.error == "invalid-server"
        assert isinstance(result.response_time_ms, int)
        assert result.response_time_ms >= 0

    @pytest.mark.asyncio
    async def test_to_dict_shape(self, monkeypatch):
        async def fake_resolve_name(self, name, *args, **kwargs):
            return object()

        monkeypatch.setattr(dns.asyncresolver.Resolver, "resolve_name", fake_resolve_name)

        data = (await DNSProber().probe("example.com", "9.9.9.9")).to_dict()

        assert data == {
            "server": "9.9.9.9",
            "status": True,
            "responseTimeMs": data["responseTimeMs"],
            "error": None,
        }
