"""
Tests for host resolution and the single-shot ICMP prober.

ping3 is replaced so no raw sockets are opened.
"""

import errno
import socket
import time

import ping3
import ping3.errors
import pytest

from pulsenet.errors import ResolutionFailed
from pulsenet.pinger import HostResolver, PingProber


class StaticResolver:
    def __init__(self, address):
        self.address = address

    async def resolve(self, host):
        return self.address


def prober_for(address, **kwargs):
    return PingProber(resolver=StaticResolver(address), **kwargs)


class TestHostResolver:

    @pytest.mark.asyncio
    async def test_literal_address(self):
        assert await HostResolver().resolve("127.0.0.1") == "127.0.0.1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("host", ["", "   "])
    async def test_empty_host(self, host):
        with pytest.raises(ResolutionFailed):
            await HostResolver().resolve(host)

    @pytest.mark.asyncio
    async def test_lookup_error(self, monkeypatch):
        def fail(*args, **kwargs):
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        monkeypatch.setattr(socket, "getaddrinfo", fail)

        with pytest.raises(ResolutionFailed):
            await HostResolver().resolve("no-such-host.invalid")


class TestPingProber:

    @pytest.mark.asyncio
    async def test_reply(self, monkeypatch):
        seen = {}

        def fake_ping(address, timeout, unit, size, version):
            seen.update(address=address, timeout=timeout, unit=unit, size=size, version=version)
            return 12.5

        monkeypatch.setattr(ping3, "ping", fake_ping)

        result = await prober_for("192.0.2.10").ping("example.com")

        assert result.alive is True
        assert result.time == 12.5
        assert result.error is None
        assert seen == {"address": "192.0.2.10", "timeout": 2.0, "unit": "ms", "size": 32, "version": 4}

    @pytest.mark.asyncio
    async def test_no_reply_is_timeout(self, monkeypatch):
        monkeypatch.setattr(ping3, "ping", lambda *args, **kwargs: None)

        result = await prober_for("192.0.2.10").ping("example.com")

        assert result.alive is False
        assert result.time is None
        assert result.error == "timeout"

    @pytest.mark.asyncio
    async def test_echo_error_is_transport_error(self, monkeypatch):
        monkeypatch.setattr(ping3, "ping", lambda *args, **kwargs: False)

        result = await prober_for("192.0.2.10").ping("example.com")

        assert result.alive is False
        assert result.error == "transport-error"

    @pytest.mark.asyncio
    async def test_raw_socket_denied(self, monkeypatch):
        def denied(*args, **kwargs):
            raise PermissionError(errno.EPERM, "Operation not permitted")

        monkeypatch.setattr(ping3, "ping", denied)

        result = await prober_for("192.0.2.10").ping("example.com")

        assert result.error == "socket-unavailable"
        assert result.detail

    @pytest.mark.asyncio
    async def test_ping3_timeout_error(self, monkeypatch):
        def raise_timeout(*args, **kwargs):
            raise ping3.errors.Timeout(timeout=2)

        monkeypatch.setattr(ping3, "ping", raise_timeout)

        result = await prober_for("192.0.2.10").ping("example.com")

        assert result.error == "timeout"

    @pytest.mark.asyncio
    async def test_slow_echo_is_bounded(self, monkeypatch):
        def slow(*args, **kwargs):
            time.sleep(0.5)
            return 1.0

        monkeypatch.setattr(ping3, "ping", slow)

        started = time.monotonic()
        result = await prober_for("192.0.2.10", timeout_s=0.05).ping("example.com")

        assert result.error == "timeout"
        assert time.monotonic() - started < 0.5

    @pytest.mark.asyncio
    async def test_ipv6_target_echoed_over_icmpv6(self, monkeypatch):
        sent = []

        def fake_ping(address, **kwargs):
            sent.append((address, kwargs["version"]))
            return 3.0

        monkeypatch.setattr(ping3, "ping", fake_ping)

        result = await prober_for("2001:db8::1").ping("example.com")

        assert sent == [("2001:db8::1", 6)]
        assert result.alive is True
        assert result.time == 3.0
        assert result.error is None

    @pytest.mark.asyncio
    async def test_unresolvable_host(self, monkeypatch):
        def fail(*args, **kwargs):
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        monkeypatch.setattr(socket, "getaddrinfo", fail)

        result = await PingProber().ping("no-such-host.invalid")

        assert result.alive is False
        assert result.error == "resolution-failed"
        assert result.to_dict()["time"] is None

    @pytest.mark.asyncio
    async def test_empty_host(self):
        result = await PingProber().ping("")

        assert result.error == "resolution-failed"
