"""
Tests for domain sanitizing, resolver parsing and the effective resolver set.
"""

import pytest

from pulsenet.errors import InvalidDomain, InvalidServerAddress
from pulsenet.query_engine import sanitize_domain
from pulsenet.resolvers import (
    BUILTIN_RESOLVERS,
    build_resolver_set,
    builtin_addresses,
    parse_resolver_address,
)


class TestSanitizeDomain:

    @pytest.mark.parametrize("raw,expected", [
        ("example.com", "example.com"),
        ("  example.com  ", "example.com"),
        ("https://example.com/path?q=1#frag", "example.com"),
        ("http://example.com", "example.com"),
        ("example.com?x=1", "example.com"),
        ("example.com#top", "example.com"),
        ("sub.example.com/a/b", "sub.example.com"),
    ])
    def test_strips_scheme_path_query_fragment(self, raw, expected):
        assert sanitize_domain(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "https://", "http:///path", "/only/path", "?q=1"])
    def test_empty_after_stripping(self, raw):
        with pytest.raises(InvalidDomain):
            sanitize_domain(raw)


class TestParseResolverAddress:

    def test_bare_ipv4_defaults_to_53(self):
        resolver = parse_resolver_address("192.168.1.1")
        assert resolver.ip == "192.168.1.1"
        assert resolver.port == 53

    def test_ipv4_with_port(self):
        resolver = parse_resolver_address("10.0.0.53:5353")
        assert (resolver.ip, resolver.port) == ("10.0.0.53", 5353)
        assert resolver.address == "10.0.0.53:5353"

    def test_bare_ipv6(self):
        resolver = parse_resolver_address("2606:4700:4700::1111")
        assert resolver.port == 53
        assert resolver.is_ipv6

    def test_bracketed_ipv6_with_port(self):
        resolver = parse_resolver_address("[::1]:8053")
        assert (resolver.ip, resolver.port) == ("::1", 8053)
        assert resolver.address == "[::1]:8053"

    def test_builtin_keeps_its_name(self):
        assert parse_resolver_address("1.1.1.1").name == "Cloudflare"

    @pytest.mark.parametrize("text", [
        "",
        "dns.google",
        "1.1.1",
        "1.1.1.1:",
        "1.1.1.1:99999",
        "1.1.1.1:abc",
        "[::1]",
        "[nope]:53",
        "300.1.1.1",
    ])
    def test_invalid(self, text):
        with pytest.raises(InvalidServerAddress):
            parse_resolver_address(text)


class TestBuildResolverSet:

    def test_builtins_in_order(self):
        assert build_resolver_set() == [
            "8.8.8.8", "8.8.4.4",
            "1.1.1.1", "1.0.0.1",
            "9.9.9.9", "149.112.112.112",
            "208.67.222.222", "208.67.220.220",
        ]
        assert len(BUILTIN_RESOLVERS) == 8

    def test_custom_appended_after_builtins(self):
        servers = build_resolver_set(["192.168.1.1", "10.0.0.1:5353"])
        assert servers[:8] == builtin_addresses()
        assert servers[8:] == ["192.168.1.1", "10.0.0.1:5353"]

    def test_duplicates_suppressed_by_string(self):
        servers = build_resolver_set(["1.1.1.1", " 192.168.1.1 ", "192.168.1.1", "1.1.1.1:53"])
        assert servers[8:] == ["192.168.1.1", "1.1.1.1:53"]

    def test_blank_entries_skipped(self):
        assert build_resolver_set(["", "   "]) == builtin_addresses()

    def test_unparsable_entries_are_kept(self):
        assert build_resolver_set(["not-a-server"])[-1] == "not-a-server"
