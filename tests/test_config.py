import pytest

from pulsenet import __version__
from pulsenet.config import EngineConfig


def test_defaults():
    config = EngineConfig()

    assert config.dns_timeout_ms == 4000
    assert config.dns_timeout_s == 4.0
    assert config.ping_timeout_s == 2.0
    assert config.ping_payload_bytes == 32
    assert config.latency_samples == 5
    assert config.download_bytes == 10 * 1024 * 1024
    assert config.upload_bytes == 5 * 1024 * 1024
    assert config.adapter_cache_ttl_ms == 5000
    assert config.current_version == __version__


def test_release_urls():
    config = EngineConfig(release_repo="acme/tool")

    assert config.releases_latest_url == "https://api.github.com/repos/acme/tool/releases/latest"
    assert config.releases_list_url.startswith("https://api.github.com/repos/acme/tool/releases")
    assert config.releases_page_url == "https://github.com/acme/tool/releases/latest"


def test_overrides_skip_none():
    config = EngineConfig().with_overrides(dns_timeout_ms=1500, ping_timeout_s=None)

    assert config.dns_timeout_ms == 1500
    assert config.ping_timeout_s == 2.0


def test_overrides_reject_unknown_fields():
    with pytest.raises(ValueError):
        EngineConfig().with_overrides(dns_timeout=1)
