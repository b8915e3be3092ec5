from pathlib import Path

import pytest

from braque.config import DEFAULT_USER_AGENT, ClientConfig, ProxyConfig

ENV_VARS = [
    "BRAQUE_ROUTE_FILE", "BRAQUE_VERSION", "BRAQUE_URL", "BRAQUE_PROTOCOL", "BRAQUE_HOST",
    "BRAQUE_PORT", "BRAQUE_TIMEOUT", "BRAQUE_DEBUG", "BRAQUE_PROXY_HOST", "BRAQUE_PROXY_PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestClientConfig:
    def test_defaults(self):
        config = ClientConfig()
        assert config.host is None
        assert config.timeout is None
        assert config.debug is False
        assert config.user_agent == DEFAULT_USER_AGENT

    def test_frozen(self):
        config = ClientConfig(host="h")
        with pytest.raises(Exception):
            config.host = "other"

    def test_on_headers_hook(self):
        hook = lambda headers: headers.update({"x-extra": "1"})
        assert ClientConfig(on_headers=hook).on_headers is hook


class TestFromEnv:
    def test_empty_environment(self):
        config = ClientConfig.from_env()
        assert config == ClientConfig()

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("BRAQUE_ROUTE_FILE", "/tmp/routes.json")
        monkeypatch.setenv("BRAQUE_VERSION", "3.0.0")
        monkeypatch.setenv("BRAQUE_URL", "/api")
        monkeypatch.setenv("BRAQUE_PROTOCOL", "http")
        monkeypatch.setenv("BRAQUE_HOST", "localhost")
        monkeypatch.setenv("BRAQUE_PORT", "8080")
        monkeypatch.setenv("BRAQUE_TIMEOUT", "2.5")
        monkeypatch.setenv("BRAQUE_DEBUG", "TRUE")

        config = ClientConfig.from_env()

        assert config.route_file == Path("/tmp/routes.json")
        assert config.version == "3.0.0"
        assert config.url == "/api"
        assert config.protocol == "http"
        assert config.host == "localhost"
        assert config.port == 8080
        assert config.timeout == 2.5
        assert config.debug is True
        assert config.proxy is None

    def test_proxy(self, monkeypatch):
        monkeypatch.setenv("BRAQUE_PROXY_HOST", "proxy.local")
        assert ClientConfig.from_env().proxy == ProxyConfig(host="proxy.local", port=3128)

        monkeypatch.setenv("BRAQUE_PROXY_PORT", "8888")
        assert ClientConfig.from_env().proxy.port == 8888

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("BRAQUE_HOST", "from-env")
        config = ClientConfig.from_env(host="explicit", port=9000)
        assert config.host == "explicit"
        assert config.port == 9000
