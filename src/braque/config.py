"""Client configuration.

Values set here take precedence over the `defines.constants` block of the
route file.
"""

import os
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

DEFAULT_USER_AGENT = "braque HTTP client"


class ProxyConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port: int = 3128


class ClientConfig(BaseModel):
    """Everything a client needs besides the route table itself."""

    model_config = ConfigDict(frozen=True)

    route_file: Path | None = None
    version: str | None = None  # label used in diagnostics
    url: str | None = None  # path prefix for every endpoint URL
    protocol: str | None = None
    host: str | None = None
    port: int | None = None
    proxy: ProxyConfig | None = None
    timeout: float | None = None  # seconds, enforced by the transport
    debug: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    on_headers: Callable[[dict], None] | None = None  # last look at outgoing headers

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """Build a config from BRAQUE_* environment variables.

        Environment variables:
            BRAQUE_ROUTE_FILE, BRAQUE_VERSION, BRAQUE_URL, BRAQUE_PROTOCOL,
            BRAQUE_HOST, BRAQUE_PORT, BRAQUE_TIMEOUT (seconds),
            BRAQUE_DEBUG ("true"/"false"), BRAQUE_PROXY_HOST, BRAQUE_PROXY_PORT

        Keyword arguments override whatever the environment provides.
        """
        values = {
            "route_file": os.getenv("BRAQUE_ROUTE_FILE"),
            "version": os.getenv("BRAQUE_VERSION"),
            "url": os.getenv("BRAQUE_URL"),
            "protocol": os.getenv("BRAQUE_PROTOCOL"),
            "host": os.getenv("BRAQUE_HOST"),
            "port": os.getenv("BRAQUE_PORT"),
            "timeout": os.getenv("BRAQUE_TIMEOUT"),
            "debug": os.getenv("BRAQUE_DEBUG", "false").lower() == "true",
        }
        proxy_host = os.getenv("BRAQUE_PROXY_HOST")
        if proxy_host:
            values["proxy"] = ProxyConfig(host=proxy_host, port=int(os.getenv("BRAQUE_PROXY_PORT", "3128")))

        values = {k: v for k, v in values.items() if v is not None}
        values.update(overrides)
        return cls(**values)
