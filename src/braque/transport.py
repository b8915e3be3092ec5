"""HTTP transport built on requests.

The client only depends on the `Transport` protocol; RequestsTransport is
the default implementation and tests substitute their own.
"""

from contextlib import ExitStack
from typing import Protocol

import requests
from pydantic import BaseModel

from braque.config import ProxyConfig
from braque.errors import TransportError
from braque.request.builder import RequestSpec


class TransportResponse(BaseModel):
    status: int
    headers: dict[str, str] = {}  # lower-cased names
    body: str = ""


class Transport(Protocol):
    def send(self, spec: RequestSpec, timeout: float | None = None) -> TransportResponse: ...


def proxy_mapping(proxy: ProxyConfig | None) -> dict[str, str] | None:
    if proxy is None:
        return None
    address = f"http://{proxy.host}:{proxy.port}"
    return {"http": address, "https": address}


class RequestsTransport:
    """Sends a RequestSpec through a requests.Session."""

    def __init__(self, session: requests.Session | None = None, proxies: dict[str, str] | None = None):
        self.session = session or requests.Session()
        self.proxies = proxies

    def send(self, spec: RequestSpec, timeout: float | None = None) -> TransportResponse:
        with ExitStack() as stack:
            files = {field: self._open(stack, source) for field, source in spec.files.items()}
            data = spec.body if spec.body is not None else (spec.data or None)
            try:
                response = self.session.request(
                    spec.method,
                    spec.url,
                    headers=spec.headers,
                    data=data,
                    files=files or None,
                    timeout=timeout,
                    proxies=self.proxies,
                )
            except requests.RequestException as e:
                raise TransportError(str(e), original_error=e) from e

        return TransportResponse(
            status=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            body=response.text,
        )

    def _open(self, stack: ExitStack, source):
        if hasattr(source, "read"):
            return source
        try:
            return stack.enter_context(open(source, "rb"))
        except OSError as e:
            raise TransportError(f"Cannot open file {source}: {e}", original_error=e) from e
