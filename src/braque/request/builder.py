"""Request builder.

Turns a validated message and its endpoint into a transport-ready
RequestSpec: URL template substitution, query string or body encoding,
multipart file fields, authentication and the caller's header hook.
"""

import re
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel

from braque.auth.signing import apply_auth
from braque.config import ClientConfig
from braque.encoding import as_text, percent_encode, to_json
from braque.errors import ConfigurationError
from braque.routes.model import EndpointSpec, SharedDefines
from braque.validation import resolve_param

DEFAULT_PORTS = {"http": 80, "https": 443}

# A parameter named "body" replaces the whole JSON payload with its value.
BODY_PARAM = "body"


class RequestSpec(BaseModel):
    """Everything the transport needs to perform one request."""

    method: str
    url: str
    headers: dict[str, str] = {}
    body: str | bytes | None = None
    data: dict[str, str] = {}  # multipart form fields
    files: dict[str, Any] = {}  # multipart field -> file path


def request_format(endpoint: EndpointSpec, defines: SharedDefines) -> str:
    """`json`, or `query` (url-encoded) for endpoints without a body or a format."""
    if not endpoint.has_body:
        return "query"
    return endpoint.request_format or defines.constants.request_format or "query"


def substitute_url(url: str, name: str, value) -> str:
    """Replace the `:name` token in `url`, leaving longer names like `:name2` alone."""
    encoded = percent_encode(_flatten(value))
    return re.sub(rf":{re.escape(name)}(?![A-Za-z0-9_])", lambda _: encoded, url)


def split_params(message: dict, endpoint: EndpointSpec, defines: SharedDefines, fmt: str):
    """Split declared parameters into (url, fields, files).

    URL template tokens are substituted and consumed; file parameters of
    body-carrying requests go to `files`; everything else ends up in `fields`.
    """
    url = endpoint.url
    fields: dict[str, Any] = {}
    files: dict[str, Any] = {}

    for name, definition in endpoint.params.items():
        if name not in message or message[name] is None:
            continue
        value = message[name]

        if re.search(rf":{re.escape(name)}(?![A-Za-z0-9_])", url):
            url = substitute_url(url, name, value)
            continue

        param = resolve_param(name, definition, defines)
        if endpoint.has_body and (param.type or "").lower() == "file":
            if isinstance(value, dict):
                files.update(value)
            else:
                files[name] = value
            continue

        fields[name] = value if fmt == "json" else _flatten(value)

    return url, fields, files


def encode_query(fields: dict) -> str:
    return "&".join(f"{percent_encode(k)}={percent_encode(v)}" for k, v in fields.items())


def resolve_target(config: ClientConfig, defines: SharedDefines) -> tuple[str, str, int]:
    """(protocol, host, port), config first, then route-file constants."""
    constants = defines.constants
    protocol = config.protocol or constants.protocol or "http"
    host = config.host or constants.host
    if not host:
        raise ConfigurationError("No host configured: set it on the client or in defines.constants")
    port = config.port or constants.port or DEFAULT_PORTS.get(protocol, 80)
    return protocol, host, port


def base_headers(host: str, config: ClientConfig) -> dict[str, str]:
    return {
        "host": host,
        "user-agent": config.user_agent,
        "content-length": "0",
    }


def build_request(
    message: dict,
    endpoint: EndpointSpec,
    auth,
    defines: SharedDefines,
    config: ClientConfig,
    extras: dict | None = None,
    client=None,
) -> RequestSpec:
    """Build the RequestSpec for one call of `endpoint` with a validated `message`."""
    method = endpoint.method.upper()
    fmt = request_format(endpoint, defines)
    path, fields, files = split_params(message, endpoint, defines, fmt)

    path = (config.url or "") + path
    if not endpoint.has_body and fields:
        path = f"{path}?{encode_query(fields)}"

    protocol, host, port = resolve_target(config, defines)
    netloc = host if port == DEFAULT_PORTS.get(protocol) else f"{host}:{port}"
    url = f"{protocol}://{netloc}{path}"

    headers = base_headers(host, config)
    body = None
    data: dict[str, str] = {}

    if endpoint.has_body:
        payload = fields
        if fmt == "json" and BODY_PARAM in payload:
            payload = payload[BODY_PARAM]

        if files:
            # requests sets the multipart content type and length
            del headers["content-length"]
            if isinstance(payload, dict):
                data = {k: _flatten(v) for k, v in payload.items()}
        else:
            body = to_json(payload) if fmt == "json" else encode_query(payload)
            headers["content-length"] = str(len(body.encode("utf-8")))
            headers["content-type"] = "application/json" if fmt == "json" else "application/x-www-form-urlencoded"

    url = apply_auth(auth, method, url, headers, client=client, extras=extras)
    if config.on_headers is not None:
        config.on_headers(headers)

    return RequestSpec(method=method, url=url, headers=headers, body=body, data=data, files=files)


def build_page_request(url: str, auth, config: ClientConfig, extras: dict | None = None, client=None) -> RequestSpec:
    """GET RequestSpec for an absolute URL taken from a `Link` header."""
    headers = base_headers(urlsplit(url).hostname or "", config)
    url = apply_auth(auth, "GET", url, headers, client=client, extras=extras)
    if config.on_headers is not None:
        config.on_headers(headers)
    return RequestSpec(method="GET", url=url, headers=headers)


def _flatten(value) -> str:
    """Text for a query/form value; objects are JSON-stringified first."""
    if isinstance(value, (dict, list, tuple)):
        return to_json(value)
    return as_text(value)
