"""Client facade.

Loads and compiles a route table, exposes every section as an attribute
(`client.repos.get(...)`) and wires the builder and signers to the
transport. Every operation returns a CallResult and, when given a callback,
calls it exactly once with (error, value).
"""

import json
import logging
from functools import partial

from braque.auth.context import parse_auth_options
from braque.config import ClientConfig
from braque.errors import BraqueError, ConfigurationError, HttpError, InternalServerError, NotFound
from braque.logging import configure_logging, get_logger
from braque.pagination import (
    has_first_page,
    has_last_page,
    has_next_page,
    has_previous_page,
    parse_links,
)
from braque.request.builder import RequestSpec, build_page_request, build_request, resolve_target
from braque.result import CallResult, Callback
from braque.routes.compiler import CompiledEndpoint, HandlerRegistry, compile_routes, default_handlers
from braque.routes.loader import load_routes
from braque.routes.model import EndpointSpec, RouteTable
from braque.transport import RequestsTransport, Transport, TransportResponse, proxy_mapping

log = get_logger("client")

META_HEADERS = ("x-ratelimit-limit", "x-ratelimit-remaining", "x-oauth-scopes", "link")


class MetaList(list):
    """A JSON array result; response metadata lives in `.meta`."""

    def __init__(self, items=(), meta: dict | None = None):
        super().__init__(items)
        self.meta = meta or {}


def is_error_status(status: int) -> bool:
    return 400 <= status < 600 or status < 10


def parse_response(response: TransportResponse):
    """Decode the JSON body and attach rate-limit and pagination headers as `meta`."""
    try:
        value = json.loads(response.body) if response.body else None
    except ValueError as e:
        raise InternalServerError(str(e), response=response) from e

    meta = {h: response.headers[h] for h in META_HEADERS if response.headers.get(h)}
    if value is None:
        value = {}
    if isinstance(value, dict):
        if not isinstance(value.get("meta"), dict):
            value["meta"] = {}
        value["meta"].update(meta)
    elif isinstance(value, list):
        value = MetaList(value, meta)
    return value


class SectionApi:
    """The operations of one route section, bound to a client."""

    def __init__(self, client: "Client", name: str, endpoints: dict[str, CompiledEndpoint]):
        self._client = client
        self._name = name
        self._endpoints = endpoints

    def __getattr__(self, operation: str):
        endpoint = self.__dict__.get("_endpoints", {}).get(operation)
        if endpoint is None:
            raise AttributeError(f"Section '{self._name}' has no operation '{operation}'")
        return partial(endpoint.invoke, self._client)

    def __dir__(self):
        return list(self._endpoints) + list(super().__dir__())

    @property
    def operations(self) -> list[str]:
        return list(self._endpoints)


class Client:
    """REST client generated from a route table."""

    def __init__(
        self,
        config: ClientConfig,
        handlers: HandlerRegistry | None = None,
        transport: Transport | None = None,
        routes: RouteTable | None = None,
    ):
        self.config = config
        if config.debug:
            configure_logging(logging.DEBUG)

        if routes is None:
            if config.route_file is None:
                raise ConfigurationError("No route table given and no route_file configured")
            routes = load_routes(config.route_file)
        self.routes = routes
        self.defines = routes.defines
        resolve_target(config, self.defines)
        self.transport = transport or RequestsTransport(proxies=proxy_mapping(config.proxy))
        self.auth = None

        self.endpoints = compile_routes(routes, handlers or default_handlers(routes), version=config.version)
        self._sections: dict[str, SectionApi] = {}
        for section in self.endpoints.sections():
            if hasattr(self, section):
                raise ConfigurationError(f"Route section '{section}' clashes with a client attribute")
            api = SectionApi(self, section, self.endpoints.operations(section))
            self._sections[section] = api
            setattr(self, section, api)

    def get_api(self, section: str) -> SectionApi:
        try:
            return self._sections[section]
        except KeyError:
            raise AttributeError(f"No route section '{section}'") from None

    def authenticate(self, options: dict | None = None) -> None:
        """Set (or with None, clear) the authentication used for every request.

        Example:
            client.authenticate({"type": "basic", "username": "me", "password": "secret"})
            client.authenticate({"type": "oauth", "token": "e5a4a27487c26e57"})
            client.authenticate({"type": "xauth", "consumer_key": "k", "consumer_secret": "s"})
        """
        self.auth = parse_auth_options(options)

    # -- request pipeline -----------------------------------------------------

    def build(self, message: dict, endpoint: EndpointSpec, extras: dict | None = None) -> RequestSpec:
        return build_request(message, endpoint, self.auth, self.defines, self.config, extras=extras, client=self)

    def http_send(self, message: dict, endpoint: EndpointSpec, extras: dict | None = None) -> TransportResponse:
        """Build and send one request; error statuses raise HttpError."""
        return self._send(self.build(message, endpoint, extras))

    def request(self, message: dict, endpoint: EndpointSpec, extras: dict | None = None):
        """Send one request and return the decoded body with its `meta`."""
        return parse_response(self.http_send(message, endpoint, extras))

    def _send(self, spec: RequestSpec) -> TransportResponse:
        log.debug("REQUEST: %s %s headers=%s", spec.method, spec.url, spec.headers)
        if spec.body:
            log.debug("REQUEST BODY: %s", spec.body)

        response = self.transport.send(spec, timeout=self.config.timeout)

        log.debug("STATUS: %s", response.status)
        log.debug("HEADERS: %s", response.headers)
        if is_error_status(response.status):
            raise HttpError(response.body, code=response.status)
        return response

    # -- pagination -----------------------------------------------------------

    @staticmethod
    def has_next_page(link) -> bool:
        return has_next_page(link)

    @staticmethod
    def has_previous_page(link) -> bool:
        return has_previous_page(link)

    @staticmethod
    def has_first_page(link) -> bool:
        return has_first_page(link)

    @staticmethod
    def has_last_page(link) -> bool:
        return has_last_page(link)

    def get_next_page(self, link, callback: Callback | None = None) -> CallResult:
        return self._get_page(link, "next", callback)

    def get_previous_page(self, link, callback: Callback | None = None) -> CallResult:
        return self._get_page(link, "prev", callback)

    def get_first_page(self, link, callback: Callback | None = None) -> CallResult:
        return self._get_page(link, "first", callback)

    def get_last_page(self, link, callback: Callback | None = None) -> CallResult:
        return self._get_page(link, "last", callback)

    def _get_page(self, link, which: str, callback: Callback | None) -> CallResult:
        url = parse_links(link).get(which)
        if not url:
            return CallResult.failure(NotFound(f"No {which} page found")).notify(callback)

        try:
            spec = build_page_request(url, self.auth, self.config, client=self)
            value = parse_response(self._send(spec))
        except BraqueError as e:
            log.debug("Fetching %s page failed: %s", which, e)
            return CallResult.failure(e, getattr(e, "response", None)).notify(callback)
        return CallResult.success(value).notify(callback)
