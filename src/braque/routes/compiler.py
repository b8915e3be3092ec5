"""Route compiler.

Walks a RouteTable once and produces a flat EndpointTable of callable
endpoints. Every endpoint must have a handler registered under its
(section, operation) name; a route file and its implementation can never
drift apart silently because any gap aborts compilation.
"""

import re
from collections.abc import Callable, Iterator
from typing import Any

from braque.errors import BraqueError, ConfigurationError, ValidationError
from braque.logging import get_logger
from braque.result import CallResult, Callback
from braque.routes.model import EndpointSpec, ParamRef, RouteGroup, RouteTable, SharedDefines
from braque.validation import validate

log = get_logger("compiler")

Handler = Callable[[Any, dict, EndpointSpec, dict], Any]

_SEPARATOR = re.compile(r"[\s_-]+(.)")


def to_camel_case(text: str) -> str:
    """`get-all` -> `getAll`, `pull_requests` -> `pullRequests`."""
    text = _SEPARATOR.sub(lambda m: m.group(1).upper(), text.lower())
    return text[:1].lower() + text[1:]


def send_and_parse(client, message: dict, endpoint: EndpointSpec, extras: dict):
    """Generic handler: send the request and return the decoded JSON body."""
    return client.request(message, endpoint, extras)


class HandlerRegistry:
    """Explicit mapping of (section, operation) to a handler callable."""

    def __init__(self):
        self._handlers: dict[str, dict[str, Handler]] = {}

    def register(self, section: str, operation: str, handler: Handler) -> None:
        self._handlers.setdefault(section, {})[operation] = handler

    def get(self, section: str, operation: str) -> Handler | None:
        return self._handlers.get(section, {}).get(operation)

    def has_section(self, section: str) -> bool:
        return section in self._handlers

    def sections(self) -> list[str]:
        return list(self._handlers)

    def operations(self, section: str) -> list[str]:
        return list(self._handlers.get(section, {}))

    def __contains__(self, key: tuple[str, str]) -> bool:
        section, operation = key
        return self.get(section, operation) is not None


def default_handlers(routes: RouteTable) -> HandlerRegistry:
    """Registry with the generic send-and-parse handler for every endpoint."""
    registry = HandlerRegistry()
    for message_type, _ in iter_endpoints(routes):
        section, operation = endpoint_name(message_type)
        registry.register(section, operation, send_and_parse)
    return registry


class CompiledEndpoint:
    """One callable operation bound to its handler and parameter schema."""

    def __init__(
        self,
        section: str,
        operation: str,
        message_type: str,
        spec: EndpointSpec,
        handler: Handler,
        defines: SharedDefines,
    ):
        self.section = section
        self.operation = operation
        self.message_type = message_type
        self.spec = spec
        self.handler = handler
        self.defines = defines

    @property
    def route(self) -> str:
        return self.message_type.lstrip("/")

    def invoke(self, client, message: dict | None = None, extras=None, callback: Callback | None = None) -> CallResult:
        """Validate `message`, run the handler and report the outcome exactly once.

        `extras` is optional; when a callable is passed in its place it is
        taken as the callback.
        """
        if callable(extras) and callback is None:
            extras, callback = {}, extras
        extras = extras or {}
        message = dict(message or {})

        try:
            validate(message, self.spec.params, self.defines)
        except ValidationError as e:
            log.debug("Rejected call to %s: %s", self.route, e)
            return CallResult.failure(e).notify(callback)

        try:
            value = self.handler(client, message, self.spec, extras)
        except ConfigurationError:
            raise
        except BraqueError as e:
            log.debug("Call to %s failed: %s", self.route, e)
            return CallResult.failure(e, getattr(e, "response", None)).notify(callback)
        return CallResult.success(value).notify(callback)

    def __repr__(self) -> str:
        return f"<CompiledEndpoint {self.section}.{self.operation} {self.spec.method} {self.spec.url}>"


class EndpointTable:
    """Flat (section, operation) -> CompiledEndpoint table, read-only after compile."""

    def __init__(self, endpoints: dict[tuple[str, str], CompiledEndpoint]):
        self._endpoints = dict(endpoints)

    def get(self, section: str, operation: str) -> CompiledEndpoint | None:
        return self._endpoints.get((section, operation))

    def sections(self) -> list[str]:
        return list(dict.fromkeys(section for section, _ in self._endpoints))

    def operations(self, section: str) -> dict[str, CompiledEndpoint]:
        return {op: ep for (sec, op), ep in self._endpoints.items() if sec == section}

    def __len__(self) -> int:
        return len(self._endpoints)

    def __iter__(self) -> Iterator[CompiledEndpoint]:
        return iter(self._endpoints.values())


def iter_endpoints(routes: RouteTable) -> Iterator[tuple[str, EndpointSpec]]:
    """Depth-first walk yielding (message_type, endpoint) for every terminal node."""
    for name, group in routes.sections.items():
        yield from _walk(group, f"/{name}")


def _walk(node: RouteGroup | EndpointSpec, message_type: str) -> Iterator[tuple[str, EndpointSpec]]:
    if isinstance(node, EndpointSpec):
        yield message_type, node
        return
    for part, child in node.children.items():
        yield from _walk(child, f"{message_type}/{part}")


def endpoint_name(message_type: str) -> tuple[str, str]:
    """`/repos/get-all` -> (`repos`, `getAll`)."""
    parts = message_type.lstrip("/").split("/")
    return to_camel_case(parts[0]), to_camel_case("-".join(parts[1:]))


def compile_routes(routes: RouteTable, handlers: HandlerRegistry, version: str | None = None) -> EndpointTable:
    """Compile `routes` against `handlers`.

    Raises ConfigurationError listing every endpoint without a handler and
    every `$alias` missing from the defines block.
    """
    label = f" in version {version}" if version else ""
    compiled: dict[tuple[str, str], CompiledEndpoint] = {}
    missing: list[str] = []
    problems: list[str] = []

    for message_type, spec in iter_endpoints(routes):
        route = message_type.lstrip("/")
        section, operation = endpoint_name(message_type)

        for name, definition in spec.params.items():
            if isinstance(definition, ParamRef) and definition.alias not in routes.defines.params:
                problems.append(
                    f"route '{route}': param '{name}' refers to '${definition.alias}', not found in defines block"
                )

        if not handlers.has_section(section):
            missing.append(f"{section}.{operation}")
            problems.append(f"Unsupported route section '{section}', not implemented{label} for route '{route}'")
            continue
        handler = handlers.get(section, operation)
        if handler is None:
            missing.append(f"{section}.{operation}")
            problems.append(f"Unsupported route '{section}.{operation}', not implemented{label} for route '{route}'")
            continue

        if (section, operation) in compiled:
            other = compiled[(section, operation)].route
            problems.append(f"routes '{other}' and '{route}' both compile to '{section}.{operation}'")
            continue

        compiled[(section, operation)] = CompiledEndpoint(
            section, operation, message_type, spec, handler, routes.defines
        )

    if problems:
        raise ConfigurationError("; ".join(problems), missing=missing)

    log.debug("Compiled %d endpoints%s", len(compiled), label)
    return EndpointTable(compiled)
