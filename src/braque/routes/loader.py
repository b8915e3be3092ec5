"""Route file loader.

Reads a JSON or YAML route file and deserializes it into a RouteTable,
deciding for every node whether it is an endpoint or a nested group.
"""

import json
import re
from pathlib import Path

import yaml
from pydantic import ValidationError as ModelError

from braque.errors import ConfigurationError
from braque.routes.model import (
    Constants,
    EndpointSpec,
    ParamDef,
    ParamRef,
    RouteGroup,
    RouteTable,
    SharedDefines,
)

DEFINES_KEY = "defines"


def load_routes(file_path: Path) -> RouteTable:
    """Load a route file, picking the parser from its suffix."""
    file_path = Path(file_path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read route file {file_path}: {e}") from e

    suffix = file_path.suffix.lower()
    try:
        if suffix == ".json":
            data = json.loads(text)
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = _detect_and_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Malformed route file {file_path}: {e}") from e

    return parse_routes(data)


def _detect_and_load(text: str):
    # YAML is a superset of JSON, so try it first and fall back for the
    # few JSON documents YAML rejects (e.g. tabs in indentation).
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return json.loads(text)


def parse_routes(data: dict) -> RouteTable:
    """Build a RouteTable from an already decoded route document."""
    if not isinstance(data, dict):
        raise ConfigurationError("Route file must contain a mapping at the top level")

    defines = _parse_defines(data.get(DEFINES_KEY) or {})
    sections: dict[str, RouteGroup] = {}
    for name, block in data.items():
        if name == DEFINES_KEY or not block:
            continue
        node = _parse_node(block, f"/{name}")
        if isinstance(node, EndpointSpec):
            raise ConfigurationError(f"Endpoint '{name}' must be nested under a section")
        sections[name] = node

    return RouteTable(defines=defines, sections=sections)


def is_endpoint(block: dict) -> bool:
    """A block is an endpoint when it carries both a URL and a params schema."""
    return isinstance(block, dict) and "url" in block and "params" in block


def _parse_node(block, message_type: str) -> RouteGroup | EndpointSpec:
    if not isinstance(block, dict):
        raise ConfigurationError(f"Route block '{message_type}' must be a mapping, got {type(block).__name__}")

    if is_endpoint(block):
        return _parse_endpoint(block, message_type)

    children = {}
    for part, child in block.items():
        if not child:
            continue
        children[part] = _parse_node(child, f"{message_type}/{part}")
    return RouteGroup(children=children)


def _parse_endpoint(block: dict, message_type: str) -> EndpointSpec:
    params = _parse_params(block.get("params") or {}, message_type)
    try:
        return EndpointSpec(
            url=block["url"],
            method=str(block.get("method", "GET")).upper(),
            params=params,
            request_format=block.get("requestFormat"),
            description=block.get("description", ""),
        )
    except ModelError as e:
        raise ConfigurationError(f"Invalid endpoint '{message_type}': {e}") from e


def _parse_params(params: dict, message_type: str) -> dict[str, ParamDef | ParamRef]:
    result: dict[str, ParamDef | ParamRef] = {}
    for key, value in params.items():
        if key.startswith("$"):
            result[key[1:]] = ParamRef(alias=key[1:])
        elif isinstance(value, str) and value.startswith("$"):
            result[key] = ParamRef(alias=value[1:])
        else:
            result[key] = _parse_param_def(value or {}, f"{message_type}:{key}")
    return result


def _parse_param_def(value, where: str) -> ParamDef:
    if not isinstance(value, dict):
        raise ConfigurationError(f"Parameter definition '{where}' must be a mapping")
    try:
        param = ParamDef(**value)
    except ModelError as e:
        raise ConfigurationError(f"Invalid parameter definition '{where}': {e}") from e

    if param.validation:
        try:
            re.compile(param.validation)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid validation pattern for parameter '{where}': {param.validation!r} ({e})"
            ) from e
    return param


def _parse_defines(defines: dict) -> SharedDefines:
    params = {
        name: _parse_param_def(value or {}, f"defines:{name}")
        for name, value in (defines.get("params") or {}).items()
    }
    try:
        constants = Constants(**(defines.get("constants") or {}))
    except ModelError as e:
        raise ConfigurationError(f"Invalid defines.constants: {e}") from e
    return SharedDefines(constants=constants, params=params)
