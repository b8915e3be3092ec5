"""Data models for a loaded route table.

The loader turns a JSON/YAML route file into these models; the compiler and
the request builder only ever see this shape, never the raw file.
"""

from typing import Union

from pydantic import BaseModel, ConfigDict, Field

PARAM_TYPES = ("string", "number", "float", "json", "date", "file")


class ParamDef(BaseModel):
    """Validation rules for a single message parameter."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: str | None = None  # string / number / float / json / date / file
    required: bool = False
    validation: str | None = None  # regex the trimmed value must match
    description: str = ""


class ParamRef(BaseModel):
    """A parameter whose definition lives in `defines.params` under `alias`."""

    model_config = ConfigDict(frozen=True)

    alias: str


class Constants(BaseModel):
    """Connection defaults from `defines.constants`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    protocol: str | None = None
    host: str | None = None
    port: int | None = None
    request_format: str | None = Field(default=None, alias="requestFormat")


class SharedDefines(BaseModel):
    model_config = ConfigDict(frozen=True)

    constants: Constants = Constants()
    params: dict[str, ParamDef] = {}


class EndpointSpec(BaseModel):
    """A terminal route: one callable operation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str  # /repos/:user/:repo
    method: str = "GET"
    params: dict[str, ParamDef | ParamRef] = {}
    request_format: str | None = Field(default=None, alias="requestFormat")
    description: str = ""

    @property
    def has_body(self) -> bool:
        return self.method.upper() not in ("HEAD", "GET", "DELETE")


class RouteGroup(BaseModel):
    """A non-terminal route node: path segment -> child node."""

    model_config = ConfigDict(frozen=True)

    children: dict[str, Union["RouteGroup", EndpointSpec]] = {}


class RouteTable(BaseModel):
    """A whole route file: shared definitions plus one group per section."""

    model_config = ConfigDict(frozen=True)

    defines: SharedDefines = SharedDefines()
    sections: dict[str, RouteGroup] = {}


RouteGroup.model_rebuild()
