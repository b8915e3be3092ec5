"""Authentication contexts.

Each supported scheme is a frozen model tagged by `type`; a client holds at
most one of them and replaces it wholesale on every `authenticate()` call.
"""

from collections.abc import Callable
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as ModelError

from braque.errors import ConfigurationError


class _Auth(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class BasicAuth(_Auth):
    type: Literal["basic"] = "basic"
    username: str
    password: str


class TokenAuth(_Auth):
    """Basic auth with a `username/token:token` credential."""

    type: Literal["token"] = "token"
    username: str
    token: str


class ApiKeyAuth(_Auth):
    type: Literal["apikey"] = "apikey"
    api_key: str


class OAuth2Auth(_Auth):
    type: Literal["oauth"] = "oauth"
    token: str


class OAuth1Auth(_Auth):
    """Two- or three-legged OAuth 1.0 request signing ("xauth")."""

    type: Literal["xauth"] = "xauth"
    consumer_key: str
    consumer_secret: str
    token: str | None = Field(default=None, validation_alias=AliasChoices("token", "access_token"))
    token_secret: str | None = Field(
        default=None, validation_alias=AliasChoices("token_secret", "access_token_secret")
    )
    signature_method: Literal["HMAC-SHA1", "PLAINTEXT"] = "HMAC-SHA1"
    nonce_length: int = Field(default=16, gt=0)
    realm: str | None = None


class CustomAuth(_Auth):
    """Caller-supplied signer: custom(client, method, full_url, extras) -> header value."""

    type: Literal["custom"] = "custom"
    custom: Callable[..., Any]


AuthContext = Annotated[
    Union[BasicAuth, TokenAuth, ApiKeyAuth, OAuth2Auth, OAuth1Auth, CustomAuth],
    Field(discriminator="type"),
]

_adapter = TypeAdapter(AuthContext)

AUTH_TYPES = ("basic", "token", "apikey", "oauth", "xauth", "custom")

_REQUIREMENTS = {
    "basic": (("username", "password"), "Basic authentication requires both a username and password to be set"),
    "token": (("username", "token"), "Token authentication requires both a username and token to be set"),
    "apikey": (("api_key",), "API key authentication requires an api_key to be set"),
    "oauth": (("token",), "OAuth2 authentication requires a token to be set"),
    "xauth": (
        ("consumer_key", "consumer_secret"),
        "XAuth authentication requires both an Consumer Key and Consumer Secret to be set",
    ),
    "custom": (("custom",), "Custom authentication requires a custom signing function to be set"),
}


def parse_auth_options(options: dict | None):
    """Turn `authenticate()` options into an auth context (None clears auth)."""
    if not options:
        return None

    auth_type = options.get("type")
    if auth_type not in AUTH_TYPES:
        raise ConfigurationError(
            "Invalid authentication type, must be one of " + ", ".join(f"'{t}'" for t in AUTH_TYPES) + "."
        )

    fields, message = _REQUIREMENTS[auth_type]
    if not all(options.get(f) for f in fields):
        raise ConfigurationError(message)
    if auth_type == "custom" and not callable(options["custom"]):
        raise ConfigurationError(message)

    try:
        return _adapter.validate_python(options)
    except ModelError as e:
        raise ConfigurationError(f"Invalid {auth_type} authentication options: {e}") from e
