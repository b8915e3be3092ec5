"""Apply an auth context to an outgoing request.

Header-based schemes set `authorization`; key/token schemes append a query
parameter to the URL instead.
"""

import base64

from braque.auth.context import (
    ApiKeyAuth,
    BasicAuth,
    CustomAuth,
    OAuth1Auth,
    OAuth2Auth,
    TokenAuth,
)
from braque.auth.oauth1 import oauth1_header
from braque.encoding import percent_encode
from braque.logging import get_logger

log = get_logger("auth")

CUSTOM_AUTH_ERROR = "ERROR IN CUSTOM"


def basic_credentials(user: str, secret: str) -> str:
    token = base64.b64encode(f"{user}:{secret}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def append_query(url: str, name: str, value: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{name}={value}"


def _custom_header(auth: CustomAuth, method: str, url: str, client, extras: dict | None) -> str:
    try:
        value = auth.custom(client, method, url, extras or {})
    except Exception:
        log.warning("Custom auth function failed for %s %s", method, url, exc_info=True)
        return CUSTOM_AUTH_ERROR
    if not isinstance(value, str):
        log.warning(
            "Custom auth function returned %s instead of a header string for %s %s",
            type(value).__name__, method, url,
        )
        return CUSTOM_AUTH_ERROR
    return value


def apply_auth(auth, method: str, url: str, headers: dict, client=None, extras: dict | None = None) -> str:
    """Sign the request described by (method, url, headers).

    `headers` is updated in place; the possibly extended URL is returned.
    """
    if auth is None:
        return url

    if isinstance(auth, BasicAuth):
        headers["authorization"] = basic_credentials(auth.username, auth.password)
    elif isinstance(auth, TokenAuth):
        headers["authorization"] = basic_credentials(f"{auth.username}/token", auth.token)
    elif isinstance(auth, ApiKeyAuth):
        url = append_query(url, "api_key", percent_encode(auth.api_key))
    elif isinstance(auth, OAuth2Auth):
        url = append_query(url, "access_token", percent_encode(auth.token))
    elif isinstance(auth, OAuth1Auth):
        headers["authorization"] = oauth1_header(auth, method, url)
    elif isinstance(auth, CustomAuth):
        headers["authorization"] = _custom_header(auth, method, url, client, extras)
    return url
