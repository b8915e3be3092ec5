"""OAuth 1.0 request signing (RFC 5849).

References:
  - Signature base string: https://tools.ietf.org/html/rfc5849#section-3.4.1
  - Percent encoding: https://tools.ietf.org/html/rfc5849#section-3.6
  - Authorization header: https://tools.ietf.org/html/rfc5849#section-3.5.1
"""

import base64
import hashlib
import hmac
import secrets
import string
import time
from urllib.parse import parse_qsl

from braque.auth.context import OAuth1Auth
from braque.encoding import percent_encode

NONCE_CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits


def make_nonce(length: int = 16) -> str:
    """Random alphanumeric string."""
    return "".join(secrets.choice(NONCE_CHARS) for _ in range(length))


def make_timestamp() -> str:
    """Seconds since the epoch."""
    return str(int(time.time()))


def normalize_url(url: str) -> str:
    """The URL without its query string."""
    return url.split("?", 1)[0]


def query_params_from_url(url: str) -> dict[str, str]:
    """Decoded query parameters already present on `url`."""
    if "?" not in url:
        return {}
    return dict(parse_qsl(url.split("?", 1)[1], keep_blank_values=True))


def normalize_params(params: dict) -> str:
    """Encode every key and value, sort, and join as `k=v&k=v`."""
    pairs = sorted((percent_encode(k), percent_encode(v)) for k, v in params.items())
    return "&".join(f"{k}={v}" for k, v in pairs)


def base_string(method: str, url: str, normalized_params: str) -> str:
    return "&".join([method.upper(), percent_encode(normalize_url(url)), percent_encode(normalized_params)])


def signing_key(consumer_secret: str, token_secret: str | None = None) -> str:
    return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret or '')}"


def hmac_sha1(key: str, text: str) -> str:
    digest = hmac.new(key.encode("utf-8"), text.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def sign(
    oauth_params: dict,
    method: str,
    url: str,
    consumer_secret: str,
    token_secret: str | None = None,
) -> str:
    """Compute `oauth_signature` for the signature method named in `oauth_params`."""
    signature_method = oauth_params.get("oauth_signature_method", "HMAC-SHA1")

    if signature_method == "PLAINTEXT":
        return f"{consumer_secret}%26{token_secret or ''}"

    if signature_method == "HMAC-SHA1":
        # OAuth parameters win over same-named query parameters.
        params = {**query_params_from_url(url), **oauth_params}
        base = base_string(method or "POST", url, normalize_params(params))
        return hmac_sha1(signing_key(consumer_secret, token_secret), base)

    raise ValueError(f"Unsupported OAuth signature method: {signature_method}")


def authorization_header(oauth_params: dict, realm: str | None = None) -> str:
    """`OAuth key="value", ...` with every value percent-encoded."""
    parts = []
    if realm is not None:
        parts.append(f'realm="{percent_encode(realm)}"')
    parts.extend(f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in oauth_params.items())
    return "OAuth " + ", ".join(parts)


def oauth1_header(
    auth: OAuth1Auth,
    method: str,
    url: str,
    nonce: str | None = None,
    timestamp: str | None = None,
) -> str:
    """Build the full Authorization header value for one request."""
    params = {}
    if auth.token:
        params["oauth_token"] = auth.token
    params["oauth_version"] = "1.0"
    params["oauth_consumer_key"] = auth.consumer_key
    params["oauth_signature_method"] = auth.signature_method
    params["oauth_nonce"] = nonce or make_nonce(auth.nonce_length)
    params["oauth_timestamp"] = str(timestamp or make_timestamp())

    params["oauth_signature"] = sign(params, method, url, auth.consumer_secret, auth.token_secret)
    return authorization_header(params, realm=auth.realm)
