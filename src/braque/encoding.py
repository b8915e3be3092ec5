"""Canonical text forms shared by the request builder and the signers."""

import json
from datetime import datetime
from urllib.parse import quote


def percent_encode(value) -> str:
    """Percent-encode per RFC 3986: everything but ALPHA / DIGIT / "-" / "." / "_" / "~".

    Unlike a plain URI component encoder this also escapes ! ' ( ) *.
    """
    return quote(as_text(value), safe="~")


def as_text(value) -> str:
    """Textual form of a parameter value, as it appears on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if value is None:
        return ""
    return str(value)


def _json_default(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def to_json(value) -> str:
    """JSON text for a body or an object-valued parameter."""
    return json.dumps(value, default=_json_default, separators=(",", ":"))
