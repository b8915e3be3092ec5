"""Pagination links from the `Link` response header.

Link header format:
    <https://api.example.com/users?page=2>; rel="next", <https://api.example.com/users?page=5>; rel="last"
"""

import re

RELATIONS = ("next", "prev", "first", "last")

_LINK = re.compile(r'<([^>]*)>;\s*rel="(\w*)"')


def link_header(source) -> str | None:
    """Extract the raw header from a string, a result dict or a result with `.meta`."""
    if isinstance(source, str):
        return source
    if isinstance(source, dict):
        link = source.get("link") or (source.get("meta") or {}).get("link")
        return link if isinstance(link, str) else None
    meta = getattr(source, "meta", None)
    if isinstance(meta, dict) and isinstance(meta.get("link"), str):
        return meta["link"]
    return None


def parse_links(source) -> dict[str, str]:
    """Map of relation -> URL; unknown relations are dropped, no header gives {}."""
    header = link_header(source)
    if not header:
        return {}
    return {rel: uri for uri, rel in _LINK.findall(header) if rel in RELATIONS}


def has_next_page(source) -> bool:
    return "next" in parse_links(source)


def has_previous_page(source) -> bool:
    return "prev" in parse_links(source)


def has_first_page(source) -> bool:
    return "first" in parse_links(source)


def has_last_page(source) -> bool:
    return "last" in parse_links(source)
