"""Operation labels for captured traffic, from a GraphQL document or a URL path."""

import re
from urllib.parse import urlsplit

_QUERY_NAME = re.compile(r"(?:query|mutation)\s+(\w+)")
_PATH_SEGMENT = re.compile(r"/(\w+)")


def resolve_from_query(document: str, fallback: str) -> str:
    """Name following ``query``/``mutation`` in a GraphQL document."""
    match = _QUERY_NAME.search(document or "")
    return match.group(1) if match else fallback


def resolve_from_path(url: str, fallback: str) -> str:
    """First path segment of ``url``, e.g. ``/api/metadata`` -> ``api``."""
    if not url:
        return fallback
    # Absolute URLs would otherwise match the host after "//"
    path = urlsplit(url).path if "://" in url else url
    match = _PATH_SEGMENT.search(path)
    return match.group(1) if match else fallback
