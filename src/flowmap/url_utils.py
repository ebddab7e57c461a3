# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""URL canonicalization used for page keys and link targets.

Every function here is total: malformed input degrades to a pass-through or
an empty value instead of raising, so a single bad href never aborts an
analysis run.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_DEFAULT_PATH_SCHEMES = frozenset({"http", "https"})


def normalize(url: str) -> str:
    """Canonicalize a URL for use as a stable map key.

    - fragment removed
    - query parameters sorted by key (stable: duplicate keys keep their order)
    - trailing slash stripped from the path unless the path is ``/``
    - scheme and host lowercased; empty http(s) path becomes ``/``

    Relative or unparsable input is returned unchanged.  Idempotent.
    """
    try:
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            return url
        # Accessing .port validates the authority (raises ValueError on junk).
        parts.port

        scheme = parts.scheme.lower()
        path = parts.path
        if len(path) > 1 and path.endswith("/"):
            path = path.rstrip("/") or "/"
        if not path and scheme in _DEFAULT_PATH_SCHEMES:
            path = "/"

        query = ""
        if parts.query:
            params = parse_qsl(parts.query, keep_blank_values=True)
            query = urlencode(sorted(params, key=lambda kv: kv[0]))

        # Only the host is case-insensitive; userinfo keeps its case.
        userinfo, at, host = parts.netloc.rpartition("@")
        return urlunsplit((scheme, f"{userinfo}{at}{host.lower()}", path, query, ""))
    except ValueError:
        return url


def get_domain(url: str) -> str:
    """Return ``scheme://host`` for *url*, or an empty string on failure."""
    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError:
        return ""
    if not parts.scheme or not host:
        return ""
    return f"{parts.scheme.lower()}://{host}"


def get_path_segments(url: str) -> list[str]:
    """Return the non-empty path components of *url* in order."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return []
    if not parts.scheme:
        return []
    return [segment for segment in parts.path.split("/") if segment]


def get_path(url: str) -> str:
    """Return the lowercased path of *url* (``""`` on failure)."""
    try:
        return urlsplit(url).path.lower()
    except ValueError:
        return ""


def is_internal(url: str, base_url: str) -> bool:
    """True when *url* is on the same host as *base_url*."""
    try:
        host = urlsplit(url).hostname
        base_host = urlsplit(base_url).hostname
    except ValueError:
        return False
    return bool(host) and host == base_host
