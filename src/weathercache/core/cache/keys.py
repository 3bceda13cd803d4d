"""Upstream URL and cache key derivation."""

from __future__ import annotations

import hashlib
from typing import Any, Mapping

import orjson

CACHE_KEY_PREFIX = "weather_api_cache_"

_ABSOLUTE_SCHEMES = ("http://", "https://")


def build_url(base_url: str, endpoint: str) -> str:
    """Join an endpoint path onto the base URL with exactly one slash.

    Absolute endpoints are returned unchanged.
    """
    if endpoint.startswith(_ABSOLUTE_SCHEMES):
        return endpoint
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


def canonical_params(params: Mapping[str, Any]) -> bytes:
    """Serialize parameters with sorted keys so ordering never matters."""
    return orjson.dumps(dict(params), option=orjson.OPT_SORT_KEYS, default=str)


def generate_cache_key(url: str, params: Mapping[str, Any]) -> str:
    """Derive the cache key for a request.

    MD5 is used as a fast 128-bit fingerprint, not for security.
    """
    digest = hashlib.md5(url.encode("utf-8") + canonical_params(params), usedforsecurity=False)
    return CACHE_KEY_PREFIX + digest.hexdigest()
