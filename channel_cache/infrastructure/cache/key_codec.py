"""
Cache Key Codec

Deterministic cache keys from a resource prefix and a parameter mapping.

Key format:
    "<prefix>:<name1>:<value1>:<name2>:<value2>..."   (names sorted ascending)

    generate_key("channels", {"page": 1, "category": "tech"})
    -> "channels:category:tech:page:1"

    generate_key("channels", {})
    -> "channels:"

Absent parameters never reach the key. normalize_params() strips None and
empty/blank strings so that "field omitted" and "field passed as empty"
share one key. Keys are plain strings and are not hashed, so they stay
readable in logs and can be matched by substring for bulk invalidation.
"""

from collections.abc import Mapping
from typing import Any


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _render(value: Any) -> str:
    # bools render lowercase so they match query-string spelling
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def normalize_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """
    Drop absent-equivalent entries (None, "", whitespace-only strings).

    Zero and False are real values and are kept.
    """
    return {name: value for name, value in params.items() if not _is_absent(value)}


def generate_key(prefix: str, params: Mapping[str, Any] | None = None) -> str:
    """
    Generate a cache key that is stable under reordering of ``params``.

    STAGE-2.0.1: Cache key generation

    Args:
        prefix: Resource namespace (e.g., "channels", "search")
        params: Scalar parameters; absent values are excluded

    Returns:
        Cache key string
    """
    normalized = normalize_params(params or {})
    pairs = [f"{name}:{_render(normalized[name])}" for name in sorted(normalized)]
    return f"{prefix}:{':'.join(pairs)}"
