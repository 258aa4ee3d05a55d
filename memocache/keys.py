"""
Cache key normalization.

Keys are hashed so the transport never sees arbitrary lengths or
characters, and prefixed with the cache generation so bumping one
integer orphans every previously written entry.
"""

import hashlib


def normalize_key(key: str, generation: int) -> str:
    """Return the SHA-512 hex digest of ``g<generation>:<key>``."""
    if isinstance(generation, bool) or not isinstance(generation, int) or generation < 0:
        raise ValueError(f"generation must be a non-negative integer, got {generation!r}")

    value = f"g{generation}:{key}"
    return hashlib.sha512(value.encode("utf-8")).hexdigest()
