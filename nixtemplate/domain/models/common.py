"""Defines common Value Objects used across the cache and rendering contexts.

These objects represent simple values like cache keys and segments,
ensuring consistency between the code that builds keys and the stores
that resolve them.
"""

from typing import Any, Iterable, NewType, Tuple

# === Caching Context ===

CacheKey = NewType("CacheKey", Tuple[str, ...])       # (cache-name, arg1, arg2, ...)

# Format version stamped into every lock file. Bump it whenever the
# document layout or the key construction of any cached helper changes.
LOCK_FORMAT: int = 1

# Reserved top-level field of the lock file holding LOCK_FORMAT.
VERSION_FIELD = "version"

# === Template Context ===

TemplateSource = NewType("TemplateSource", str)      # Raw template text
RenderedOutput = NewType("RenderedOutput", str)      # Result of instantiating a template


def build_cache_key(name: str, args: Iterable[Any] = ()) -> CacheKey:
    """Builds the cache key for a call of a cached function.

    The first segment is the cache name, the rest are ``str(arg)`` for each
    argument in declaration order. Values with equal string forms map to the
    same key; keeping ``str()`` injective for cached arguments is up to the
    caller.

    Args:
        name: The cache name (usually the function name).
        args: The argument values of the call.

    Returns:
        The cache key as a tuple of string segments.

    Raises:
        ValueError: If the cache name is empty.
    """
    if not name:
        raise ValueError("Cache name must be a non-empty string")
    return CacheKey((str(name), *(str(arg) for arg in args)))
