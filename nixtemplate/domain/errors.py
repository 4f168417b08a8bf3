"""Exception hierarchy for nix-template.

Cache errors are unrecoverable at the cache level and are surfaced to the
top-level caller. Failures of the memoized computations are NOT wrapped here;
they propagate to the caller unchanged.
"""


class NixTemplateError(Exception):
    """Base class for all errors raised by nix-template."""


# --- Cache errors ---

class CacheError(NixTemplateError):
    """Base class for errors raised by the cache layer."""


class CorruptCacheError(CacheError):
    """Raised when a non-empty lock file cannot be parsed."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Corrupt cache file {source}: {reason}")


class StoreNotInitializedError(CacheError):
    """Raised when the global store is requested before one was set."""


class StoreNotUniqueError(CacheError):
    """Raised when persisting a store while other owners of it are still alive."""

    def __init__(self, owners: int):
        self.owners = owners
        super().__init__(
            f"Store instance is not unique ({owners} owners of the backing file remain)"
        )


class StoreClosedError(CacheError):
    """Raised when a store is used after it has been persisted."""


# --- Helper / rendering errors ---

class HelperError(NixTemplateError):
    """Raised when a template helper function fails to produce a value."""


class TemplateRenderError(NixTemplateError):
    """Raised when a template cannot be loaded or rendered."""
