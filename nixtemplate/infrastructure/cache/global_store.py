"""Process-wide handle to the active cache store.

Call sites that cannot be handed a store explicitly (helpers invoked from a
template, for example) resolve it here. The handle must be set before any
memoized call runs and cleared only after the last one has finished.
"""

import logging
import threading
from typing import Optional

from nixtemplate.domain.errors import StoreNotInitializedError
from nixtemplate.domain.interfaces.cache import Store

logger = logging.getLogger(__name__)

_global_store: Optional[Store] = None
_global_store_lock = threading.Lock()


def set_global_store(store: Store) -> None:
    """Makes ``store`` the active store, replacing (and releasing) any previous one.

    The handle takes ownership of ``store``: pass a ``share()`` of a
    PersistentFileStore if the caller still wants to persist it later.
    """
    global _global_store
    with _global_store_lock:
        previous = _global_store
        _global_store = store
    if previous is not None and previous is not store:
        logger.warning("Replacing an active global store.")
        _release(previous)
    logger.debug(f"Global store set: {store.__class__.__name__}")


def get_global_store() -> Store:
    """Returns the active store.

    Raises:
        StoreNotInitializedError: If no store has been set.
    """
    with _global_store_lock:
        store = _global_store
    if store is None:
        raise StoreNotInitializedError(
            "No global store is set; call set_global_store() before running cached functions."
        )
    return store


def delete_global_store() -> None:
    """Clears the handle and releases the store it owned (no-op if empty)."""
    global _global_store
    with _global_store_lock:
        previous = _global_store
        _global_store = None
    if previous is not None:
        _release(previous)
        logger.debug("Global store cleared.")


def has_global_store() -> bool:
    with _global_store_lock:
        return _global_store is not None


def _release(store: Store) -> None:
    release = getattr(store, "release", None)
    if callable(release):
        release()
