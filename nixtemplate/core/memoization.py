"""Lookup-or-compute-or-store protocol over a cache Store.

``memoized_call`` runs one fallible computation through the cache;
``memoize`` attaches the same protocol to a function so that every call is
keyed by the function's cache name and its stringified arguments.

The store lock is never held while a computation runs, so concurrent misses
on the same key race (both compute, the later write wins) unless the caller
opts into coalescing with an InFlightCalls registry.
"""

import functools
import inspect
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Optional, Tuple

from nixtemplate.domain.interfaces.cache import Store
from nixtemplate.domain.models.common import CacheKey, build_cache_key
from nixtemplate.infrastructure.cache.global_store import get_global_store

logger = logging.getLogger(__name__)

Computation = Callable[[], str]

class InFlightCalls:
    """Registry of computations currently running, one per cache key.

    Callers that miss on a key already being computed wait for that
    computation and share its result (or its exception) instead of starting
    their own.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: Dict[Tuple[str, ...], Future] = {}

    def run(self, key: CacheKey, compute: Computation) -> str:
        """Runs ``compute`` unless a call for ``key`` is already in flight."""
        with self._lock:
            future = self._pending.get(tuple(key))
            leader = future is None
            if leader:
                future = Future()
                self._pending[tuple(key)] = future

        if not leader:
            logger.debug(f"Waiting for in-flight computation of {list(key)}")
            return future.result()

        try:
            result = compute()
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._pending.pop(tuple(key), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)


def _compute_and_store(store: Store, key: CacheKey, compute: Computation) -> str:
    value = compute()
    if not isinstance(value, str):
        raise TypeError(
            f"Cached computation for {list(key)} returned {type(value).__name__}, expected str"
        )
    store.store(key, value)
    return value


def memoized_call(
    key: CacheKey,
    compute: Computation,
    store: Optional[Store] = None,
    in_flight: Optional[InFlightCalls] = None,
) -> str:
    """Returns the cached value at ``key``, computing and storing it on a miss.

    A failed computation propagates its exception unchanged and leaves the
    cache untouched, so it is retried on the next call.

    Args:
        key: The cache key of this call.
        compute: Zero-argument computation producing the value.
        store: Store to use. Resolved from the global handle if None.
        in_flight: Optional registry used to coalesce concurrent misses.

    Returns:
        The cached or freshly computed string.

    Raises:
        StoreNotInitializedError: If ``store`` is None and no global store is set.
        TypeError: If the computation returns something other than a string.
    """
    if store is None:
        store = get_global_store()

    cached = store.lookup(key)
    if cached is not None:
        logger.debug(f"Cache hit for key: {list(key)}")
        return cached

    logger.debug(f"Cache miss for key: {list(key)}")
    if in_flight is None:
        return _compute_and_store(store, key, compute)

    def leader() -> str:
        # a previous leader may have stored the value after our lookup
        value = store.lookup(key)
        if value is not None:
            return value
        return _compute_and_store(store, key, compute)

    return in_flight.run(key, leader)


def _call_arguments(signature: inspect.Signature, args: tuple, kwargs: dict) -> List[Any]:
    """Flattens a call's arguments into declaration order."""
    bound = signature.bind(*args, **kwargs)
    bound.apply_defaults()
    values: List[Any] = []
    for name, param in signature.parameters.items():
        value = bound.arguments.get(name)
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            values.extend(value or ())
        elif param.kind is inspect.Parameter.VAR_KEYWORD:
            values.extend(f"{k}={v}" for k, v in sorted((value or {}).items()))
        else:
            values.append(value)
    return values


def memoize(
    func: Callable[..., str],
    cache_name: Optional[str] = None,
    store: Optional[Store] = None,
    coalesce: bool = False,
) -> Callable[..., str]:
    """Wraps ``func`` so that its calls go through memoized_call.

    The key of a call is ``(cache_name, str(arg1), str(arg2), ...)`` with
    arguments in declaration order, whether they were passed positionally or
    by keyword. Two wrappers with the same cache name and signature share
    their cache entries.

    Args:
        func: The computation to wrap; must return a string.
        cache_name: First key segment. Defaults to ``func.__name__``.
        store: Store to use. If None, the global store is resolved on every call.
        coalesce: Share one computation among concurrent misses on a key.

    Returns:
        The memoized function.
    """
    name = cache_name or func.__name__
    signature = inspect.signature(func)
    in_flight = InFlightCalls() if coalesce else None

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> str:
        key = build_cache_key(name, _call_arguments(signature, args, kwargs))
        return memoized_call(
            key,
            lambda: func(*args, **kwargs),
            store=store,
            in_flight=in_flight,
        )

    wrapper.cache_name = name
    return wrapper
