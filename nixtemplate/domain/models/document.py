"""In-memory representation of a lock file.

A CacheDocument is a tree of string-keyed mappings whose leaves are
strings, plus one reserved top-level ``version`` field. All reads and writes
go through a single lock covering the whole tree.
"""

import json
import logging
import threading
from typing import Any, Dict, Optional

from nixtemplate.domain.errors import CorruptCacheError
from nixtemplate.domain.models.common import CacheKey, LOCK_FORMAT, VERSION_FIELD

logger = logging.getLogger(__name__)

class CacheDocument:
    """Nested mapping of cache segments to string values, guarded by one lock."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        """Wraps an already validated document tree.

        Args:
            data: Parsed document. A fresh versioned document is used if None.
        """
        self._data: Dict[str, Any] = data if data is not None else {VERSION_FIELD: LOCK_FORMAT}
        self._lock = threading.Lock()

    @classmethod
    def empty(cls) -> "CacheDocument":
        """Creates a document holding only the current format version."""
        return cls()

    @classmethod
    def from_json(cls, text: str, source: str = "<string>") -> "CacheDocument":
        """Parses the serialized form of a document.

        Zero-length text and documents stamped with another format version
        yield an empty document. Anything else that is not strict JSON
        (``NaN`` and ``Infinity`` included) is a corrupt cache.

        Args:
            text: The raw file contents.
            source: Name of the file, for error messages and logs.

        Returns:
            The parsed (or fresh) document.

        Raises:
            CorruptCacheError: If the text is non-empty and not valid JSON.
        """
        if text == "":
            logger.info(f"Cache file {source} is empty, starting with a fresh cache.")
            return cls.empty()
        try:
            data = json.loads(text, parse_constant=_reject_constant)
        except ValueError as e:
            raise CorruptCacheError(source, str(e)) from e

        if not isinstance(data, dict):
            logger.info(f"Cache file {source} does not hold an object, discarding it.")
            return cls.empty()
        version = data.get(VERSION_FIELD)
        # bool is an int subclass and 1.0 == 1; only the integer 1 is version 1
        if not isinstance(version, int) or isinstance(version, bool) or version != LOCK_FORMAT:
            logger.info(
                f"Cache file {source} has format version {version!r}, expected {LOCK_FORMAT}. "
                "Discarding it."
            )
            return cls.empty()
        return cls(data)

    def get(self, key: CacheKey) -> Optional[str]:
        """Returns the string leaf at ``key`` without modifying the tree."""
        _check_key(key)
        if key[0] == VERSION_FIELD:
            return None
        with self._lock:
            node: Any = self._data
            for segment in key[:-1]:
                node = node.get(segment)
                if not isinstance(node, dict):
                    return None
            leaf = node.get(key[-1])
        return leaf if isinstance(leaf, str) else None

    def put(self, key: CacheKey, value: str) -> None:
        """Sets the leaf at ``key``, creating intermediate mappings as needed."""
        _check_key(key)
        if key[0] == VERSION_FIELD:
            raise ValueError(f"'{VERSION_FIELD}' is reserved and cannot be used as a cache name")
        with self._lock:
            node = self._data
            for segment in key[:-1]:
                child = node.get(segment)
                if not isinstance(child, dict):
                    child = {}
                    node[segment] = child
                node = child
            node[key[-1]] = value

    def to_json(self) -> str:
        """Serializes the document as pretty-printed JSON."""
        with self._lock:
            return json.dumps(self._data, indent=2, ensure_ascii=False, allow_nan=False) + "\n"

    def to_dict(self) -> Dict[str, Any]:
        """Returns a deep copy of the document tree."""
        with self._lock:
            return json.loads(json.dumps(self._data))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _check_key(key: CacheKey) -> None:
    if len(key) == 0:
        raise ValueError("Cache key must have at least one segment")
