"""Lock-file backed implementation of the Store interface.

The whole lock file is read once when the store is created and written back
once, when persist() is called. In between, the in-memory CacheDocument is
the single source of truth and the file on disk is stale.
"""

import logging
import threading
from pathlib import Path
from typing import IO, Optional, Union

# Domain Layer Imports
from nixtemplate.domain.errors import CorruptCacheError, StoreClosedError, StoreNotUniqueError
from nixtemplate.domain.interfaces.cache import Store
from nixtemplate.domain.models.common import CacheKey
from nixtemplate.domain.models.document import CacheDocument

logger = logging.getLogger(__name__)

class _SharedFile:
    """A file handle plus the number of stores that currently own it."""

    def __init__(self, file: IO[str]):
        self.file = file
        self.owners = 1
        self.lock = threading.Lock()

    @property
    def name(self) -> str:
        return str(getattr(self.file, "name", "<file>"))


class PersistentFileStore(Store):
    """Store whose document is loaded from, and persisted to, a lock file.

    Several PersistentFileStore objects may share one document and file
    handle (see share()). Each of them is an owner of the handle; the
    document can only be persisted through the last remaining owner.
    """

    def __init__(self, file: IO[str], load: bool = True):
        """Creates a store over an open, readable and writable text file.

        Args:
            file: The lock file. The store takes ownership of the handle.
            load: Whether to load the file's current contents. If False the
                store starts empty and the file is overwritten on persist.

        Raises:
            CorruptCacheError: If ``load`` is set and the file holds
                non-empty content that is not valid JSON.
            OSError: If the file cannot be read.
        """
        shared = _SharedFile(file)
        if load:
            logger.info(f"Loading cache from {shared.name}...")
            file.seek(0)
            try:
                text = file.read()
            except UnicodeDecodeError as e:
                raise CorruptCacheError(shared.name, f"not valid UTF-8 ({e})") from e
            document = CacheDocument.from_json(text, source=shared.name)
        else:
            logger.info(f"Not loading cache from {shared.name}, starting with an empty cache.")
            document = CacheDocument.empty()
        self._shared = shared
        self._document = document
        self._released = False

    @classmethod
    def open(cls, path: Union[str, Path], load: bool = True) -> "PersistentFileStore":
        """Opens (creating it if missing) a lock file and builds a store over it.

        Args:
            path: Path of the lock file.
            load: Whether to load the existing contents.

        Returns:
            A store owning the opened file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch(exist_ok=True)
        file = open(path, "r+", encoding="utf-8")
        try:
            return cls(file, load=load)
        except Exception:
            file.close()
            raise

    @property
    def document(self) -> CacheDocument:
        return self._document

    @property
    def owners(self) -> int:
        """Number of live stores sharing this store's file handle."""
        return self._shared.owners

    def _ensure_open(self) -> None:
        if self._released:
            raise StoreClosedError(f"Store for {self._shared.name} has been released or persisted")

    # --- Ownership ---

    def share(self) -> "PersistentFileStore":
        """Returns another owner of the same document and file handle."""
        self._ensure_open()
        with self._shared.lock:
            self._shared.owners += 1
        other = object.__new__(PersistentFileStore)
        other._shared = self._shared
        other._document = self._document
        other._released = False
        return other

    def release(self) -> None:
        """Drops this owner without persisting.

        The file handle is closed when the last owner is released. Releasing
        an already released store does nothing.
        """
        if self._released:
            return
        self._released = True
        with self._shared.lock:
            self._shared.owners -= 1
            last = self._shared.owners == 0
        if last:
            logger.debug(f"Last owner of {self._shared.name} released, closing file.")
            self._shared.file.close()

    # --- Store Interface Implementation ---

    def lookup(self, key: CacheKey) -> Optional[str]:
        """Looks up a key in the in-memory document."""
        self._ensure_open()
        logger.debug(f"cache access: {list(key)}")
        return self._document.get(key)

    def store(self, key: CacheKey, value: str) -> None:
        """Writes a value into the in-memory document (not to disk)."""
        self._ensure_open()
        logger.debug(f"cache put: {list(key)} = {value}")
        self._document.put(key, value)

    # --- Persistence ---

    def persist(self) -> None:
        """Rewrites the lock file with the document and closes the store.

        Must be called through the only remaining owner, after every memoized
        call has finished.

        Raises:
            StoreNotUniqueError: If other owners of the file handle remain.
                The file is left untouched.
            StoreClosedError: If this store was already released or persisted.
            OSError: If the file cannot be written.
        """
        self._ensure_open()
        with self._shared.lock:
            if self._shared.owners != 1:
                raise StoreNotUniqueError(self._shared.owners)
            file = self._shared.file
            file.seek(0)
            file.truncate(0)
            file.write(self._document.to_json())
            file.flush()
            self._shared.owners = 0
            self._released = True
        file.close()
        logger.info(f"Cache persisted to {self._shared.name}.")
