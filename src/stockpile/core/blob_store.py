"""File-backed photo storage for the Stockpile service.

Photos are opaque byte blobs written as regular files directly inside the
configured cache directory.  Each blob gets a server-generated name built
from a random UUID and a nanosecond timestamp, so names never collide and
never contain user-supplied text.

A :class:`BlobReference` is the only handle the rest of the service holds
on a stored photo.  References are internal: they name a file on the
server and must never be sent to clients.

Files can disappear behind the service's back (an operator cleaning the
cache directory, for example), so :meth:`BlobStore.read` re-checks the disk
and raises :class:`~stockpile.core.errors.NotFoundError` instead of
trusting the reference.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from stockpile.core.errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"

_BLOB_PREFIX = "photo_"
_BLOB_SUFFIX = ".blob"


@dataclass(frozen=True, slots=True)
class BlobReference:
    """Internal locator for one stored photo."""

    name: str
    media_type: str = DEFAULT_MEDIA_TYPE


class BlobStore:
    """Photo blobs stored as files under a single root directory."""

    def __init__(self, root: str | Path) -> None:
        """Initialize with a root directory, creating it and its parents.

        Raises:
            StorageError: If the directory cannot be created.
        """
        self._root = Path(root)
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create cache directory {self._root}: {exc}") from exc
        logger.info(f"Cache directory ready at {self._root}")

    @property
    def root(self) -> Path:
        """Return the root directory path."""
        return self._root

    def _new_name(self) -> str:
        return f"{_BLOB_PREFIX}{uuid.uuid4().hex}_{time.time_ns()}{_BLOB_SUFFIX}"

    def path_for(self, ref: BlobReference) -> Path:
        """Resolve a reference to its file path, refusing names outside the root."""
        root = self._root.resolve()
        candidate = (self._root / ref.name).resolve()
        try:
            candidate.relative_to(root)
        except ValueError:
            raise NotFoundError("Photo file missing on server") from None
        return candidate

    def put(self, data: bytes, *, media_type: str | None = None) -> BlobReference:
        """Write bytes under a fresh name and return their reference.

        A partially written file is removed before the error propagates.

        Raises:
            StorageError: If the file cannot be written.
        """
        ref = BlobReference(name=self._new_name(), media_type=media_type or DEFAULT_MEDIA_TYPE)
        path = self._root / ref.name
        try:
            path.write_bytes(data)
        except OSError as exc:
            logger.error(f"Failed to write photo {path}: {exc}")
            path.unlink(missing_ok=True)
            raise StorageError("Failed to save photo") from exc
        return ref

    def read(self, ref: BlobReference) -> bytes:
        """Return the stored bytes for a reference.

        Raises:
            NotFoundError: If the file no longer exists on disk.
        """
        path = self.path_for(ref)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise NotFoundError("Photo file missing on server") from None
        except OSError as exc:
            logger.error(f"Failed to read photo {path}: {exc}")
            raise StorageError("Failed to read photo") from exc

    def remove(self, ref: BlobReference) -> None:
        """Delete the file behind a reference.

        A file that is already gone counts as removed.

        Raises:
            StorageError: If the file exists but cannot be deleted.
        """
        path = self.path_for(ref)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete photo {ref.name}: {exc}") from exc
