"""In-memory inventory of items and their photos.

The :class:`InventoryStore` owns every :class:`ItemRecord` and the link
between a record and its photo blob.  Records live in a plain dictionary
keyed by a server-generated UUID, so the inventory is lost when the
process exits.

Photo lifecycle
---------------
The store keeps records and blob files in step:

- a new photo is always written before the old one is released, so a
  failed write leaves the record with its previous, valid photo
- deleting a record releases its blob; a blob that cannot be deleted is
  logged and otherwise ignored, and the record is removed regardless
- a record's ``photo`` reference is only ever set to a blob that was
  written successfully

Concurrency
-----------
The mapping is guarded by a single :class:`threading.Lock`.  Disk I/O runs
outside the lock, so slow photo writes for one item never hold up
operations on another.  Concurrent writes to the *same* item are
last-write-wins.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass

from stockpile.core.blob_store import BlobReference, BlobStore
from stockpile.core.errors import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ItemRecord:
    """One inventory item as stored on the server.

    Attributes:
        id: Server-generated UUID, immutable once assigned.
        name: Non-empty display name.
        description: Free text, empty by default.
        photo: Reference to the item's photo blob, or ``None``.
    """

    id: str
    name: str
    description: str = ""
    photo: BlobReference | None = None


class InventoryStore:
    """Thread-safe registry of inventory items backed by a :class:`BlobStore`."""

    def __init__(self, blobs: BlobStore) -> None:
        self._blobs = blobs
        self._items: dict[str, ItemRecord] = {}
        self._lock = threading.Lock()

    @property
    def blobs(self) -> BlobStore:
        """Return the blob store holding photo bytes."""
        return self._blobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _require(self, item_id: str) -> ItemRecord:
        # Caller must hold the lock.
        record = self._items.get(item_id)
        if record is None:
            raise NotFoundError("Not Found")
        return record

    def _release(self, ref: BlobReference) -> None:
        """Delete a blob, logging instead of raising on failure."""
        try:
            self._blobs.remove(ref)
        except StorageError as exc:
            logger.warning(f"Failed to delete photo: {exc}")

    def create(
        self,
        name: str | None,
        description: str | None = None,
        photo: bytes | None = None,
        *,
        media_type: str | None = None,
    ) -> ItemRecord:
        """Register a new item, storing its photo first when one is given.

        Args:
            name: Item name; must be non-empty.
            description: Optional description, defaults to ``""``.
            photo: Optional photo bytes.  Empty bytes mean "no photo".
            media_type: Content type recorded alongside the photo.

        Returns:
            The newly created record.

        Raises:
            ValidationError: If ``name`` is missing or empty.
            StorageError: If the photo cannot be written.  No record is
                created in that case.
        """
        if not name:
            raise ValidationError("inventory_name is required")

        ref = self._blobs.put(photo, media_type=media_type) if photo else None
        record = ItemRecord(
            id=str(uuid.uuid4()),
            name=name,
            description=description or "",
            photo=ref,
        )
        with self._lock:
            self._items[record.id] = record

        logger.info(f"Registered new item {record.id} ({record.name!r})")
        return record

    def get(self, item_id: str) -> ItemRecord:
        """Return the record for ``item_id``.

        Raises:
            NotFoundError: If no live record has that id.
        """
        with self._lock:
            return self._require(item_id)

    def list(self) -> list[ItemRecord]:
        """Return all live records in insertion order."""
        with self._lock:
            return list(self._items.values())

    def update(
        self,
        item_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> ItemRecord:
        """Overwrite the fields that are given and non-empty.

        Missing or empty values leave the stored value untouched; this is a
        partial update, not a way to clear fields.

        Raises:
            NotFoundError: If no live record has that id.
        """
        with self._lock:
            record = self._require(item_id)
            if name:
                record.name = name
            if description:
                record.description = description
            return record

    def delete(self, item_id: str) -> None:
        """Remove a record and release its photo.

        Raises:
            NotFoundError: If no live record has that id.
        """
        with self._lock:
            record = self._require(item_id)

        if record.photo is not None:
            self._release(record.photo)

        with self._lock:
            self._items.pop(item_id, None)
        logger.info(f"Deleted item {item_id}")

    def set_photo(
        self,
        item_id: str,
        data: bytes,
        *,
        media_type: str | None = None,
    ) -> ItemRecord:
        """Replace an item's photo with new bytes.

        The new blob is written first.  Only once it is safely on disk is the
        record pointed at it and the previous blob released.

        Raises:
            NotFoundError: If no live record has that id.
            ValidationError: If ``data`` is empty.
            StorageError: If the new photo cannot be written; the record
                keeps its previous photo.
        """
        with self._lock:
            self._require(item_id)
        if not data:
            raise ValidationError("Empty photo data")

        new_ref = self._blobs.put(data, media_type=media_type)

        previous: BlobReference | None = None
        with self._lock:
            record = self._items.get(item_id)
            if record is not None:
                previous, record.photo = record.photo, new_ref

        if record is None:
            # Deleted while the photo was being written.
            self._release(new_ref)
            raise NotFoundError("Not Found")

        if previous is not None:
            self._release(previous)
        logger.info(f"Replaced photo for item {item_id}")
        return record

    def get_photo_ref(self, item_id: str) -> BlobReference | None:
        """Return the item's photo reference, or ``None`` if it has no photo.

        Raises:
            NotFoundError: If no live record has that id.
        """
        with self._lock:
            return self._require(item_id).photo
