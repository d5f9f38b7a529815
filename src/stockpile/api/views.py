"""Mapping from stored item records to client-facing views.

Records hold a :class:`~stockpile.core.blob_store.BlobReference` that
names a file on the server.  Views replace it with the URL of the photo
endpoint, so storage details never reach a response.
"""

from __future__ import annotations

from stockpile.api.models import ItemView
from stockpile.core.inventory import ItemRecord

# Flag value sent by HTML checkboxes.
CHECKBOX_ON = "on"


def photo_url(item_id: str) -> str:
    """Return the photo endpoint path for an item."""
    return f"/inventory/{item_id}/photo"


def to_client_view(record: ItemRecord) -> ItemView:
    """Build the client view of a record."""
    return ItemView(
        id=record.id,
        name=record.name,
        description=record.description,
        photoUrl=photo_url(record.id) if record.photo is not None else None,
    )


def with_photo_link(view: ItemView, flag: str | None) -> ItemView:
    """Append a textual photo link to the description for search results.

    The link is only added when ``flag`` is exactly ``"on"`` and the item
    has a photo.  The format is kept byte-for-byte for existing clients:
    ``"<description> [Photo Link: /inventory/<id>/photo]"``.
    """
    if flag != CHECKBOX_ON or view.photoUrl is None:
        return view
    return view.model_copy(
        update={"description": f"{view.description} [Photo Link: {view.photoUrl}]"},
    )
