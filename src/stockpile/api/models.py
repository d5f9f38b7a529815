"""Pydantic request and response models for the Stockpile API.

These models define the JSON schema for the API endpoints.  FastAPI uses
them for request validation, serialisation, and the built-in OpenAPI
documentation.

Models
------
ItemView
    Client-facing shape of an inventory item.  Exposes a ``photoUrl``
    instead of any server-side storage reference.
ItemUpdate
    Payload for ``PUT /inventory/{id}`` - partial update of name and
    description.
SearchRequest
    Fields of a ``POST /search`` submission.
MessageResponse
    ``{"message": ...}`` body for informational successes.
ErrorResponse
    ``{"error": ...}`` body returned for every failure.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ItemView(BaseModel):
    """Client-facing representation of an inventory item.

    Attributes:
        id: Server-generated item identifier.
        name: Item name.
        description: Item description (may be empty).
        photoUrl: Path of the photo endpoint, present only when the item
            has a photo.
    """

    id: str = Field(..., description="Item identifier.")
    name: str = Field(..., description="Item name.")
    description: str = Field(default="", description="Item description.")
    photoUrl: str | None = Field(
        default=None,
        description="URL of the item's photo; omitted when there is none.",
    )


class ItemUpdate(BaseModel):
    """Request body for the ``PUT /inventory/{id}`` endpoint.

    Both fields are optional.  Missing or empty values leave the stored
    value unchanged.

    Attributes:
        name: New item name.
        description: New item description.
    """

    name: str | None = Field(default=None, description="New item name.")
    description: str | None = Field(default=None, description="New item description.")


class SearchRequest(BaseModel):
    """Fields submitted by the search form.

    Attributes:
        id: Identifier of the item to look up.
        has_photo: Checkbox value; ``"on"`` asks for a photo link in the
            description.
    """

    id: str | None = Field(default=None, description="Item identifier.")
    has_photo: str | None = Field(default=None, description="Photo link checkbox.")


class MessageResponse(BaseModel):
    """Informational success body."""

    message: str


class ErrorResponse(BaseModel):
    """Failure body shared by every error status."""

    error: str
