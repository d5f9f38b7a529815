"""Core domain layer: configuration, errors, blob storage and the inventory."""

from stockpile.core.blob_store import BlobReference, BlobStore
from stockpile.core.config import StockpileConfig
from stockpile.core.errors import (
    MethodNotAllowedError,
    NotFoundError,
    StockpileError,
    StorageError,
    ValidationError,
)
from stockpile.core.inventory import InventoryStore, ItemRecord

__all__ = [
    "BlobReference",
    "BlobStore",
    "InventoryStore",
    "ItemRecord",
    "MethodNotAllowedError",
    "NotFoundError",
    "StockpileConfig",
    "StockpileError",
    "StorageError",
    "ValidationError",
]
