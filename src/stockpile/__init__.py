"""Stockpile - a small inventory HTTP service with photo uploads."""

__version__ = "1.0.0"

from stockpile.core.config import StockpileConfig
from stockpile.core.inventory import InventoryStore

__all__ = [
    "InventoryStore",
    "StockpileConfig",
]
