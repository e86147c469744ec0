"""Database models."""
from qbank.models.db.storage import LocalStorageItem

__all__ = ["LocalStorageItem"]
