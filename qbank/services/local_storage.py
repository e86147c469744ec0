"""Durable key-value storage backed by SQLAlchemy."""
from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession

from qbank.models.db.storage import LocalStorageItem
from qbank.utils.json_utils import json_dump, json_load


class LocalStorage:
    """String and JSON values that survive restarts of the front-end."""

    def __init__(self, session_factory: Callable[[], DbSession]) -> None:
        self._session_factory = session_factory

    def get_item(self, key: str) -> str | None:
        with self._session_factory() as db:
            item = db.execute(
                select(LocalStorageItem).where(LocalStorageItem.key == key)
            ).scalar_one_or_none()
            return item.value if item else None

    def set_item(self, key: str, value: str) -> None:
        with self._session_factory() as db:
            item = db.get(LocalStorageItem, key)
            if item is None:
                db.add(LocalStorageItem(key=key, value=value))
            else:
                item.value = value
            db.commit()

    def remove_item(self, key: str) -> None:
        with self._session_factory() as db:
            item = db.get(LocalStorageItem, key)
            if item is not None:
                db.delete(item)
                db.commit()

    def get_json(self, key: str) -> object:
        raw = self.get_item(key)
        if raw is None:
            return None
        try:
            return json_load(raw)
        except ValueError:
            return None

    def set_json(self, key: str, payload: object) -> None:
        self.set_item(key, json_dump(payload))
