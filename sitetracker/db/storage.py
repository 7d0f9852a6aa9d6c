# File: sitetracker/db/storage.py

"""
Durable key-value storage.

Same surface as the browser's localStorage (get/set/remove on string keys
and values). Every write runs in its own short session and commits
before returning, so the last writer wins.
"""

from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import sessionmaker

from sitetracker.models.storage_item import StorageItem


class KeyValueStorage:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_item(self, key: str) -> Optional[str]:
        with self._session_factory() as db:
            item = db.get(StorageItem, key)
            return item.value if item is not None else None

    def set_item(self, key: str, value: str) -> None:
        with self._session_factory() as db:
            item = db.get(StorageItem, key)
            if item is None:
                db.add(StorageItem(key=key, value=value))
            else:
                item.value = value
            db.commit()

    def remove_item(self, key: str) -> None:
        with self._session_factory() as db:
            db.execute(delete(StorageItem).where(StorageItem.key == key))
            db.commit()
