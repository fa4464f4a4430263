"""File-backed key/value store standing in for a browser profile's localStorage.

Every ``LocalStorage`` opened on the same file behaves like another tab of the
same browser: writes are visible to all of them on their next read, and a
write that changes a value fires a ``StorageEvent`` on every *other* tab.
"""

import json
import logging
import os
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

PRODUCTS_KEY = "srs_cashews_products"
ORDERS_KEY = "srs_cashews_orders"
CART_KEY = "keerthivasan_cashews_cart"

DEFAULT_STORAGE_PATH = os.getenv("STOREFRONT_STORAGE_PATH", ".storefront/local_storage.json")


class StorageEvent(BaseModel):
    key: str
    old_value: Optional[str]
    new_value: Optional[str]


# open tabs, keyed by absolute storage path
_tabs: Dict[str, List["LocalStorage"]] = {}


class LocalStorage:
    def __init__(self, path: str = DEFAULT_STORAGE_PATH):
        self.path = os.path.abspath(path)
        self._listeners: List[Callable[[StorageEvent], Any]] = []
        _tabs.setdefault(self.path, []).append(self)

    def close(self):
        tabs = _tabs.get(self.path, [])
        if self in tabs:
            tabs.remove(self)
        self._listeners.clear()

    def add_listener(self, callback: Callable[[StorageEvent], Any]):
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[StorageEvent], Any]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _read(self) -> Dict[str, str]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as e:
            logger.error("Local storage at %s is corrupt, starting empty: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]):
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str):
        data = self._read()
        old_value = data.get(key)
        if old_value == value:
            return
        data[key] = value
        self._write(data)
        self._broadcast(StorageEvent(key=key, old_value=old_value, new_value=value))

    def remove_item(self, key: str):
        data = self._read()
        if key not in data:
            return
        old_value = data.pop(key)
        self._write(data)
        self._broadcast(StorageEvent(key=key, old_value=old_value, new_value=None))

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode a stored JSON value; raises ValueError when it is malformed."""
        raw = self.get_item(key)
        if raw is None:
            return default
        return json.loads(raw)

    def set_json(self, key: str, value: Any):
        self.set_item(key, json.dumps(value, ensure_ascii=False, sort_keys=True))

    def _broadcast(self, event: StorageEvent):
        for tab in list(_tabs.get(self.path, [])):
            if tab is self:
                continue
            for listener in list(tab._listeners):
                try:
                    listener(event)
                except Exception:
                    logger.exception("Storage listener failed for key %s", event.key)
