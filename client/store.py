from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, Optional, Union


class MenusKey(BaseModel):
    """Cache key for the list of menus."""
    model_config = ConfigDict(frozen=True)


class MenuItemsKey(BaseModel):
    """Cache key for the flat item list of one menu."""
    model_config = ConfigDict(frozen=True)

    menu_id: int


StoreKey = Union[MenusKey, MenuItemsKey]


class MenuStore:
    """In-memory cache of API reads, invalidated explicitly after writes.

    One store is created per admin session and handed to whatever needs it;
    there is no module-level instance.
    """

    def __init__(self):
        self._entries: Dict[StoreKey, Any] = {}

    def get(self, key: StoreKey) -> Optional[Any]:
        return self._entries.get(key)

    def set(self, key: StoreKey, value: Any) -> None:
        self._entries[key] = value

    def invalidate(self, key: StoreKey) -> bool:
        """Drop `key`; returns whether anything was cached under it."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: StoreKey) -> bool:
        return key in self._entries
