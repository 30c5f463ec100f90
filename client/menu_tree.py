"""
HTTP client for the menu back office.

Mirrors what the admin screen does: load a menu's flat items, build the
tree for display, send edits, and invalidate the cached list after every
write so the next load refetches it.
"""

import httpx
from typing import Any, Dict, List, Optional
from apis.schemas.menu import (
    CreateMenuItemRequest, UpdateMenuItemRequest, CreateMenuRequest,
    MenuItemResponse, MenuItemTreeResponse, MenuResponse
)
from helpers.menu_tree import ReorderError, build_menu_tree, reorder_siblings, sibling_group
from models.menu import MenuItemType
from settings import logger
from .store import MenuStore, MenusKey, MenuItemsKey


class MenuApiError(Exception):
    """A request to the menu API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PartialReorderError(MenuApiError):
    """Some sibling order writes of a reorder failed.

    Writes that succeeded are not undone; `failures` maps item id to the
    error message of each failed write.
    """

    def __init__(self, failures: Dict[int, str], attempted: int):
        self.failures = failures
        self.attempted = attempted
        super().__init__(
            f"Failed to reorder menu items: {len(failures)} of {attempted} update(s) failed"
        )


class MenuTreeManager:
    """Menu operations over HTTP with a cache of flat item lists."""

    def __init__(
        self,
        client: httpx.Client,
        store: MenuStore,
        token: Optional[str] = None,
        api_prefix: str = "/api"
    ):
        self.client = client
        self.store = store
        self.api_prefix = api_prefix.rstrip("/")
        self.headers = {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.api_prefix}{path}"
        try:
            response = self.client.request(method, url, headers=self.headers, **kwargs)
        except httpx.RequestError as e:
            logger.error("Menu API request failed", extra={"method": method, "url": url, "error": str(e)})
            raise MenuApiError(f"Request error: {e}")

        if response.is_error:
            detail = f"HTTP {response.status_code}"
            try:
                detail = response.json().get("detail", detail)
            except ValueError:
                pass
            logger.warning("Menu API returned an error", extra={
                "method": method,
                "url": url,
                "status_code": response.status_code,
                "detail": detail
            })
            raise MenuApiError(str(detail), status_code=response.status_code)

        return response.json()

    # Menus

    def list_menus(self, refresh: bool = False) -> List[MenuResponse]:
        key = MenusKey()
        if refresh or key not in self.store:
            data = self._request("GET", "/menus")
            self.store.set(key, [MenuResponse.model_validate(menu) for menu in data["menus"]])
        return self.store.get(key)

    def create_menu(self, name: str, location: str, **fields) -> MenuResponse:
        body = CreateMenuRequest(name=name, location=location, **fields)
        data = self._request("POST", "/menus", json=body.model_dump(mode="json", by_alias=True))
        self.store.invalidate(MenusKey())
        return MenuResponse.model_validate(data)

    # Menu items

    def load_items(self, menu_id: int, refresh: bool = False) -> List[MenuItemResponse]:
        """Flat items of a menu, served from the store when cached."""
        key = MenuItemsKey(menu_id=menu_id)
        if refresh or key not in self.store:
            data = self._request("GET", "/menu-items", params={"menuId": menu_id})
            self.store.set(key, [MenuItemResponse.model_validate(item) for item in data])
        return self.store.get(key)

    def build_tree(self, menu_id: int) -> List[MenuItemTreeResponse]:
        return build_menu_tree(self.load_items(menu_id))

    def add_item(
        self,
        menu_id: int,
        title: str,
        type: MenuItemType,
        parent_id: Optional[int] = None,
        **payload
    ) -> MenuItemResponse:
        """Create an item at the end of its sibling group."""
        siblings = sibling_group(self.load_items(menu_id), parent_id)
        body = CreateMenuItemRequest(
            menu_id=menu_id,
            parent_id=parent_id,
            title=title,
            type=type,
            order=len(siblings),
            **payload
        )
        data = self._request("POST", "/menu-items", json=body.model_dump(mode="json", by_alias=True))
        self.store.invalidate(MenuItemsKey(menu_id=menu_id))
        return MenuItemResponse.model_validate(data)

    def edit_item(self, menu_id: int, item_id: int, **changes) -> MenuItemResponse:
        body = UpdateMenuItemRequest(**changes)
        data = self._request(
            "PATCH",
            f"/menu-items/{item_id}",
            json=body.model_dump(mode="json", by_alias=True, exclude_unset=True)
        )
        self.store.invalidate(MenuItemsKey(menu_id=menu_id))
        return MenuItemResponse.model_validate(data)

    def delete_item(self, menu_id: int, item_id: int, cascade: bool = False) -> str:
        data = self._request("DELETE", f"/menu-items/{item_id}", params={"cascade": str(cascade).lower()})
        self.store.invalidate(MenuItemsKey(menu_id=menu_id))
        return data["message"]

    def reorder(
        self,
        menu_id: int,
        item_id: int,
        source_index: int,
        destination_index: int
    ) -> List[MenuItemResponse]:
        """Move an item inside its sibling group, one PATCH per changed item.

        The writes are independent: if some fail, the others stay applied
        and a single PartialReorderError is raised. The cached list is
        dropped either way so the next load shows the server's state.
        """
        items = [item.model_copy() for item in self.load_items(menu_id)]
        dragged = next((item for item in items if item.id == item_id), None)
        if dragged is None:
            raise MenuApiError(f"Menu item {item_id} is not part of menu {menu_id}", status_code=404)

        group = sibling_group(items, dragged.parent_id)
        if 0 <= source_index < len(group) and group[source_index].id != item_id:
            raise MenuApiError("Menu order changed since it was loaded, reload and try again", status_code=409)

        try:
            siblings, changed = reorder_siblings(items, dragged.parent_id, source_index, destination_index)
        except ReorderError as e:
            raise MenuApiError(str(e), status_code=400)
        if not changed:
            return siblings

        failures: Dict[int, str] = {}
        for sibling in changed:
            try:
                self._request("PATCH", f"/menu-items/{sibling.id}", json={"order": sibling.order})
            except MenuApiError as e:
                failures[sibling.id] = e.message

        self.store.invalidate(MenuItemsKey(menu_id=menu_id))

        if failures:
            logger.error("Menu reorder partially failed", extra={
                "menu_id": menu_id,
                "failed_items": sorted(failures),
                "attempted": len(changed)
            })
            raise PartialReorderError(failures, attempted=len(changed))

        logger.info("Menu items reordered", extra={"menu_id": menu_id, "changed_count": len(changed)})
        return siblings

    def reorder_atomic(
        self,
        menu_id: int,
        item_id: int,
        source_index: int,
        destination_index: int
    ) -> List[MenuItemResponse]:
        """Same move as `reorder`, applied by the server in one transaction."""
        data = self._request("POST", "/menu-items/reorder", json={
            "itemId": item_id,
            "sourceIndex": source_index,
            "destinationIndex": destination_index
        })
        self.store.invalidate(MenuItemsKey(menu_id=menu_id))
        return [MenuItemResponse.model_validate(item) for item in data["items"]]
