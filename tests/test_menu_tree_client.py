"""
Feature: Back office menu client
  As the admin screen
  I want to load, cache, edit and reorder menu items over HTTP
  So that the tree on screen follows what the server stores

Scenario: Items are cached until a write invalidates them
Scenario: A reorder sends one order update per changed sibling
Scenario: Failed order updates are reported together and not undone
"""

import httpx
import json
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine, Session, SQLModel, select
from models.auth import User, Token, TokenUser, UserRole
from models.menu import Menu, MenuItem, MenuItemType, MenuLocation
from database import get_session
from main import app
from client.store import MenuStore, MenusKey, MenuItemsKey
from client.menu_tree import MenuApiError, MenuTreeManager, PartialReorderError
from datetime import datetime, timezone, timedelta


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="manager")
def manager_fixture(session: Session):
    admin_user = User(username="admin", hashed_password="hashed_secret", role=UserRole.ADMIN)
    token = Token(access_token="admin_token", expires_at=datetime.now(timezone.utc) + timedelta(hours=1))
    session.add_all([admin_user, token])
    session.commit()
    session.refresh(admin_user)
    session.refresh(token)
    session.add(TokenUser(token_id=token.id, user_id=admin_user.id))
    session.commit()

    app.dependency_overrides[get_session] = lambda: session
    yield MenuTreeManager(TestClient(app), MenuStore(), token="admin_token")
    app.dependency_overrides.clear()


@pytest.fixture(name="menu_id")
def menu_id_fixture(session: Session):
    menu = Menu(name="Header", slug="header", location=MenuLocation.HEADER)
    session.add(menu)
    session.commit()
    session.refresh(menu)
    return menu.id


def _stored_orders(session: Session, menu_id: int):
    items = session.exec(
        select(MenuItem).where(MenuItem.menu_id == menu_id, MenuItem.parent_id == None).order_by(MenuItem.order)
    ).all()
    return [(item.title, item.order) for item in items]


def test_add_items_and_build_tree(manager: MenuTreeManager, menu_id: int):
    home = manager.add_item(menu_id, "Home", MenuItemType.LINK, url="/")
    about = manager.add_item(menu_id, "About", MenuItemType.PAGE, page_id=3)
    sub = manager.add_item(menu_id, "Team", MenuItemType.LINK, parent_id=about.id, url="/team")

    assert (home.order, about.order, sub.order) == (0, 1, 0)

    tree = manager.build_tree(menu_id)
    assert [node.title for node in tree] == ["Home", "About"]
    assert [child.title for child in tree[1].children] == ["Team"]
    assert tree[1].page_id == 3


def test_load_items_is_cached_until_write(manager: MenuTreeManager, session: Session, menu_id: int):
    manager.add_item(menu_id, "Home", MenuItemType.LINK, url="/")
    first = manager.load_items(menu_id)

    # A row added behind the client's back is not seen while cached
    hidden = MenuItem(menu_id=menu_id, title="Hidden", type=MenuItemType.LINK, url="/hidden", order=1)
    session.add(hidden)
    session.commit()

    assert manager.load_items(menu_id) is first
    assert [item.title for item in manager.load_items(menu_id, refresh=True)] == ["Home", "Hidden"]


def test_edit_item_invalidates_cache(manager: MenuTreeManager, menu_id: int):
    home = manager.add_item(menu_id, "Home", MenuItemType.LINK, url="/")
    manager.load_items(menu_id)
    assert MenuItemsKey(menu_id=menu_id) in manager.store

    updated = manager.edit_item(menu_id, home.id, title="Start")

    assert updated.title == "Start"
    assert updated.url == "/"
    assert MenuItemsKey(menu_id=menu_id) not in manager.store


def test_delete_item_with_cascade(manager: MenuTreeManager, menu_id: int):
    home = manager.add_item(menu_id, "Home", MenuItemType.LINK, url="/")
    manager.add_item(menu_id, "Sub", MenuItemType.LINK, parent_id=home.id, url="/sub")

    message = manager.delete_item(menu_id, home.id, cascade=True)

    assert message == "Menu item and 1 sub-item(s) deleted successfully"
    assert manager.load_items(menu_id) == []


def test_reorder_sends_changed_orders(manager: MenuTreeManager, session: Session, menu_id: int):
    ids = [manager.add_item(menu_id, title, MenuItemType.LINK, url=f"/{title}").id for title in "ABCD"]

    siblings = manager.reorder(menu_id, ids[0], 0, 2)

    assert [item.title for item in siblings] == ["B", "C", "A", "D"]
    assert _stored_orders(session, menu_id) == [("B", 0), ("C", 1), ("A", 2), ("D", 3)]
    assert MenuItemsKey(menu_id=menu_id) not in manager.store


def test_reorder_atomic(manager: MenuTreeManager, session: Session, menu_id: int):
    ids = [manager.add_item(menu_id, title, MenuItemType.LINK, url=f"/{title}").id for title in "ABC"]

    siblings = manager.reorder_atomic(menu_id, ids[2], 2, 0)

    assert [item.title for item in siblings] == ["C", "A", "B"]
    assert _stored_orders(session, menu_id) == [("C", 0), ("A", 1), ("B", 2)]


def test_reorder_atomic_conflict(manager: MenuTreeManager, menu_id: int):
    ids = [manager.add_item(menu_id, title, MenuItemType.LINK, url=f"/{title}").id for title in "AB"]

    with pytest.raises(MenuApiError) as exc_info:
        manager.reorder_atomic(menu_id, ids[1], 0, 1)

    assert exc_info.value.status_code == 409


def test_create_and_list_menus(manager: MenuTreeManager):
    assert manager.list_menus() == []

    menu = manager.create_menu("Footer links", "footer")

    assert menu.slug == "footer-links"
    assert MenusKey() not in manager.store
    assert [m.slug for m in manager.list_menus()] == ["footer-links"]


# Transport-level behaviour

def _item_json(item_id, title, order):
    return {"id": item_id, "menuId": 1, "parentId": None, "title": title, "type": "link", "url": f"/{title}", "order": order}


class _RecordingApi:
    """Fake menu API serving four root items and recording every request."""

    def __init__(self, fail_ids=()):
        self.fail_ids = set(fail_ids)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET":
            return httpx.Response(200, json=[_item_json(i + 1, t, i) for i, t in enumerate("ABCD")])
        item_id = int(request.url.path.rsplit("/", 1)[-1])
        if item_id in self.fail_ids:
            return httpx.Response(500, json={"detail": "boom"})
        order = json.loads(request.content)["order"]
        return httpx.Response(200, json=_item_json(item_id, "x", order))


def _fake_manager(api: _RecordingApi) -> MenuTreeManager:
    client = httpx.Client(transport=httpx.MockTransport(api), base_url="http://testserver")
    return MenuTreeManager(client, MenuStore(), token="admin_token")


def test_reorder_noop_sends_nothing():
    api = _RecordingApi()
    manager = _fake_manager(api)
    manager.load_items(1)
    api.requests.clear()

    siblings = manager.reorder(1, 2, 1, 1)

    assert api.requests == []
    assert [item.title for item in siblings] == ["A", "B", "C", "D"]
    assert MenuItemsKey(menu_id=1) in manager.store


def test_reorder_patches_only_changed_items():
    api = _RecordingApi()
    manager = _fake_manager(api)

    manager.reorder(1, 1, 0, 2)

    patches = [r for r in api.requests if r.method == "PATCH"]
    assert sorted(r.url.path for r in patches) == ["/api/menu-items/1", "/api/menu-items/2", "/api/menu-items/3"]
    assert all(r.headers["Authorization"] == "Bearer admin_token" for r in patches)
    assert all(set(json.loads(r.content)) == {"order"} for r in patches)


def test_reorder_partial_failure_is_aggregated():
    api = _RecordingApi(fail_ids={2})
    manager = _fake_manager(api)
    cached = manager.load_items(1)

    with pytest.raises(PartialReorderError) as exc_info:
        manager.reorder(1, 1, 0, 2)

    # Every changed item was attempted; only the failure is reported
    assert exc_info.value.failures == {2: "boom"}
    assert exc_info.value.attempted == 3
    assert len([r for r in api.requests if r.method == "PATCH"]) == 3
    assert MenuItemsKey(menu_id=1) not in manager.store
    # The cached items handed out earlier were not modified
    assert [item.order for item in cached] == [0, 1, 2, 3]


def test_reorder_unknown_item():
    manager = _fake_manager(_RecordingApi())

    with pytest.raises(MenuApiError) as exc_info:
        manager.reorder(1, 99, 0, 1)

    assert exc_info.value.status_code == 404


def test_transport_error_becomes_menu_api_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://testserver")
    manager = MenuTreeManager(client, MenuStore())

    with pytest.raises(MenuApiError) as exc_info:
        manager.load_items(1)

    assert exc_info.value.status_code is None


def test_store_invalidate_reports_presence():
    store = MenuStore()
    store.set(MenuItemsKey(menu_id=1), ["cached"])

    assert store.get(MenuItemsKey(menu_id=1)) == ["cached"]
    assert store.invalidate(MenuItemsKey(menu_id=1)) is True
    assert store.invalidate(MenuItemsKey(menu_id=1)) is False
    assert store.get(MenuItemsKey(menu_id=2)) is None


def test_reorder_stale_source_index_writes_nothing():
    api = _RecordingApi()
    manager = _fake_manager(api)

    # When D is dragged but the caller still believes it sits at position 0
    with pytest.raises(MenuApiError) as exc_info:
        manager.reorder(1, 4, 0, 3)

    # Then nothing is sent and the cache is kept
    assert exc_info.value.status_code == 409
    assert [r for r in api.requests if r.method == "PATCH"] == []
    assert [item.order for item in manager.load_items(1)] == [0, 1, 2, 3]


@pytest.mark.parametrize("source_index,destination_index", [(0, 9), (-1, 0), (7, 0)])
def test_reorder_out_of_range_becomes_menu_api_error(source_index, destination_index):
    api = _RecordingApi()
    manager = _fake_manager(api)

    with pytest.raises(MenuApiError) as exc_info:
        manager.reorder(1, 1, source_index, destination_index)

    assert exc_info.value.status_code == 400
    assert "out of range" in exc_info.value.message
    assert [r for r in api.requests if r.method == "PATCH"] == []
