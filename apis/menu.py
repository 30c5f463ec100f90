from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, select
from datetime import datetime, timezone
from typing import List, Optional
from database import get_session
from models.menu import Menu, MenuItem, MenuLocation
from models.auth import Token
from helpers.auth import get_auth_token, require_admin
from helpers.menu_tree import build_menu_tree
from settings import logger
from .schemas.menu import (
    CreateMenuRequest, UpdateMenuRequest, MenuResponse, MenuListResponse,
    MenuItemResponse, MenuItemTreeResponse, MenuStructureResponse
)
from apis.schemas.auth import MessageResponse

router = APIRouter(prefix="/menus", tags=["menus"])

# Public, unauthenticated view used by the site header/footer
structure_router = APIRouter(prefix="/menu-structure", tags=["menus"])


def get_menu_or_404(menu_id: int, db_session: Session) -> Menu:
    menu = db_session.get(Menu, menu_id)
    if not menu:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Menu not found"
        )
    return menu


def list_menu_items_for(menu_id: int, db_session: Session) -> List[MenuItem]:
    """Flat items of one menu, in sibling order."""
    statement = (
        select(MenuItem)
        .where(MenuItem.menu_id == menu_id)
        .order_by(MenuItem.order, MenuItem.id)
    )
    return list(db_session.exec(statement).all())


def _ensure_unique_slug(slug: str, db_session: Session, menu_id: Optional[int] = None) -> None:
    statement = select(Menu).where(Menu.slug == slug)
    existing = db_session.exec(statement).first()
    if existing and existing.id != menu_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A menu with slug '{slug}' already exists"
        )


@router.get("")
async def list_menus(
    location: Optional[MenuLocation] = Query(default=None, description="Only menus at this location"),
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> MenuListResponse:
    """List all menus (authenticated users only)."""

    statement = select(Menu).order_by(Menu.id)
    if location is not None:
        statement = statement.where(Menu.location == location)
    menus = db_session.exec(statement).all()

    return MenuListResponse(
        menus=[MenuResponse.model_validate(menu) for menu in menus],
        total_count=len(menus)
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_menu(
    menu_data: CreateMenuRequest,
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> MenuResponse:
    """Create new menu (Admins only)."""

    await require_admin(token=token, db_session=db_session)

    _ensure_unique_slug(menu_data.slug, db_session)

    new_menu = Menu(
        name=menu_data.name,
        slug=menu_data.slug,
        description=menu_data.description,
        location=menu_data.location,
        is_active=menu_data.is_active
    )

    db_session.add(new_menu)
    db_session.commit()
    db_session.refresh(new_menu)

    logger.info("Menu created", extra={"menu_id": new_menu.id, "slug": new_menu.slug})
    return MenuResponse.model_validate(new_menu)


@router.get("/slug/{slug}")
async def get_menu_by_slug(
    slug: str,
    db_session: Session = Depends(get_session)
) -> MenuResponse:
    """Get an active menu by slug (public)."""

    statement = select(Menu).where(Menu.slug == slug, Menu.is_active == True)
    menu = db_session.exec(statement).first()

    if not menu:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Menu not found"
        )

    return MenuResponse.model_validate(menu)


@router.get("/location/{location}")
async def get_menu_by_location(
    location: MenuLocation,
    db_session: Session = Depends(get_session)
) -> MenuResponse:
    """Get the active menu placed at a location (public)."""

    statement = (
        select(Menu)
        .where(Menu.location == location, Menu.is_active == True)
        .order_by(Menu.id)
    )
    menu = db_session.exec(statement).first()

    if not menu:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Menu not found"
        )

    return MenuResponse.model_validate(menu)


@router.get("/{menu_id}")
async def get_menu(
    menu_id: int,
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> MenuResponse:
    """Get specific menu (authenticated users only)."""

    menu = get_menu_or_404(menu_id, db_session)
    return MenuResponse.model_validate(menu)


@router.api_route("/{menu_id}", methods=["PATCH", "PUT"])
async def update_menu(
    menu_id: int,
    menu_data: UpdateMenuRequest,
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> MenuResponse:
    """Update menu (Admins only). Only provided fields change."""

    await require_admin(token=token, db_session=db_session)

    menu = get_menu_or_404(menu_id, db_session)

    updates = menu_data.model_dump(exclude_unset=True)
    # name, location and is_active cannot be cleared
    for field in ("name", "location", "is_active", "slug"):
        if field in updates and updates[field] is None:
            del updates[field]

    if "slug" in updates:
        _ensure_unique_slug(updates["slug"], db_session, menu_id=menu.id)

    for field, value in updates.items():
        setattr(menu, field, value)
    menu.updated_at = datetime.now(timezone.utc)

    db_session.add(menu)
    db_session.commit()
    db_session.refresh(menu)

    logger.info("Menu updated", extra={"menu_id": menu.id, "fields": sorted(updates)})
    return MenuResponse.model_validate(menu)


@router.delete("/{menu_id}")
async def delete_menu(
    menu_id: int,
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> MessageResponse:
    """Delete menu and all of its items (Admins only)."""

    await require_admin(token=token, db_session=db_session)

    menu = get_menu_or_404(menu_id, db_session)

    items = list_menu_items_for(menu.id, db_session)
    for item in items:
        db_session.delete(item)
    db_session.delete(menu)
    db_session.commit()

    logger.info("Menu deleted", extra={"menu_id": menu_id, "items_deleted": len(items)})
    return MessageResponse(message="Menu deleted successfully")


@router.get("/{menu_id}/items")
async def list_items_of_menu(
    menu_id: int,
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> List[MenuItemResponse]:
    """Flat items of a menu, in sibling order."""

    menu = get_menu_or_404(menu_id, db_session)
    items = list_menu_items_for(menu.id, db_session)
    return [MenuItemResponse.model_validate(item) for item in items]


@router.get("/{menu_id}/structure")
async def get_menu_tree(
    menu_id: int,
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> List[MenuItemTreeResponse]:
    """Nested items of a menu."""

    menu = get_menu_or_404(menu_id, db_session)
    return build_menu_tree(list_menu_items_for(menu.id, db_session))


@structure_router.get("/{location}")
async def get_menu_structure(
    location: MenuLocation,
    db_session: Session = Depends(get_session)
) -> MenuStructureResponse:
    """Active menu at a location with its nested items (public)."""

    statement = (
        select(Menu)
        .where(Menu.location == location, Menu.is_active == True)
        .order_by(Menu.id)
    )
    menu = db_session.exec(statement).first()

    if not menu:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Menu not found"
        )

    return MenuStructureResponse(
        menu=MenuResponse.model_validate(menu),
        items=build_menu_tree(list_menu_items_for(menu.id, db_session))
    )
