from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, select
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timezone
from typing import List, Optional
from database import get_session
from models.menu import MenuItem, MenuTargetError, PAYLOAD_FIELDS, resolve_target
from models.auth import Token
from helpers.auth import get_auth_token, require_admin
from helpers.menu_tree import ReorderError, descendant_ids, reorder_siblings, sibling_group
from settings import logger
from .menu import get_menu_or_404, list_menu_items_for
from .schemas.menu import (
    CreateMenuItemRequest, UpdateMenuItemRequest, MenuItemResponse,
    ReorderMenuItemsRequest, ReorderMenuItemsResponse
)
from apis.schemas.auth import MessageResponse

router = APIRouter(prefix="/menu-items", tags=["menu items"])


def get_item_or_404(item_id: int, db_session: Session) -> MenuItem:
    item = db_session.get(MenuItem, item_id)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Menu item not found"
        )
    return item


def validate_parent(
    menu_id: int,
    parent_id: Optional[int],
    db_session: Session,
    item_id: Optional[int] = None
) -> None:
    """Reject parents that are missing, in another menu, or would create a cycle."""

    if parent_id is None:
        return

    if item_id is not None and parent_id == item_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A menu item cannot be its own parent"
        )

    parent = db_session.get(MenuItem, parent_id)
    if not parent:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Parent menu item with ID {parent_id} not found"
        )
    if parent.menu_id != menu_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Parent menu item belongs to a different menu"
        )

    if item_id is not None:
        items = list_menu_items_for(menu_id, db_session)
        if parent_id in descendant_ids(items, item_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A menu item cannot be moved under one of its own sub-items"
            )


@router.get("")
async def list_menu_items(
    menu_id: int = Query(..., alias="menuId", description="Menu whose items to list"),
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> List[MenuItemResponse]:
    """Flat list of a menu's items, in sibling order."""

    get_menu_or_404(menu_id, db_session)
    items = list_menu_items_for(menu_id, db_session)
    return [MenuItemResponse.model_validate(item) for item in items]


@router.post("/reorder")
async def reorder_menu_items(
    reorder_data: ReorderMenuItemsRequest,
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> ReorderMenuItemsResponse:
    """Move an item inside its sibling group and save the new ranks in one transaction (Admins only)."""

    await require_admin(token=token, db_session=db_session)

    item = get_item_or_404(reorder_data.item_id, db_session)
    items = list_menu_items_for(item.menu_id, db_session)

    group = sibling_group(items, item.parent_id)
    if reorder_data.source_index < len(group) and group[reorder_data.source_index].id != item.id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Menu order changed since it was loaded, reload and try again"
        )

    try:
        siblings, changed = reorder_siblings(
            items, item.parent_id, reorder_data.source_index, reorder_data.destination_index
        )
    except ReorderError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    if changed:
        now = datetime.now(timezone.utc)
        for sibling in changed:
            sibling.updated_at = now
            db_session.add(sibling)
        try:
            db_session.commit()
        except SQLAlchemyError:
            db_session.rollback()
            logger.exception("Menu reorder failed", extra={"item_id": item.id, "menu_id": item.menu_id})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to reorder menu items"
            )

    logger.info("Menu items reordered", extra={
        "menu_id": item.menu_id,
        "parent_id": item.parent_id,
        "item_id": item.id,
        "changed_count": len(changed)
    })

    return ReorderMenuItemsResponse(
        items=[MenuItemResponse.model_validate(sibling) for sibling in siblings],
        changed_count=len(changed)
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_menu_item(
    item_data: CreateMenuItemRequest,
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> MenuItemResponse:
    """Create new menu item (Admins only)."""

    await require_admin(token=token, db_session=db_session)

    get_menu_or_404(item_data.menu_id, db_session)
    validate_parent(item_data.menu_id, item_data.parent_id, db_session)

    try:
        target = resolve_target(item_data.type, item_data.model_dump())
    except MenuTargetError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    order = item_data.order
    if order is None:
        # New items go to the end of their sibling group
        items = list_menu_items_for(item_data.menu_id, db_session)
        order = len(sibling_group(items, item_data.parent_id))

    new_item = MenuItem(
        menu_id=item_data.menu_id,
        parent_id=item_data.parent_id,
        title=item_data.title,
        type=item_data.type,
        order=order
    )
    new_item.apply_target(target)

    db_session.add(new_item)
    db_session.commit()
    db_session.refresh(new_item)

    logger.info("Menu item created", extra={
        "item_id": new_item.id,
        "menu_id": new_item.menu_id,
        "parent_id": new_item.parent_id,
        "type": new_item.type.value
    })
    return MenuItemResponse.model_validate(new_item)


@router.get("/{item_id}")
async def get_menu_item(
    item_id: int,
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> MenuItemResponse:
    """Get specific menu item."""

    item = get_item_or_404(item_id, db_session)
    return MenuItemResponse.model_validate(item)


@router.api_route("/{item_id}", methods=["PATCH", "PUT"])
async def update_menu_item(
    item_id: int,
    item_data: UpdateMenuItemRequest,
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> MenuItemResponse:
    """Update menu item (Admins only). Covers edits, re-parenting and single order changes."""

    await require_admin(token=token, db_session=db_session)

    item = get_item_or_404(item_id, db_session)

    updates = item_data.model_dump(exclude_unset=True)
    # Only parent_id and the payload fields may be set to null
    for field in ("title", "type", "target_blank", "order"):
        if field in updates and updates[field] is None:
            del updates[field]

    if "parent_id" in updates:
        validate_parent(item.menu_id, updates["parent_id"], db_session, item_id=item.id)
        item.parent_id = updates["parent_id"]

    if "type" in updates or any(field in updates for field in PAYLOAD_FIELDS):
        values = {field: getattr(item, field) for field in PAYLOAD_FIELDS}
        values.update({field: updates[field] for field in PAYLOAD_FIELDS if field in updates})
        try:
            target = resolve_target(updates.get("type", item.type), values)
        except MenuTargetError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(e)
            )
        item.apply_target(target)

    if "title" in updates:
        item.title = updates["title"]
    if "order" in updates:
        item.order = updates["order"]
    item.updated_at = datetime.now(timezone.utc)

    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)

    logger.info("Menu item updated", extra={"item_id": item.id, "fields": sorted(updates)})
    return MenuItemResponse.model_validate(item)


@router.delete("/{item_id}")
async def delete_menu_item(
    item_id: int,
    cascade: bool = Query(default=False, description="Also delete every sub-item"),
    token: Token = Depends(get_auth_token),
    db_session: Session = Depends(get_session)
) -> MessageResponse:
    """Delete menu item (Admins only).

    Without `cascade` the sub-items are kept with a dangling parent and drop
    out of the built menu tree.
    """

    await require_admin(token=token, db_session=db_session)

    item = get_item_or_404(item_id, db_session)

    removed = 1
    if cascade:
        items = list_menu_items_for(item.menu_id, db_session)
        below = set(descendant_ids(items, item.id))
        for other in items:
            if other.id in below:
                db_session.delete(other)
        removed += len(below)

    db_session.delete(item)
    db_session.commit()

    logger.info("Menu item deleted", extra={"item_id": item_id, "cascade": cascade, "removed": removed})

    if cascade:
        return MessageResponse(message=f"Menu item and {removed - 1} sub-item(s) deleted successfully")
    return MessageResponse(message="Menu item deleted successfully")
