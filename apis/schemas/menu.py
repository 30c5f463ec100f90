from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime
from models.menu import MenuLocation, MenuItemType, MenuItemTarget


def slugify(value: str) -> str:
    """Lowercase `value` and collapse whitespace runs into single hyphens."""
    return "-".join(value.strip().lower().split())


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON (snake_case is accepted on input)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Menus

class CreateMenuRequest(CamelModel):
    """Schema for creating a new menu."""
    name: str = Field(..., min_length=1, description="Menu name")
    slug: Optional[str] = Field(default=None, description="URL-safe identifier, derived from name when omitted")
    description: Optional[str] = Field(default=None, description="Free-form description")
    location: MenuLocation = Field(..., description="Site location the menu is rendered at")
    is_active: bool = Field(default=True, description="Whether the menu is shown on the site")

    @model_validator(mode="after")
    def derive_slug(self):
        self.slug = slugify(self.slug or self.name)
        if not self.slug:
            raise ValueError("Menu name must not be blank")
        return self


class UpdateMenuRequest(CamelModel):
    """Schema for updating a menu (only provided fields change)."""
    name: Optional[str] = Field(default=None, min_length=1, description="New menu name")
    slug: Optional[str] = Field(default=None, description="New slug")
    description: Optional[str] = Field(default=None, description="New description")
    location: Optional[MenuLocation] = Field(default=None, description="New location")
    is_active: Optional[bool] = Field(default=None, description="New visibility flag")

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: Optional[str]):
        if v is None:
            return v
        v = slugify(v)
        if not v:
            raise ValueError("Slug must not be blank")
        return v


class MenuResponse(CamelModel):
    """Schema for menu responses."""
    id: int = Field(..., description="Menu ID")
    name: str
    slug: str
    description: Optional[str] = None
    location: MenuLocation
    is_active: bool
    created_at: datetime
    updated_at: datetime


class MenuListResponse(CamelModel):
    """Schema for menu list responses."""
    menus: List[MenuResponse]
    total_count: int


# Menu items

class CreateMenuItemRequest(CamelModel):
    """Schema for creating a menu item.

    Only the payload field matching `type` is kept (`url` for links,
    `pageId` for pages, ...); the others are cleared.
    """
    menu_id: int = Field(..., description="Owning menu ID")
    parent_id: Optional[int] = Field(default=None, description="Parent item ID, null for a root item")
    title: str = Field(..., min_length=1, description="Display label")
    type: MenuItemType = Field(..., description="What the item points to")
    url: Optional[str] = Field(default=None, description="Target URL (link items)")
    target_blank: bool = Field(default=False, description="Open in a new tab (link items)")
    page_id: Optional[int] = None
    category_id: Optional[int] = None
    level_id: Optional[int] = None
    country_id: Optional[int] = None
    scholarship_id: Optional[int] = None
    post_id: Optional[int] = None
    order: Optional[int] = Field(default=None, ge=0, description="Sibling rank, defaults to the end of the group")


class UpdateMenuItemRequest(CamelModel):
    """Schema for updating a menu item (only provided fields change)."""
    parent_id: Optional[int] = Field(default=None, description="New parent item ID, null moves the item to the root")
    title: Optional[str] = Field(default=None, min_length=1)
    type: Optional[MenuItemType] = None
    url: Optional[str] = None
    target_blank: Optional[bool] = None
    page_id: Optional[int] = None
    category_id: Optional[int] = None
    level_id: Optional[int] = None
    country_id: Optional[int] = None
    scholarship_id: Optional[int] = None
    post_id: Optional[int] = None
    order: Optional[int] = Field(default=None, ge=0)


class MenuItemResponse(CamelModel):
    """Schema for menu item responses."""
    id: int
    menu_id: int
    parent_id: Optional[int] = None
    title: str
    type: MenuItemType
    url: Optional[str] = None
    target_blank: bool = False
    page_id: Optional[int] = None
    category_id: Optional[int] = None
    level_id: Optional[int] = None
    country_id: Optional[int] = None
    scholarship_id: Optional[int] = None
    post_id: Optional[int] = None
    order: int
    target: Optional[MenuItemTarget] = Field(default=None, description="Type-specific payload")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MenuItemTreeResponse(MenuItemResponse):
    """Menu item together with its ordered sub-items."""
    children: List["MenuItemTreeResponse"] = Field(default_factory=list)


class ReorderMenuItemsRequest(CamelModel):
    """Drag-and-drop move of one item inside its sibling group."""
    item_id: int = Field(..., description="Dragged item ID")
    source_index: int = Field(..., ge=0, description="Position of the item inside its sibling group")
    destination_index: int = Field(..., ge=0, description="Position to drop the item at")


class ReorderMenuItemsResponse(CamelModel):
    """Sibling group after a reorder."""
    items: List[MenuItemResponse]
    changed_count: int


class MenuStructureResponse(CamelModel):
    """Menu with its nested items, as rendered by the public site."""
    menu: MenuResponse
    items: List[MenuItemTreeResponse]
