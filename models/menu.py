from sqlmodel import SQLModel, Field
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel
from pydantic import Field as PydanticField
from enum import Enum
from typing import Optional, Dict, Any, Union, Literal, Annotated
from datetime import datetime, timezone


class MenuLocation(str, Enum):
    """Where a menu is rendered on the public site."""
    HEADER = "header"
    FOOTER = "footer"
    SIDEBAR = "sidebar"
    MOBILE = "mobile"


class MenuItemType(str, Enum):
    """What a menu item points to."""
    LINK = "link"
    PAGE = "page"
    CATEGORY = "category"
    LEVEL = "level"
    COUNTRY = "country"
    SCHOLARSHIP = "scholarship"
    POST = "post"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Menu(SQLModel, table=True):
    """Named navigation container placed at one site location."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    slug: str = Field(index=True, unique=True)
    description: Optional[str] = Field(default=None)
    location: MenuLocation = Field(index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class MenuItem(SQLModel, table=True):
    """One navigable entry of a menu, optionally nested under another item."""
    __tablename__ = "menu_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    menu_id: int = Field(foreign_key="menu.id", index=True)
    # Not a foreign key: deleting a parent leaves its children dangling
    parent_id: Optional[int] = Field(default=None, index=True)
    title: str
    type: MenuItemType
    url: Optional[str] = Field(default=None)
    target_blank: bool = Field(default=False)
    page_id: Optional[int] = Field(default=None)
    category_id: Optional[int] = Field(default=None)
    level_id: Optional[int] = Field(default=None)
    country_id: Optional[int] = Field(default=None)
    scholarship_id: Optional[int] = Field(default=None)
    post_id: Optional[int] = Field(default=None)
    order: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def target(self) -> "MenuItemTarget":
        """Type-specific payload of this item as a tagged union member."""
        return resolve_target(self.type, {name: getattr(self, name) for name in PAYLOAD_FIELDS})

    def apply_target(self, target: "MenuItemTarget") -> None:
        """Store the target's field and clear every field other types use."""
        for name, value in target_columns(target).items():
            setattr(self, name, value)
        self.type = MenuItemType(target.type)


# Type payload

class _Target(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LinkTarget(_Target):
    type: Literal["link"] = "link"
    url: str = PydanticField(min_length=1)
    target_blank: bool = False


class PageTarget(_Target):
    type: Literal["page"] = "page"
    page_id: int


class CategoryTarget(_Target):
    type: Literal["category"] = "category"
    category_id: int


class LevelTarget(_Target):
    type: Literal["level"] = "level"
    level_id: int


class CountryTarget(_Target):
    type: Literal["country"] = "country"
    country_id: int


class ScholarshipTarget(_Target):
    type: Literal["scholarship"] = "scholarship"
    scholarship_id: int


class PostTarget(_Target):
    type: Literal["post"] = "post"
    post_id: int


MenuItemTarget = Annotated[
    Union[LinkTarget, PageTarget, CategoryTarget, LevelTarget, CountryTarget, ScholarshipTarget, PostTarget],
    PydanticField(discriminator="type"),
]

TARGET_FIELDS: Dict[MenuItemType, str] = {
    MenuItemType.LINK: "url",
    MenuItemType.PAGE: "page_id",
    MenuItemType.CATEGORY: "category_id",
    MenuItemType.LEVEL: "level_id",
    MenuItemType.COUNTRY: "country_id",
    MenuItemType.SCHOLARSHIP: "scholarship_id",
    MenuItemType.POST: "post_id",
}

PAYLOAD_FIELDS = tuple(TARGET_FIELDS.values()) + ("target_blank",)

_target_adapter = TypeAdapter(MenuItemTarget)


class MenuTargetError(ValueError):
    """Raised when an item's type and its payload fields do not agree."""


def resolve_target(item_type: Union[MenuItemType, str], values: Dict[str, Any]) -> MenuItemTarget:
    """Build the tagged payload for `item_type` from a flat mapping of fields.

    Only the field selected by the type is read (plus `target_blank` for
    links); values of the other payload fields are ignored.
    """
    try:
        item_type = MenuItemType(item_type)
    except ValueError:
        raise MenuTargetError(f"Unknown menu item type: {item_type}")

    field_name = TARGET_FIELDS[item_type]
    data: Dict[str, Any] = {"type": item_type.value, field_name: values.get(field_name)}
    if item_type == MenuItemType.LINK:
        data["target_blank"] = bool(values.get("target_blank") or False)

    try:
        return _target_adapter.validate_python(data)
    except ValidationError:
        raise MenuTargetError(f"Menu item of type '{item_type.value}' requires a valid '{field_name}'")


def target_columns(target: MenuItemTarget) -> Dict[str, Any]:
    """Flatten a target back into the full set of payload columns."""
    columns: Dict[str, Any] = {name: None for name in TARGET_FIELDS.values()}
    columns["target_blank"] = False
    columns.update(target.model_dump(exclude={"type"}))
    return columns
