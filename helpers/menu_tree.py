"""
Menu tree helpers.

Menu items are stored flat: each row knows its parent and its rank among
siblings. These helpers turn that flat list into the nested forest the site
renders and compute new sibling ranks after a drag-and-drop move. They work
on anything exposing `id`, `parent_id` and `order` (ORM rows or API models).
"""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar, Any
from apis.schemas.menu import MenuItemTreeResponse

T = TypeVar("T")


class ReorderError(ValueError):
    """Raised when a reorder request cannot be applied to a sibling group."""


def _by_order(items: Sequence[T]) -> List[T]:
    # sorted() is stable, so equal ranks keep their input order
    return sorted(items, key=lambda item: item.order)


def build_menu_tree(items: Sequence[Any]) -> List[MenuItemTreeResponse]:
    """Build the ordered forest of a single menu's items.

    Roots are items without a parent. Items whose parent is missing from
    `items` are unreachable and silently left out, as is anything caught in
    a parent cycle. Nesting depth is not limited by the call stack.
    """
    children_of: Dict[Optional[int], List[Any]] = defaultdict(list)
    for item in items:
        children_of[item.parent_id].append(item)

    roots: List[MenuItemTreeResponse] = []
    # (list to fill, items to put in it)
    pending = [(roots, children_of.get(None, []))]
    while pending:
        nodes, group = pending.pop()
        for item in _by_order(group):
            node = MenuItemTreeResponse.model_validate(item, from_attributes=True)
            node = node.model_copy(update={"children": []})
            nodes.append(node)
            pending.append((node.children, children_of.get(item.id, [])))

    return roots


def sibling_group(items: Sequence[T], parent_id: Optional[int]) -> List[T]:
    """Items sharing `parent_id`, in display order."""
    return _by_order([item for item in items if item.parent_id == parent_id])


def reorder_siblings(
    items: Sequence[T],
    parent_id: Optional[int],
    source_index: int,
    destination_index: int,
) -> Tuple[List[T], List[T]]:
    """Move one item within its sibling group and re-rank the group.

    Indexes are positions inside the sibling group, not inside `items`. The
    moved item is taken out and reinserted at `destination_index`, then every
    sibling gets `order` equal to its position. Items are updated in place.

    Returns `(siblings, changed)` where `changed` only holds the items whose
    order actually moved. Equal indexes are a no-op: nothing is re-ranked.
    """
    siblings = sibling_group(items, parent_id)
    size = len(siblings)

    for label, index in (("source", source_index), ("destination", destination_index)):
        if not 0 <= index < size:
            raise ReorderError(f"{label.capitalize()} index {index} is out of range for a group of {size} item(s)")

    if source_index == destination_index:
        return siblings, []

    moved = siblings.pop(source_index)
    siblings.insert(destination_index, moved)

    changed = []
    for position, item in enumerate(siblings):
        if item.order != position:
            item.order = position
            changed.append(item)

    return siblings, changed


def descendant_ids(items: Sequence[Any], item_id: int) -> List[int]:
    """Ids of every item below `item_id` (children, grandchildren, ...)."""
    children_of: Dict[Optional[int], List[int]] = defaultdict(list)
    for item in items:
        children_of[item.parent_id].append(item.id)

    found: List[int] = []
    pending = list(children_of.get(item_id, []))
    while pending:
        current = pending.pop()
        if current in found or current == item_id:
            continue
        found.append(current)
        pending.extend(children_of.get(current, []))
    return found
