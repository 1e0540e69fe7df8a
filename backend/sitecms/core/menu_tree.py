# backend/sitecms/core/menu_tree.py
#
# Pure operations on a menu's item list. Inputs are never mutated; every
# function returns a new list.

from __future__ import annotations

import uuid
from typing import Iterable, Iterator, List, Optional, Protocol, Sequence

from sitecms.core.errors import NotFoundError, ValidationError
from sitecms.schemas.menu import MenuItem, MenuItemDraft

# Top level + one level of children.
MAX_MENU_DEPTH = 2


class LinkedEntity(Protocol):
    title: str
    slug: str


def page_url(slug: str) -> str:
    return f"/{slug}"


def post_url(slug: str) -> str:
    return f"/blog/{slug}"


def _index_of(items: Sequence[MenuItem], item_id: str) -> Optional[int]:
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    return None


def iter_tree(items: Iterable[MenuItem], depth: int = 1) -> Iterator[tuple[MenuItem, int]]:
    for item in items:
        yield item, depth
        yield from iter_tree(item.children, depth + 1)


def move(items: Sequence[MenuItem], from_index: int, to_index: int) -> List[MenuItem]:
    result = list(items)
    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return result


def reorder(items: Sequence[MenuItem], dragged_id: str, target_id: str) -> List[MenuItem]:
    """
    Drop `dragged_id` onto `target_id`: the dragged item leaves its index and
    lands on the target's index. Flat move within this one list.
    No-op when the ids match or either one is not in the list.
    """
    if dragged_id == target_id:
        return list(items)

    old_index = _index_of(items, dragged_id)
    new_index = _index_of(items, target_id)
    if old_index is None or new_index is None:
        return list(items)

    return move(items, old_index, new_index)


def reorder_children(
    items: Sequence[MenuItem],
    parent_id: Optional[str],
    dragged_id: str,
    target_id: str,
) -> List[MenuItem]:
    """Same move, applied to the children of one top-level item. Never crosses parents."""
    if parent_id is None:
        return reorder(items, dragged_id, target_id)

    parent_index = _index_of(items, parent_id)
    if parent_index is None:
        return list(items)

    parent = items[parent_index]
    result = list(items)
    result[parent_index] = parent.model_copy(
        update={"children": reorder(parent.children, dragged_id, target_id)}
    )
    return result


def validate_items(items: Sequence[MenuItem]) -> None:
    seen: set[str] = set()
    for item, depth in iter_tree(items):
        if depth > MAX_MENU_DEPTH:
            raise ValidationError(f"Menu items can only be nested {MAX_MENU_DEPTH - 1} level deep")
        if not item.label.strip():
            raise ValidationError("Menu item label is required")
        if not item.url.strip():
            raise ValidationError("Menu item URL is required")
        if item.id in seen:
            raise ValidationError(f"Duplicate menu item id: {item.id}")
        seen.add(item.id)


def add_item(items: Sequence[MenuItem], item: MenuItem) -> List[MenuItem]:
    result = list(items) + [item]
    validate_items(result)
    return result


def update_item(items: Sequence[MenuItem], item: MenuItem) -> List[MenuItem]:
    """Replace the top-level item with the same id (children travel with it)."""
    index = _index_of(items, item.id)
    if index is None:
        raise NotFoundError("Menu item not found")

    result = list(items)
    result[index] = item
    validate_items(result)
    return result


def remove_item(items: Sequence[MenuItem], item_id: str) -> List[MenuItem]:
    if _index_of(items, item_id) is None:
        raise NotFoundError("Menu item not found")
    return [i for i in items if i.id != item_id]


def build_item(
    draft: MenuItemDraft,
    *,
    page: Optional[LinkedEntity] = None,
    post: Optional[LinkedEntity] = None,
    existing: Optional[MenuItem] = None,
) -> MenuItem:
    """
    Turn an editor draft into a stored item.

    page/post: url always comes from the entity slug, label defaults to its title.
    custom/category: label and url are whatever the user typed, both required.
    Editing keeps the existing id and, unless replaced, its children.
    """
    label = (draft.label or "").strip()

    if draft.type == "page":
        if page is None:
            raise ValidationError("Select a published page for this menu item")
        label = label or page.title
        url = page_url(page.slug)
    elif draft.type == "post":
        if post is None:
            raise ValidationError("Select a published post for this menu item")
        label = label or post.title
        url = post_url(post.slug)
    else:
        url = (draft.url or "").strip()
        if not label:
            raise ValidationError("Menu item label is required")
        if not url:
            raise ValidationError("Menu item URL is required")

    if existing is not None:
        item_id = existing.id
    else:
        item_id = draft.id or str(uuid.uuid4())

    if draft.children is not None:
        children = list(draft.children)
    elif existing is not None:
        children = list(existing.children)
    else:
        children = []

    return MenuItem(
        id=item_id,
        label=label,
        url=url,
        type=draft.type,
        target=draft.target,
        children=children,
    )
