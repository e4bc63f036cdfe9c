# marketplace/services/hierarchy/tree.py
"""
Pure tree helpers over a flat, single-supplier list of categories.

The flat list is the arena and ``id``/``parent_id`` are indices into it.
Inputs may be ORM rows or Pydantic models: only ``id``, ``parent_id``,
``name``, ``slug`` and ``order`` are read. Every walk keeps a visited set so
corrupt data (a cycle already stored) cannot make it loop.
"""
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from marketplace.core.logging import get_logger
from marketplace.schemas.category import CategoryInDB, CategoryNode, CategoryPathItem
from marketplace.services.hierarchy.cycles import index_by_id

logger = get_logger(__name__)


def sibling_key(category: Any):
    """Deterministic sibling order: (order asc, name asc)"""
    return (category.order or 0, category.name)


def children_index(categories: Iterable[Any]) -> Dict[Optional[UUID], List[Any]]:
    """Build parent_id -> sorted children in a single pass"""
    index: Dict[Optional[UUID], List[Any]] = defaultdict(list)
    for category in categories:
        index[category.parent_id].append(category)
    for children in index.values():
        children.sort(key=sibling_key)
    return index


def build_forest(categories: Sequence[Any]) -> List[CategoryNode]:
    """
    Assemble the flat list into a forest of CategoryNode.

    Categories whose parent is not part of the list are promoted to roots.
    Categories only reachable through a stored cycle are left out and logged.
    """
    by_id = index_by_id(categories)
    index = children_index(categories)

    roots = [
        category
        for category in categories
        if category.parent_id is None or category.parent_id not in by_id
    ]
    roots.sort(key=sibling_key)

    visited = set()
    forest: List[CategoryNode] = []
    # (category, parent node) pairs; children are pushed in reverse so they
    # come off the stack in sibling order
    stack = [(root, None) for root in reversed(roots)]

    while stack:
        category, parent_node = stack.pop()
        if category.id in visited:
            continue
        visited.add(category.id)

        node = CategoryNode.model_validate(category)
        node.subcategories = []
        if parent_node is None:
            forest.append(node)
        else:
            parent_node.subcategories.append(node)

        for child in reversed(index.get(category.id, [])):
            stack.append((child, node))

    if len(visited) != len(by_id):
        skipped = [category_id for category_id in by_id if category_id not in visited]
        logger.warning(f"Skipped {len(skipped)} categories caught in a parent cycle: {skipped}")

    return forest


def flatten(forest: Iterable[CategoryNode]) -> List[CategoryInDB]:
    """Pre-order traversal of a forest back into a flat list"""
    flat: List[CategoryInDB] = []
    stack = list(reversed(list(forest)))

    while stack:
        node = stack.pop()
        flat.append(CategoryInDB.model_validate(node.model_dump(exclude={"subcategories"})))
        stack.extend(reversed(node.subcategories))

    return flat


def get_path(category_id: UUID, categories: Iterable[Any]) -> List[CategoryPathItem]:
    """Breadcrumb from the root down to ``category_id`` (inclusive)"""
    by_id = index_by_id(categories)
    path: List[CategoryPathItem] = []
    visited = set()
    current_id = category_id

    while current_id is not None and current_id not in visited:
        category = by_id.get(current_id)
        if category is None:
            break
        visited.add(current_id)
        path.append(CategoryPathItem(id=category.id, name=category.name, slug=category.slug))
        current_id = category.parent_id

    path.reverse()
    return path


def get_descendant_ids(category_id: UUID, categories: Iterable[Any]) -> List[UUID]:
    """All ids below ``category_id`` in pre-order, without the category itself"""
    index = children_index(categories)
    descendants: List[UUID] = []
    visited = {category_id}
    stack = list(reversed(index.get(category_id, [])))

    while stack:
        child = stack.pop()
        if child.id in visited:
            continue
        visited.add(child.id)
        descendants.append(child.id)
        stack.extend(reversed(index.get(child.id, [])))

    return descendants


def get_depth(category_id: UUID, categories: Iterable[Any]) -> int:
    """Number of ancestor hops to a root; roots and unknown ids are 0"""
    by_id = index_by_id(categories)
    depth = 0
    visited = {category_id}
    category = by_id.get(category_id)

    while category is not None and category.parent_id is not None:
        if category.parent_id in visited or category.parent_id not in by_id:
            break
        visited.add(category.parent_id)
        depth += 1
        category = by_id[category.parent_id]

    return depth


def count_children(categories: Iterable[Any]) -> Dict[UUID, int]:
    """Direct subcategory count per category id"""
    counts: Dict[UUID, int] = defaultdict(int)
    for category in categories:
        if category.parent_id is not None:
            counts[category.parent_id] += 1
    return counts
