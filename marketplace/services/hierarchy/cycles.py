# marketplace/services/hierarchy/cycles.py
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID


def index_by_id(categories: Iterable[Any]) -> Dict[UUID, Any]:
    """Map category id -> category"""
    return {category.id: category for category in categories}


def would_create_cycle(
    category_id: UUID, proposed_parent_id: Optional[UUID], categories: Iterable[Any]
) -> bool:
    """
    Check whether attaching ``category_id`` under ``proposed_parent_id`` would
    make the category its own ancestor.

    The ancestor chain of the proposed parent is walked with a visited set, so
    the walk ends even when the stored data already contains a cycle; such a
    pre-existing cycle is also reported as ``True``.
    """
    if proposed_parent_id is None:
        return False
    if proposed_parent_id == category_id:
        return True

    by_id = index_by_id(categories)
    visited = set()
    current_id = proposed_parent_id
    while current_id is not None:
        if current_id == category_id:
            return True
        if current_id in visited:
            return True
        visited.add(current_id)
        current = by_id.get(current_id)
        if current is None:
            # Dangling parent pointer, the chain ends here
            return False
        current_id = current.parent_id
    return False


def find_cycles(categories: Iterable[Any]) -> List[List[UUID]]:
    """
    Return every cycle present in a snapshot, each as the list of ids along
    the cycle starting from its smallest id.
    """
    by_id = index_by_id(categories)
    cycles = []
    # 0 = unseen, 1 = on the current walk, 2 = finished
    state: Dict[UUID, int] = {}

    for start_id in by_id:
        if state.get(start_id):
            continue
        walk = []
        current_id = start_id
        while current_id is not None and current_id in by_id and not state.get(current_id):
            state[current_id] = 1
            walk.append(current_id)
            current_id = by_id[current_id].parent_id
        if current_id is not None and state.get(current_id) == 1:
            cycle = walk[walk.index(current_id):]
            pivot = cycle.index(min(cycle, key=str))
            cycles.append(cycle[pivot:] + cycle[:pivot])
        for category_id in walk:
            state[category_id] = 2

    return cycles
