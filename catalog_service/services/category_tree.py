"""
Category Tree Service
Flat category records -> nested forest, descendant lookup and the
re-parenting guard used by the catalog admin.
"""
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from ..models import CategoryNode, CategoryRecord

logger = logging.getLogger(__name__)


class CategoryCycleError(ValueError):
    """Raised when a parent chain loops back on itself"""

    def __init__(self, category_id: str):
        super().__init__(f"Category parent chain loops at {category_id}")
        self.category_id = category_id


def sort_categories(categories: Iterable[CategoryRecord]) -> List[CategoryRecord]:
    """Storefront ordering: level, then order, then name"""
    return sorted(categories, key=lambda c: (c.level, c.order, c.name))


def build_tree(categories: Iterable[CategoryRecord]) -> List[CategoryNode]:
    """
    Materialize a flat list of categories into a rooted forest
    Args:
        categories: Category records, already in the desired sibling order
    Returns:
        Root nodes in input order, each with its children populated.
        Records whose parent_id does not resolve are returned as roots.
    """
    records: List[CategoryRecord] = []
    nodes: Dict[str, CategoryNode] = {}

    for record in categories:
        if record.id in nodes:
            logger.warning(f"Duplicate category id {record.id} ignored")
            continue
        records.append(record)
        nodes[record.id] = CategoryNode(**record.model_dump(), children=[])

    roots: List[CategoryNode] = []
    for record in records:
        node = nodes[record.id]
        parent = nodes.get(record.parent_id) if record.parent_id else None

        if parent is None:
            if record.parent_id:
                logger.warning(f"Category {record.id} has unknown parent {record.parent_id}, treating as root")
            roots.append(node)
        else:
            parent.children.append(node)

    # Members of a parent cycle, and everything under them, never hang off a root
    placed = _reachable_ids(roots)
    if len(placed) < len(records):
        for record in records:
            if record.id in placed:
                continue
            cycle_id = _first_repeated_ancestor(record.id, nodes)
            node = nodes[cycle_id]
            parent = nodes[node.parent_id]
            parent.children[:] = [child for child in parent.children if child is not node]
            roots.append(node)
            placed.update(_reachable_ids([node]))
            logger.warning(f"Category {cycle_id} is part of a parent cycle, promoted to root")

    return roots


def _first_repeated_ancestor(category_id: str, nodes: Dict[str, CategoryNode]) -> str:
    """Walk parent_id up from an unplaced node; the first repeat lies on the cycle"""
    seen: Set[str] = set()
    current = category_id
    while current not in seen:
        seen.add(current)
        current = nodes[current].parent_id
    return current


def _reachable_ids(roots: Iterable[CategoryNode]) -> Set[str]:
    return {node.id for node, _ in iter_tree(roots)}


def iter_tree(nodes: Iterable[CategoryNode], depth: int = 0) -> Iterator[Tuple[CategoryNode, int]]:
    """Depth-first walk yielding (node, depth)"""
    stack = [(node, depth) for node in reversed(list(nodes))]
    while stack:
        node, level = stack.pop()
        yield node, level
        stack.extend((child, level + 1) for child in reversed(node.children))


def count_nodes(nodes: Iterable[CategoryNode]) -> int:
    return sum(1 for _ in iter_tree(nodes))


def prune_hidden(nodes: Iterable[CategoryNode]) -> List[CategoryNode]:
    """Drop invisible nodes together with everything beneath them"""
    visible = []
    for node in nodes:
        if not node.is_visible:
            continue
        node.children = prune_hidden(node.children)
        visible.append(node)
    return visible


def children_index(categories: Iterable[CategoryRecord]) -> Dict[Optional[str], List[str]]:
    """parent_id -> ids of direct children, in input order"""
    index: Dict[Optional[str], List[str]] = {}
    for category in categories:
        index.setdefault(category.parent_id, []).append(category.id)
    return index


def collect_descendant_ids(categories: Iterable[CategoryRecord], root_id: str) -> Set[str]:
    """
    Every transitive descendant of root_id (root_id itself excluded)
    Args:
        categories: The full flat category list, loaded once
        root_id: Category whose subtree is collected
    Returns:
        Set of descendant ids. Cyclic data terminates; each id is visited once.
    """
    index = children_index(categories)
    descendants: Set[str] = set()
    stack = list(index.get(root_id, []))

    while stack:
        current = stack.pop()
        if current == root_id or current in descendants:
            continue
        descendants.add(current)
        stack.extend(index.get(current, []))

    return descendants


def is_descendant_of(categories: Iterable[CategoryRecord], ancestor_id: str, candidate_id: str) -> bool:
    """
    Walk up from candidate_id and report whether ancestor_id is on the way
    Raises:
        CategoryCycleError: If the parent chain revisits a category
    """
    parents = {category.id: category.parent_id for category in categories}
    seen = {candidate_id}
    current = parents.get(candidate_id)

    while current is not None:
        if current == ancestor_id:
            return True
        if current in seen:
            raise CategoryCycleError(current)
        seen.add(current)
        current = parents.get(current)

    return False
