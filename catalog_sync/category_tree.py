"""Category forest construction from flat category rows.

Rows reference their parent by id. A row whose parent id is unknown is
promoted to a root instead of being dropped, and a parent chain that loops
back on itself is broken at the first row (in input order) that closes the
loop, which is promoted to root as well. Every row therefore appears in the
forest exactly once.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from catalog_sync.errors import DropReason
from catalog_sync.logging_config import get_logger
from catalog_sync.models import CategoryNode, CategoryRow, SyncCounters

__all__ = ["CategoryForest", "build_category_tree"]

logger = get_logger("tree")


@dataclass(frozen=True)
class CategoryForest:
    """Roots of the category tree plus lookup tables.

    Attributes:
        roots: Root nodes ordered by display order (stable on ties)
        index: category id -> node
        parents: category id -> id of the parent it hangs from in the forest
            (None for roots, including promoted ones)
    """

    roots: Tuple[CategoryNode, ...]
    index: Dict[int, CategoryNode]
    parents: Dict[int, Optional[int]]

    def get(self, category_id: int) -> Optional[CategoryNode]:
        return self.index.get(category_id)

    def parent_of(self, category_id: int) -> Optional[CategoryNode]:
        parent_id = self.parents.get(category_id)
        return self.index.get(parent_id) if parent_id is not None else None

    def walk(self) -> Iterable[CategoryNode]:
        """Yield every node depth-first in display order."""
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def active_categories(self) -> List[CategoryNode]:
        """Published categories in input order."""
        return [node for node in self.index.values() if node.published]


def _closes_cycle(category_id: int, parent_id: int, parents: Dict[int, Optional[int]]) -> bool:
    """Check whether the parent chain from ``parent_id`` leads back to ``category_id``.

    A chain that runs into a loop not containing ``category_id`` does not
    count: that loop is broken when one of its own rows is reached.
    """
    seen = set()
    current: Optional[int] = parent_id
    while current is not None and current not in seen:
        if current == category_id:
            return True
        seen.add(current)
        current = parents.get(current)
    return False


def build_category_tree(
    rows: Iterable[CategoryRow],
    counters: Optional[SyncCounters] = None,
) -> CategoryForest:
    """Build the category forest.

    Args:
        rows: Category rows in export order
        counters: Optional recovery counters (promotions are recorded)

    Returns:
        CategoryForest with roots sorted by display order at every level
    """
    counters = counters if counters is not None else SyncCounters()

    # Pass 1: id -> row. A repeated id keeps its first position, last row wins.
    by_id: Dict[int, CategoryRow] = {}
    for row in rows:
        if row.id in by_id:
            counters.record(DropReason.DUPLICATE_CATEGORY)
            logger.debug(f"Duplicate category id {row.id}, keeping the last row")
        by_id[row.id] = row

    # Pass 2: attach each row to its parent, or promote it to root
    parents: Dict[int, Optional[int]] = {
        category_id: (row.parent_id if row.parent_id else None)
        for category_id, row in by_id.items()
    }
    children_of: Dict[int, List[int]] = {category_id: [] for category_id in by_id}
    root_ids: List[int] = []

    for category_id, row in by_id.items():
        parent_id = parents[category_id]
        if parent_id is None:
            root_ids.append(category_id)
            continue

        if parent_id not in by_id:
            counters.record(DropReason.DANGLING_PARENT)
            logger.debug(f"Category {category_id} references missing parent {parent_id}, promoting to root")
            parents[category_id] = None
            root_ids.append(category_id)
        elif _closes_cycle(category_id, parent_id, parents):
            counters.record(DropReason.CYCLE_TRUNCATED)
            logger.debug(f"Category {category_id} closes a parent cycle, promoting to root")
            parents[category_id] = None
            root_ids.append(category_id)
        else:
            children_of[parent_id].append(category_id)

    # sorted() is stable, so equal display orders keep input order
    def order_key(category_id: int) -> int:
        return by_id[category_id].display_order

    index: Dict[int, CategoryNode] = {}

    def build_node(category_id: int) -> CategoryNode:
        row = by_id[category_id]
        children = tuple(build_node(child_id) for child_id in sorted(children_of[category_id], key=order_key))
        node = CategoryNode(
            id=row.id,
            name=row.name,
            slug=row.slug,
            description=row.description,
            parent_id=row.parent_id,
            display_order=row.display_order,
            published=row.published,
            children=children,
        )
        index[category_id] = node
        return node

    roots = tuple(build_node(category_id) for category_id in sorted(root_ids, key=order_key))

    # Keep the index in input order
    ordered_index = {category_id: index[category_id] for category_id in by_id}

    logger.debug(f"Built category forest: {len(roots)} roots, {len(ordered_index)} categories")
    return CategoryForest(roots=roots, index=ordered_index, parents=parents)
