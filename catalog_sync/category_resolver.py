"""Resolve a product's category membership string into category paths.

Membership strings look like ``"12|0;34|1"``: semicolon-separated
``categoryId|order`` entries. Each entry resolves to a CategoryPath
(root-to-leaf names) or to a Dropped marker explaining why it was skipped.

Two independent selection policies pick a single category per product:

* ``select_primary_category``: lowest membership order wins
* ``select_deepest_category``: longest root-to-leaf path wins

They can disagree for the same product and both are part of the output.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from catalog_sync.category_tree import CategoryForest
from catalog_sync.errors import DropReason
from catalog_sync.logging_config import get_logger
from catalog_sync.models import CategoryPath, SyncCounters

__all__ = [
    "Dropped",
    "parse_membership",
    "resolve_entry",
    "resolve_membership",
    "resolve_category_paths",
    "select_primary_category",
    "select_deepest_category",
]

logger = get_logger("resolver")


@dataclass(frozen=True)
class Dropped:
    """A membership entry that could not be resolved."""

    reason: DropReason
    raw: str


MembershipEntry = Tuple[int, int]
Resolution = Union[CategoryPath, Dropped]


def _parse_order(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def parse_membership(raw: Optional[str]) -> List[Union[MembershipEntry, Dropped]]:
    """Split a membership string into (category_id, order) pairs.

    The order defaults to 0 when missing or not numeric. Entries whose id
    is not an integer come back as Dropped.
    """
    if not raw or not raw.strip():
        return []

    entries: List[Union[MembershipEntry, Dropped]] = []
    for item in raw.split(";"):
        id_text, _, order_text = item.partition("|")
        id_text = id_text.strip()
        try:
            category_id = int(id_text)
        except ValueError:
            entries.append(Dropped(DropReason.MALFORMED_MEMBERSHIP, item))
            continue
        entries.append((category_id, _parse_order(order_text.strip())))
    return entries


def _path_to_root(forest: CategoryForest, category_id: int) -> Tuple[Tuple[str, ...], bool]:
    """Collect names from the category up to its root.

    Returns the root-first names and whether the walk had to stop early
    because the parent chain revisited a category.
    """
    names: List[str] = []
    seen = set()
    current = forest.get(category_id)
    truncated = False

    while current is not None:
        if current.id in seen:
            truncated = True
            break
        seen.add(current.id)
        names.append(current.name)
        current = forest.parent_of(current.id)

    return tuple(reversed(names)), truncated


def resolve_entry(
    entry: MembershipEntry,
    forest: CategoryForest,
    counters: Optional[SyncCounters] = None,
) -> Resolution:
    """Resolve one (category_id, order) pair against the forest."""
    category_id, order = entry
    node = forest.get(category_id)
    if node is None:
        return Dropped(DropReason.DANGLING_CATEGORY, f"{category_id}|{order}")

    full_path, truncated = _path_to_root(forest, category_id)
    if truncated and counters is not None:
        counters.record(DropReason.CYCLE_TRUNCATED)

    return CategoryPath(
        category_id=node.id,
        name=node.name,
        slug=node.slug,
        full_path=full_path,
        order=order,
    )


def resolve_membership(
    raw: Optional[str],
    forest: CategoryForest,
    counters: Optional[SyncCounters] = None,
) -> List[Resolution]:
    """Resolve every entry of a membership string, keeping drop markers."""
    results: List[Resolution] = []
    for entry in parse_membership(raw):
        if isinstance(entry, Dropped):
            results.append(entry)
        else:
            results.append(resolve_entry(entry, forest, counters))
    return results


def resolve_category_paths(
    raw: Optional[str],
    forest: CategoryForest,
    counters: Optional[SyncCounters] = None,
) -> List[CategoryPath]:
    """Resolved paths in membership order; dropped entries are counted."""
    paths: List[CategoryPath] = []
    for result in resolve_membership(raw, forest, counters):
        if isinstance(result, Dropped):
            if counters is not None:
                counters.record(result.reason)
            logger.debug(f"Dropped membership entry {result.raw!r}: {result.reason.value}")
            continue
        paths.append(result)
    return paths


def select_primary_category(paths: Sequence[CategoryPath]) -> Optional[CategoryPath]:
    """Lowest membership order wins; ties go to the first encountered."""
    if not paths:
        return None
    return min(paths, key=lambda path: path.order)


def select_deepest_category(paths: Sequence[CategoryPath]) -> Optional[CategoryPath]:
    """Most path segments wins; ties go to the first encountered."""
    if not paths:
        return None
    return max(paths, key=lambda path: path.depth)
