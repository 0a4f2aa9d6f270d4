"""
Pure decision functions over already-fetched category records.

Nothing here touches the database; callers pass in records (anything with
``id``, ``parent_id``, ``depth``, ``name``, ``is_active`` and ``sort_order``
attributes) and lookups as plain callables.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 1000


def would_create_cycle(
    category_id: UUID,
    candidate_parent_id: Optional[UUID],
    fetch_parent: Callable[[UUID], Optional[Any]],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> bool:
    """
    True if making ``candidate_parent_id`` the parent of ``category_id``
    would put the category inside its own ancestor chain.

    The walk stops at a root. A chain longer than ``max_depth`` is treated
    as a cycle.
    """
    current = candidate_parent_id
    steps = 0
    while current is not None:
        if current == category_id:
            return True
        steps += 1
        if steps > max_depth:
            logger.warning(
                f"Ancestor walk from {candidate_parent_id} exceeded {max_depth} steps; treating as cycle"
            )
            return True
        record = fetch_parent(current)
        current = record.parent_id if record is not None else None
    return False


def compute_depth(parent: Optional[Any]) -> int:
    return 0 if parent is None else parent.depth + 1


def is_duplicate_sibling(
    candidate_name: str,
    siblings: Iterable[Any],
    exclude_id: Optional[UUID] = None,
) -> bool:
    """Case-sensitive exact match against active siblings other than ``exclude_id``."""
    return any(
        sibling.is_active and sibling.name == candidate_name and sibling.id != exclude_id
        for sibling in siblings
    )


def can_set_category_type(depth: int) -> bool:
    return depth == 0


def sibling_sort_key(record: Any):
    return (record.sort_order, str(record.id))


@dataclass
class TreeNode:
    id: UUID
    name: str
    parent_id: Optional[UUID]
    depth: int
    sort_order: str
    category_type: Any
    is_active: bool
    version: int
    created_at: Any = None
    updated_at: Any = None
    direct_item_count: int = 0
    item_count: int = 0
    child_count: int = 0
    children: List["TreeNode"] = field(default_factory=list)


def build_forest(
    categories: Iterable[Any],
    direct_item_counts: Dict[UUID, int],
) -> List[TreeNode]:
    """
    Assemble fetched categories into a sorted forest.

    A category whose parent is not among ``categories`` (filtered out) is
    promoted to a root. ``item_count`` is the cascading total of the node
    and all its descendants, computed in one post-order pass.
    """
    records = sorted(categories, key=sibling_sort_key)
    nodes: Dict[UUID, TreeNode] = {}
    for record in records:
        nodes[record.id] = TreeNode(
            id=record.id,
            name=record.name,
            parent_id=record.parent_id,
            depth=record.depth,
            sort_order=record.sort_order,
            category_type=record.category_type,
            is_active=record.is_active,
            version=record.version,
            created_at=getattr(record, "created_at", None),
            updated_at=getattr(record, "updated_at", None),
            direct_item_count=direct_item_counts.get(record.id, 0),
        )

    # records are pre-sorted, so every children list comes out in sibling order
    roots: List[TreeNode] = []
    for record in records:
        node = nodes[record.id]
        parent = nodes.get(record.parent_id) if record.parent_id is not None else None
        if parent is not None:
            parent.children.append(node)
        else:
            roots.append(node)

    # Pre-order walk; reversed, every node comes after all of its descendants
    visit_order: List[TreeNode] = []
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        visit_order.append(node)
        stack.extend(reversed(node.children))

    for node in reversed(visit_order):
        node.child_count = len(node.children)
        node.item_count = node.direct_item_count + sum(child.item_count for child in node.children)

    if len(visit_order) != len(nodes):
        logger.warning(
            f"{len(nodes) - len(visit_order)} categories are unreachable from any root (parent loop)"
        )
    return roots
