from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID
from datetime import datetime, timezone
import logging

from sqlalchemy import delete, func, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from .. import models
from ..exceptions import ConcurrentModification, DataIntegrityError

logger = logging.getLogger(__name__)

Category = models.PriceGuideCategory

# Sentinel for "no parent filter" (None already means "roots only")
UNSET = object()


def _parent_filter(parent_id: Optional[UUID]):
    if parent_id is None:
        return Category.parent_id.is_(None)
    return Category.parent_id == parent_id


class CategoryStore:
    """
    Read/write boundary for the category tree of one company.

    Every query is scoped to ``company_id``. The store never commits; it
    runs inside the transaction owned by the calling service.
    """

    def __init__(self, db: Session, company_id: int):
        self.db = db
        self.company_id = company_id
        # set by the first write; retries stop being safe from then on
        self.writes_started = False

    def _query(self):
        return self.db.query(Category).filter(Category.company_id == self.company_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_id(self, category_id: UUID, for_update: bool = False) -> Optional[models.PriceGuideCategory]:
        query = self._query().filter(Category.id == category_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def find_children(self, parent_id: Optional[UUID]) -> List[models.PriceGuideCategory]:
        """Direct children of ``parent_id`` (roots when None), in sibling order."""
        return (
            self._query()
            .filter(_parent_filter(parent_id))
            .order_by(Category.sort_order, Category.id)
            .all()
        )

    def find_children_of(self, parent_ids: Sequence[UUID]) -> List[models.PriceGuideCategory]:
        if not parent_ids:
            return []
        return self._query().filter(Category.parent_id.in_(list(parent_ids))).all()

    def find_sibling_by_name(
        self,
        parent_id: Optional[UUID],
        name: str,
        exclude_id: Optional[UUID] = None,
    ) -> Optional[models.PriceGuideCategory]:
        query = self._query().filter(
            _parent_filter(parent_id),
            Category.name == name,
            Category.is_active.is_(True),
        )
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return query.first()

    def find_all(self, is_active: Optional[bool] = None, parent_id=UNSET) -> List[models.PriceGuideCategory]:
        query = self._query()
        if is_active is not None:
            query = query.filter(Category.is_active.is_(is_active))
        if parent_id is not UNSET:
            query = query.filter(_parent_filter(parent_id))
        return query.order_by(Category.sort_order, Category.id).all()

    def last_sibling_key(self, parent_id: Optional[UUID], exclude_id: Optional[UUID] = None) -> Optional[str]:
        query = self.db.query(func.max(Category.sort_order)).filter(
            Category.company_id == self.company_id,
            _parent_filter(parent_id),
        )
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return query.scalar()

    def count_children(self, category_id: UUID) -> int:
        return self._query().filter(Category.parent_id == category_id).count()

    def count_items(self, category_id: UUID) -> int:
        return (
            self.db.query(models.MeasureSheetItem)
            .filter(
                models.MeasureSheetItem.company_id == self.company_id,
                models.MeasureSheetItem.category_id == category_id,
            )
            .count()
        )

    def count_children_by_parent(self) -> Dict[UUID, int]:
        rows = (
            self.db.query(Category.parent_id, func.count(Category.id))
            .filter(Category.company_id == self.company_id, Category.parent_id.isnot(None))
            .group_by(Category.parent_id)
            .all()
        )
        return {parent_id: count for parent_id, count in rows}

    def count_items_by_category(self) -> Dict[UUID, int]:
        item = models.MeasureSheetItem
        rows = (
            self.db.query(item.category_id, func.count(item.id))
            .filter(item.company_id == self.company_id, item.category_id.isnot(None))
            .group_by(item.category_id)
            .all()
        )
        return {category_id: count for category_id, count in rows}

    def collect_subtree_ids(self, root_id: UUID, max_depth: int) -> List[UUID]:
        """Ids of ``root_id`` and all its descendants, breadth first."""
        collected = [root_id]
        seen = {root_id}
        frontier = [root_id]
        levels = 0
        while frontier:
            levels += 1
            if levels > max_depth:
                raise DataIntegrityError(root_id, "Category subtree exceeds maximum depth")
            next_frontier = []
            for child in self.find_children_of(frontier):
                if child.id in seen:
                    raise DataIntegrityError(child.id)
                seen.add(child.id)
                collected.append(child.id)
                next_frontier.append(child.id)
            frontier = next_frontier
        return collected

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def begin_write(self) -> None:
        self.writes_started = True

    def add(self, category: models.PriceGuideCategory, modified_by: Optional[int] = None) -> models.PriceGuideCategory:
        category.company_id = self.company_id
        category.last_modified_by = modified_by
        self.begin_write()
        self.db.add(category)
        self.db.flush()
        return category

    def save(
        self,
        category: models.PriceGuideCategory,
        expected_version: Optional[int] = None,
        modified_by: Optional[int] = None,
    ) -> models.PriceGuideCategory:
        """
        Compare-and-swap write of one category.

        Raises ConcurrentModification if ``expected_version`` is stale, or if
        another transaction committed a newer version between our read and
        the UPDATE (the UPDATE is guarded by ``version``).
        """
        category_id = category.id
        if expected_version is not None and category.version != expected_version:
            raise ConcurrentModification(category_id, category.version, category.last_modified_by)
        if modified_by is not None:
            category.last_modified_by = modified_by
        self.begin_write()
        self._flush_versioned(category_id)
        return category

    def save_many(self, categories: Iterable[models.PriceGuideCategory], modified_by: Optional[int] = None) -> None:
        categories = list(categories)
        if not categories:
            return
        for category in categories:
            if modified_by is not None:
                category.last_modified_by = modified_by
        self.begin_write()
        self._flush_versioned(categories[0].id)

    def _flush_versioned(self, category_id: UUID) -> None:
        try:
            self.db.flush()
        except StaleDataError:
            self.db.rollback()
            current = self.find_by_id(category_id)
            logger.info(f"Stale write detected for category {category_id}")
            raise ConcurrentModification(
                category_id,
                current.version if current is not None else None,
                current.last_modified_by if current is not None else None,
            )

    def apply_sort_order(self, category_id: UUID, sort_order: str, modified_by: Optional[int] = None) -> bool:
        """
        Set one category's order key without a version check (last write
        wins). Returns False if the id does not exist in this company.
        """
        self.begin_write()
        result = self.db.execute(
            update(Category)
            .where(Category.id == category_id, Category.company_id == self.company_id)
            .values(
                sort_order=sort_order,
                version=Category.version + 1,
                last_modified_by=modified_by,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def update_depths_recursive(self, root_id: UUID, new_root_depth: int, max_depth: int) -> int:
        """
        Recompute ``depth`` for every descendant of ``root_id`` from
        ``new_root_depth``. Walks one level per query; returns the number
        of rows whose depth changed.
        """
        changed = []
        seen = {root_id}
        frontier = {root_id: new_root_depth}
        levels = 0
        while frontier:
            levels += 1
            if levels > max_depth:
                raise DataIntegrityError(root_id, "Category subtree exceeds maximum depth")
            next_frontier = {}
            for child in self.find_children_of(list(frontier)):
                if child.id in seen:
                    raise DataIntegrityError(child.id)
                seen.add(child.id)
                expected_depth = frontier[child.parent_id] + 1
                if child.depth != expected_depth:
                    child.depth = expected_depth
                    changed.append(child)
                next_frontier[child.id] = expected_depth
            frontier = next_frontier
        self.save_many(changed)
        return len(changed)

    def delete_office_assignments(self, category_ids: Sequence[UUID]) -> int:
        self.begin_write()
        result = self.db.execute(
            delete(models.CategoryOfficeAssignment)
            .where(models.CategoryOfficeAssignment.category_id.in_(list(category_ids)))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def unlink_items(self, category_ids: Sequence[UUID]) -> int:
        self.begin_write()
        item = models.MeasureSheetItem
        result = self.db.execute(
            update(item)
            .where(item.company_id == self.company_id, item.category_id.in_(list(category_ids)))
            .values(category_id=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete(self, category_id: UUID) -> None:
        """Delete a single category that has no children."""
        self.delete_office_assignments([category_id])
        self.db.execute(
            delete(Category)
            .where(Category.id == category_id, Category.company_id == self.company_id)
            .execution_options(synchronize_session="fetch")
        )

    def delete_cascade(self, root_id: UUID, max_depth: int) -> Tuple[int, int]:
        """
        Remove ``root_id``, every descendant and all item links into the
        subtree. Returns ``(deleted_descendants, unlinked_items)``.
        """
        subtree_ids = self.collect_subtree_ids(root_id, max_depth)
        unlinked = self.unlink_items(subtree_ids)
        self.delete_office_assignments(subtree_ids)
        # single statement, so the self-referencing FK is checked once at the end
        self.db.execute(
            delete(Category)
            .where(Category.id.in_(subtree_ids), Category.company_id == self.company_id)
            .execution_options(synchronize_session="fetch")
        )
        return len(subtree_ids) - 1, unlinked
