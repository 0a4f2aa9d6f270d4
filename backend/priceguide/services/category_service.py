from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
from sqlalchemy.orm import Session
import logging

from .. import models, schemas
from ..auth import Principal
from ..core.order_key import key_between, validate_order_key
from ..core.settings import get_settings
from ..core.tree import (
    build_forest,
    can_set_category_type,
    compute_depth,
    is_duplicate_sibling,
    would_create_cycle,
)
from ..enums import CategoryType
from ..exceptions import (
    CategoryNotFound,
    CircularReference,
    ConcurrentModification,
    DataIntegrityError,
    DuplicateName,
    HasDependents,
    ParentNotFound,
    SelfParent,
    ValidationError,
)
from .audit import AuditSink, diff
from .category_store import UNSET, CategoryStore
from .retry import retry_transient
from .transaction import transaction

logger = logging.getLogger(__name__)


def _snapshot(category: models.PriceGuideCategory) -> Dict[str, Any]:
    return {
        "name": category.name,
        "parent_id": category.parent_id,
        "depth": category.depth,
        "sort_order": category.sort_order,
        "category_type": category.category_type,
        "is_active": category.is_active,
    }


def _to_schema(category: models.PriceGuideCategory, child_count: int = 0, item_count: int = 0) -> schemas.Category:
    result = schemas.Category.model_validate(category)
    return result.model_copy(update={"child_count": child_count, "item_count": item_count})


class CategoryService:
    """
    Create, edit, move, reorder and delete price guide categories for the
    principal's company.

    Every mutation validates against rows read inside its own transaction
    and either commits completely or rolls back. Audit events are emitted
    only after the commit.
    """

    def __init__(self, db: Session, principal: Principal, audit: Optional[AuditSink] = None):
        self.db = db
        self.principal = principal
        self.store = CategoryStore(db, principal.company_id)
        self.audit = audit or AuditSink()
        self.max_depth = get_settings().max_tree_depth

    def _get_or_404(self, category_id: UUID, for_update: bool = False) -> models.PriceGuideCategory:
        category = self.store.find_by_id(category_id, for_update=for_update)
        if category is None:
            raise CategoryNotFound(category_id)
        return category

    @staticmethod
    def _check_version(category: models.PriceGuideCategory, expected_version: int) -> None:
        if category.version != expected_version:
            raise ConcurrentModification(category.id, category.version, category.last_modified_by)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @retry_transient
    def get(self, category_id: UUID) -> schemas.Category:
        category = self._get_or_404(category_id)
        return _to_schema(
            category,
            self.store.count_children(category.id),
            self.store.count_items(category.id),
        )

    @retry_transient
    def list_categories(self, is_active: Optional[bool] = None, parent_id=UNSET) -> List[schemas.Category]:
        """Flat list; ``parent_id=None`` restricts to roots, UNSET means any parent."""
        categories = self.store.find_all(is_active=is_active, parent_id=parent_id)
        child_counts = self.store.count_children_by_parent()
        item_counts = self.store.count_items_by_category()
        return [
            _to_schema(c, child_counts.get(c.id, 0), item_counts.get(c.id, 0))
            for c in categories
        ]

    @retry_transient
    def children(self, category_id: UUID) -> List[schemas.Category]:
        parent = self._get_or_404(category_id)
        child_counts = self.store.count_children_by_parent()
        item_counts = self.store.count_items_by_category()
        return [
            _to_schema(c, child_counts.get(c.id, 0), item_counts.get(c.id, 0))
            for c in self.store.find_children(parent.id)
        ]

    @retry_transient
    def breadcrumb(self, category_id: UUID) -> List[schemas.BreadcrumbEntry]:
        """Path from the root down to ``category_id``."""
        current = self._get_or_404(category_id)
        trail = []
        seen = set()
        while current is not None:
            if current.id in seen or len(trail) > self.max_depth:
                logger.error(f"Parent chain of category {category_id} does not terminate")
                raise DataIntegrityError(category_id)
            seen.add(current.id)
            trail.append(schemas.BreadcrumbEntry(id=current.id, name=current.name))
            current = self.store.find_by_id(current.parent_id) if current.parent_id is not None else None
        trail.reverse()
        return trail

    @retry_transient
    def tree(self, is_active: Optional[bool] = None) -> List[schemas.CategoryTreeNode]:
        categories = self.store.find_all(is_active=is_active)
        item_counts = self.store.count_items_by_category()
        roots = build_forest(categories, item_counts)
        return [schemas.CategoryTreeNode.model_validate(node) for node in roots]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @retry_transient
    def create(self, data: schemas.CategoryCreate) -> schemas.Category:
        with transaction(self.db):
            parent = None
            if data.parent_id is not None:
                parent = self.store.find_by_id(data.parent_id)
                if parent is None:
                    raise ParentNotFound(data.parent_id)

            siblings = self.store.find_children(data.parent_id)
            if data.is_active and is_duplicate_sibling(data.name, siblings):
                raise DuplicateName(data.name, data.parent_id)

            depth = compute_depth(parent)
            category_type = CategoryType.DEFAULT
            if data.category_type is not None:
                if can_set_category_type(depth):
                    category_type = data.category_type
                else:
                    logger.debug(f"Ignoring category_type for non-root category {data.name!r}")

            last_key = siblings[-1].sort_order if siblings else None
            category = models.PriceGuideCategory(
                name=data.name,
                parent_id=data.parent_id,
                depth=depth,
                sort_order=key_between(last_key, None),
                category_type=category_type,
                is_active=data.is_active,
            )
            self.store.add(category, modified_by=self.principal.user_id)

        logger.info(
            f"Price guide category created: {category.id} ({category.name}) "
            f"company={self.principal.company_id} user={self.principal.user_id}"
        )
        self.audit.emit("category.created", self.principal, category.id, after=_snapshot(category))
        return _to_schema(category)

    @retry_transient
    def update(self, category_id: UUID, data: schemas.CategoryUpdate) -> schemas.Category:
        """
        Edit name, category type or active flag.

        An edit that changes nothing writes nothing: version and
        last_modified_by stay as they were and no audit event is emitted.

        Raises:
            ConcurrentModification: ``data.version`` is not the stored version
            DuplicateName: the resulting active name collides with a sibling
        """
        with transaction(self.db):
            category = self._get_or_404(category_id, for_update=True)
            self._check_version(category, data.version)
            before = _snapshot(category)

            new_name = data.name if data.name is not None else category.name
            new_active = data.is_active if data.is_active is not None else category.is_active
            name_changed = new_name != category.name
            reactivated = new_active and not category.is_active
            if new_active and (name_changed or reactivated):
                if self.store.find_sibling_by_name(category.parent_id, new_name, exclude_id=category.id):
                    raise DuplicateName(new_name, category.parent_id)

            category.name = new_name
            category.is_active = new_active
            if data.category_type is not None:
                if can_set_category_type(category.depth):
                    category.category_type = data.category_type
                else:
                    logger.debug(f"Ignoring category_type for non-root category {category.id}")

            changes = diff(before, _snapshot(category))
            if changes:
                self.store.save(category, expected_version=data.version, modified_by=self.principal.user_id)
            child_count = self.store.count_children(category.id)
            item_count = self.store.count_items(category.id)

        if not changes:
            logger.debug(f"Price guide category update was a no-op: {category.id}")
            return _to_schema(category, child_count, item_count)
        logger.info(f"Price guide category updated: {category.id} changes={list(changes)} user={self.principal.user_id}")
        self.audit.emit("category.updated", self.principal, category.id, before=before, after=changes)
        return _to_schema(category, child_count, item_count)

    @retry_transient
    def move(self, category_id: UUID, data: schemas.CategoryMove) -> schemas.Category:
        """
        Reparent a category (``parent_id`` None makes it a root) and
        optionally place it at ``sort_order``; otherwise it goes last among
        its new siblings. Depths of the whole subtree follow in the same
        transaction.
        """
        new_parent_id = data.parent_id
        if new_parent_id == category_id:
            raise SelfParent(category_id)
        if data.sort_order is not None:
            try:
                validate_order_key(data.sort_order)
            except ValueError as e:
                raise ValidationError(f"Invalid sort order: {e}", sort_order=data.sort_order)

        with transaction(self.db):
            category = self._get_or_404(category_id, for_update=True)
            if data.version is not None:
                self._check_version(category, data.version)

            # ancestors are locked so a concurrent opposite move waits for us
            if new_parent_id is not None and would_create_cycle(
                category.id,
                new_parent_id,
                lambda pid: self.store.find_by_id(pid, for_update=True),
                self.max_depth,
            ):
                raise CircularReference(category.id, new_parent_id)

            new_parent = None
            if new_parent_id is not None:
                new_parent = self.store.find_by_id(new_parent_id)
                if new_parent is None:
                    raise ParentNotFound(new_parent_id)

            parent_changed = new_parent_id != category.parent_id
            if parent_changed and category.is_active:
                siblings = self.store.find_children(new_parent_id)
                if is_duplicate_sibling(category.name, siblings, exclude_id=category.id):
                    raise DuplicateName(category.name, new_parent_id)

            if data.sort_order is not None:
                new_key = data.sort_order
            elif parent_changed:
                new_key = key_between(self.store.last_sibling_key(new_parent_id, exclude_id=category.id), None)
            else:
                new_key = category.sort_order

            before = _snapshot(category)
            was_root = category.parent_id is None
            category.parent_id = new_parent_id
            category.depth = compute_depth(new_parent)
            category.sort_order = new_key

            removed_assignments = 0
            if was_root and new_parent is not None:
                # type and office visibility only exist on roots
                category.category_type = CategoryType.DEFAULT
                removed_assignments = self.store.delete_office_assignments([category.id])

            self.store.save(category, expected_version=data.version, modified_by=self.principal.user_id)

            descendants_updated = 0
            if parent_changed:
                descendants_updated = self.store.update_depths_recursive(
                    category.id, category.depth, self.max_depth
                )
            child_count = self.store.count_children(category.id)
            item_count = self.store.count_items(category.id)

        logger.info(
            f"Price guide category moved: {category.id} {before['parent_id']} -> {new_parent_id} "
            f"descendants_updated={descendants_updated} user={self.principal.user_id}"
        )
        self.audit.emit(
            "category.moved",
            self.principal,
            category.id,
            before=before,
            after=diff(before, _snapshot(category)),
            descendants_updated=descendants_updated,
            removed_office_assignments=removed_assignments,
        )
        return _to_schema(category, child_count, item_count)

    @retry_transient
    def reorder(self, data: schemas.CategoryReorderRequest) -> int:
        """
        Apply new order keys to a batch of categories atomically.

        Ids that do not resolve in this company are skipped rather than
        failing the batch: editors routinely hold slightly stale lists.
        Returns the number of categories actually updated.
        """
        for item in data.items:
            try:
                validate_order_key(item.sort_order)
            except ValueError as e:
                raise ValidationError(f"Invalid sort order: {e}", id=item.id, sort_order=item.sort_order)

        skipped = []
        with transaction(self.db):
            updated = 0
            for item in data.items:
                if self.store.apply_sort_order(item.id, item.sort_order, modified_by=self.principal.user_id):
                    updated += 1
                else:
                    skipped.append(str(item.id))

        if skipped:
            logger.debug(f"Reorder skipped unknown categories: {skipped}")
        logger.info(f"Price guide categories reordered: {updated} updated user={self.principal.user_id}")
        self.audit.emit(
            "category.reordered",
            self.principal,
            self.principal.company_id,
            after={str(item.id): item.sort_order for item in data.items},
            skipped=skipped,
        )
        return updated

    @retry_transient
    def delete(self, category_id: UUID, force: bool = False) -> Tuple[int, int]:
        """
        Delete a category.

        Without ``force`` a category that still has children or items is
        refused with HasDependents. With ``force`` the whole subtree is
        removed and item links into it are cleared.

        Returns:
            (deleted_children, deleted_items)
        """
        with transaction(self.db):
            category = self._get_or_404(category_id, for_update=True)
            before = _snapshot(category)
            child_count = self.store.count_children(category.id)
            item_count = self.store.count_items(category.id)

            if child_count > 0 or item_count > 0:
                if not force:
                    raise HasDependents(category.id, child_count, item_count)
                deleted_children, deleted_items = self.store.delete_cascade(category.id, self.max_depth)
            else:
                self.store.delete(category.id)
                deleted_children, deleted_items = 0, 0

        logger.info(
            f"Price guide category deleted: {category_id} ({before['name']}) force={force} "
            f"deleted_children={deleted_children} deleted_items={deleted_items} user={self.principal.user_id}"
        )
        self.audit.emit(
            "category.deleted",
            self.principal,
            category_id,
            before=before,
            force=force,
            deleted_children=deleted_children,
            deleted_items=deleted_items,
        )
        return deleted_children, deleted_items
