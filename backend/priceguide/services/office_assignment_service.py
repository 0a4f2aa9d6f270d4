from typing import Iterable, List, Optional
from uuid import UUID
from sqlalchemy.orm import Session
import logging

from .. import models
from ..auth import Principal
from ..exceptions import CategoryNotFound, NotFound, NotRootCategory, OfficeNotFound
from .audit import AuditSink
from .category_store import CategoryStore
from .retry import retry_transient
from .transaction import transaction

logger = logging.getLogger(__name__)


class OfficeAssignmentService:
    """Which offices can see a root price guide category."""

    def __init__(self, db: Session, principal: Principal, audit: Optional[AuditSink] = None):
        self.db = db
        self.principal = principal
        self.store = CategoryStore(db, principal.company_id)
        self.audit = audit or AuditSink()

    def _get_category(self, category_id: UUID) -> models.PriceGuideCategory:
        category = self.store.find_by_id(category_id)
        if category is None:
            raise CategoryNotFound(category_id)
        return category

    @retry_transient
    def list_offices(self, category_id: UUID) -> List[models.Office]:
        category = self._get_category(category_id)
        return (
            self.db.query(models.Office)
            .join(
                models.CategoryOfficeAssignment,
                models.CategoryOfficeAssignment.office_id == models.Office.id,
            )
            .filter(
                models.CategoryOfficeAssignment.category_id == category.id,
                models.Office.company_id == self.principal.company_id,
            )
            .order_by(models.Office.name, models.Office.id)
            .all()
        )

    @retry_transient
    def assign(self, category_id: UUID, office_ids: Iterable[int]) -> int:
        """
        Attach offices to a root category. Pairs that already exist are left
        alone. Returns the number of newly created assignments.
        """
        wanted = set(office_ids)
        with transaction(self.db):
            category = self._get_category(category_id)
            if category.parent_id is not None or category.depth != 0:
                raise NotRootCategory(category.id, category.depth)

            offices = (
                self.db.query(models.Office)
                .filter(
                    models.Office.id.in_(wanted),
                    models.Office.company_id == self.principal.company_id,
                )
                .all()
            )
            missing = wanted - {office.id for office in offices}
            if missing:
                raise OfficeNotFound(missing)

            existing = {
                assignment.office_id
                for assignment in self.db.query(models.CategoryOfficeAssignment)
                .filter(models.CategoryOfficeAssignment.category_id == category.id)
                .all()
            }
            new_assignments = [
                models.CategoryOfficeAssignment(category_id=category.id, office_id=office_id)
                for office_id in sorted(wanted - existing)
            ]
            self.store.begin_write()
            self.db.add_all(new_assignments)
            self.db.flush()

        logger.info(
            f"Offices assigned to category {category_id}: {sorted(wanted)} "
            f"new={len(new_assignments)} user={self.principal.user_id}"
        )
        self.audit.emit(
            "category.offices_assigned",
            self.principal,
            category_id,
            after={"office_ids": sorted(a.office_id for a in new_assignments)},
        )
        return len(new_assignments)

    @retry_transient
    def unassign(self, category_id: UUID, office_id: int) -> None:
        with transaction(self.db):
            category = self._get_category(category_id)
            assignment = (
                self.db.query(models.CategoryOfficeAssignment)
                .filter(
                    models.CategoryOfficeAssignment.category_id == category.id,
                    models.CategoryOfficeAssignment.office_id == office_id,
                )
                .first()
            )
            if assignment is None:
                raise NotFound(
                    "Office assignment not found",
                    category_id=category_id,
                    office_id=office_id,
                )
            self.store.begin_write()
            self.db.delete(assignment)

        logger.info(f"Office {office_id} removed from category {category_id} user={self.principal.user_id}")
        self.audit.emit(
            "category.office_unassigned",
            self.principal,
            category_id,
            before={"office_id": office_id},
        )
