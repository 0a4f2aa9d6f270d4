from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from .. import schemas
from ..auth import Principal
from ..dependencies import get_db, require_permission
from ..enums import Permission
from ..exceptions import ValidationError
from ..services.category_service import CategoryService
from ..services.category_store import UNSET
from ..services.office_assignment_service import OfficeAssignmentService

router = APIRouter(
    prefix="/price-guide/categories",
    tags=["Price Guide Categories"],
    responses={404: {"description": "Not found"}},
)


def _parse_parent_filter(parent_id: Optional[str]):
    """Query-string parent filter: absent = any, "null" = roots only."""
    if parent_id is None:
        return UNSET
    if parent_id == "null":
        return None
    try:
        return UUID(parent_id)
    except ValueError:
        raise ValidationError("Invalid parent_id", parent_id=parent_id)


@router.get("", response_model=schemas.CategoryListResponse)
def list_categories(
    is_active: Optional[bool] = None,
    parent_id: Optional[str] = Query(None, description='Parent category id, or "null" for roots'),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.READ)),
):
    """List the company's categories as a flat list with child and item counts"""
    categories = CategoryService(db, principal).list_categories(
        is_active=is_active,
        parent_id=_parse_parent_filter(parent_id),
    )
    return schemas.CategoryListResponse(categories=categories)


@router.get("/tree", response_model=schemas.CategoryTreeResponse)
def get_category_tree(
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.READ)),
):
    """Categories as a nested tree with cascading item counts"""
    return schemas.CategoryTreeResponse(categories=CategoryService(db, principal).tree(is_active=is_active))


@router.post("", response_model=schemas.Category, status_code=status.HTTP_201_CREATED)
def create_category(
    category: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.CREATE)),
):
    """Create a category, placed last among its siblings"""
    return CategoryService(db, principal).create(category)


@router.patch("/reorder", response_model=schemas.ReorderResponse)
def reorder_categories(
    request: schemas.CategoryReorderRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.UPDATE)),
):
    """Batch update sort order keys"""
    updated = CategoryService(db, principal).reorder(request)
    return schemas.ReorderResponse(message="Categories reordered successfully", updated_count=updated)


@router.get("/{category_id}", response_model=schemas.Category)
def get_category(
    category_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.READ)),
):
    return CategoryService(db, principal).get(category_id)


@router.patch("/{category_id}", response_model=schemas.Category)
def update_category(
    category_id: UUID,
    update: schemas.CategoryUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.UPDATE)),
):
    """Edit name, type or active flag; requires the version the client last saw"""
    return CategoryService(db, principal).update(category_id, update)


@router.delete("/{category_id}", response_model=schemas.DeleteCategoryResponse)
def delete_category(
    category_id: UUID,
    force: bool = False,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.DELETE)),
):
    """Delete a category; ``force=true`` cascades to children and unlinks items"""
    deleted_children, deleted_items = CategoryService(db, principal).delete(category_id, force=force)
    return schemas.DeleteCategoryResponse(
        message="Category deleted successfully",
        deleted_children=deleted_children,
        deleted_items=deleted_items,
    )


@router.get("/{category_id}/children", response_model=schemas.CategoryListResponse)
def list_children(
    category_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.READ)),
):
    return schemas.CategoryListResponse(categories=CategoryService(db, principal).children(category_id))


@router.get("/{category_id}/breadcrumb", response_model=schemas.BreadcrumbResponse)
def get_breadcrumb(
    category_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.READ)),
):
    """Path from the root to this category"""
    return schemas.BreadcrumbResponse(breadcrumb=CategoryService(db, principal).breadcrumb(category_id))


@router.patch("/{category_id}/move", response_model=schemas.Category)
def move_category(
    category_id: UUID,
    move: schemas.CategoryMove,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.UPDATE)),
):
    """Move a category under a new parent (null = root)"""
    return CategoryService(db, principal).move(category_id, move)


@router.get("/{category_id}/offices", response_model=schemas.OfficeListResponse)
def list_category_offices(
    category_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.READ)),
):
    offices = OfficeAssignmentService(db, principal).list_offices(category_id)
    return schemas.OfficeListResponse(offices=[schemas.Office.model_validate(o) for o in offices])


@router.post("/{category_id}/offices", response_model=schemas.AssignOfficesResponse)
def assign_offices(
    category_id: UUID,
    request: schemas.AssignOfficesRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.UPDATE)),
):
    """Make a root category visible to the given offices"""
    assigned = OfficeAssignmentService(db, principal).assign(category_id, request.office_ids)
    return schemas.AssignOfficesResponse(message="Offices assigned successfully", assigned_count=assigned)


@router.delete("/{category_id}/offices/{office_id}", response_model=schemas.UnassignOfficeResponse)
def unassign_office(
    category_id: UUID,
    office_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_permission(Permission.UPDATE)),
):
    OfficeAssignmentService(db, principal).unassign(category_id, office_id)
    return schemas.UnassignOfficeResponse(message="Office removed successfully")
