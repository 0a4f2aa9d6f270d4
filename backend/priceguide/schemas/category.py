from pydantic import AfterValidator, BaseModel, Field
from typing import Annotated, List, Optional
from datetime import datetime
from uuid import UUID

from ..enums import CategoryType

NAME_MAX_LENGTH = 255


def _clean_name(value):
    value = value.strip()
    if not value:
        raise ValueError("Name is required")
    if len(value) > NAME_MAX_LENGTH:
        raise ValueError(f"Name must be at most {NAME_MAX_LENGTH} characters")
    return value


CategoryName = Annotated[str, AfterValidator(_clean_name)]


class CategoryBase(BaseModel):
    name: str


class CategoryCreate(CategoryBase):
    name: CategoryName
    parent_id: Optional[UUID] = None
    category_type: Optional[CategoryType] = None
    is_active: bool = True


class CategoryUpdate(BaseModel):
    """Direct field edit; ``version`` is the version the client last saw."""
    version: int = Field(..., ge=1)
    name: Optional[CategoryName] = None
    category_type: Optional[CategoryType] = None
    is_active: Optional[bool] = None


class CategoryMove(BaseModel):
    """Reparent (``parent_id`` null moves to root) and optionally position."""
    parent_id: Optional[UUID] = None
    sort_order: Optional[str] = Field(None, min_length=1)
    version: Optional[int] = Field(None, ge=1)


class ReorderItem(BaseModel):
    id: UUID
    sort_order: str = Field(..., min_length=1)


class CategoryReorderRequest(BaseModel):
    items: List[ReorderItem] = Field(..., min_length=1)


class Category(CategoryBase):
    id: UUID
    company_id: int
    parent_id: Optional[UUID] = None
    depth: int
    sort_order: str
    category_type: CategoryType
    is_active: bool
    version: int
    last_modified_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    child_count: int = 0
    item_count: int = 0

    class Config:
        from_attributes = True


class CategoryListResponse(BaseModel):
    categories: List[Category]


class CategoryTreeNode(CategoryBase):
    id: UUID
    parent_id: Optional[UUID] = None
    depth: int
    sort_order: str
    category_type: CategoryType
    is_active: bool
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    direct_item_count: int = 0
    item_count: int = 0
    child_count: int = 0
    children: List["CategoryTreeNode"] = []

    class Config:
        from_attributes = True


class CategoryTreeResponse(BaseModel):
    categories: List[CategoryTreeNode]


class BreadcrumbEntry(BaseModel):
    id: UUID
    name: str


class BreadcrumbResponse(BaseModel):
    breadcrumb: List[BreadcrumbEntry]


class ReorderResponse(BaseModel):
    message: str
    updated_count: int


class DeleteCategoryResponse(BaseModel):
    message: str
    deleted_children: int
    deleted_items: int
