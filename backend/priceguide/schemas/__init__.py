# Category schemas
from .category import (
    CategoryBase,
    CategoryCreate,
    CategoryUpdate,
    CategoryMove,
    ReorderItem,
    CategoryReorderRequest,
    Category,
    CategoryListResponse,
    CategoryTreeNode,
    CategoryTreeResponse,
    BreadcrumbEntry,
    BreadcrumbResponse,
    ReorderResponse,
    DeleteCategoryResponse
)

# Office schemas
from .office import (
    Office,
    OfficeListResponse,
    AssignOfficesRequest,
    AssignOfficesResponse,
    UnassignOfficeResponse
)

# Make all schemas available at package level
__all__ = [
    # Category
    "CategoryBase",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryMove",
    "ReorderItem",
    "CategoryReorderRequest",
    "Category",
    "CategoryListResponse",
    "CategoryTreeNode",
    "CategoryTreeResponse",
    "BreadcrumbEntry",
    "BreadcrumbResponse",
    "ReorderResponse",
    "DeleteCategoryResponse",
    # Office
    "Office",
    "OfficeListResponse",
    "AssignOfficesRequest",
    "AssignOfficesResponse",
    "UnassignOfficeResponse"
]
