"""
Typed errors raised by the category tree services.

Each error carries an HTTP status, a stable ``error`` code and structured
details so callers can fix their input or re-fetch and retry.
"""
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import status


class PriceGuideError(Exception):
    """Base class for expected, caller-recoverable failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error: str = "price_guide_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.error, "message": self.message}
        for key, value in self.details.items():
            payload[key] = str(value) if isinstance(value, UUID) else value
        return payload


class ValidationError(PriceGuideError):
    error = "validation_error"


class NotFound(PriceGuideError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"


class CategoryNotFound(NotFound):
    def __init__(self, category_id: UUID):
        super().__init__("Category not found", category_id=category_id)


class OfficeNotFound(NotFound):
    error = "office_not_found"

    def __init__(self, office_ids):
        super().__init__(
            "One or more offices not found",
            office_ids=sorted(office_ids),
        )


class ParentNotFound(PriceGuideError):
    error = "parent_not_found"

    def __init__(self, parent_id: UUID):
        super().__init__("Parent category not found", parent_id=parent_id)


class SelfParent(PriceGuideError):
    error = "self_parent"

    def __init__(self, category_id: UUID):
        super().__init__("A category cannot be its own parent", category_id=category_id)


class CircularReference(PriceGuideError):
    error = "circular_reference"

    def __init__(self, category_id: UUID, parent_id: UUID):
        super().__init__(
            "Cannot move category to one of its descendants",
            category_id=category_id,
            parent_id=parent_id,
        )


class NotRootCategory(PriceGuideError):
    error = "not_root_category"

    def __init__(self, category_id: UUID, depth: int):
        super().__init__(
            "Only root categories can be assigned to offices",
            category_id=category_id,
            depth=depth,
        )


class DuplicateName(PriceGuideError):
    status_code = status.HTTP_409_CONFLICT
    error = "duplicate_name"

    def __init__(self, name: str, parent_id: Optional[UUID]):
        super().__init__(
            f'A category with the name "{name}" already exists at this level.',
            name=name,
            parent_id=parent_id,
        )


class HasDependents(PriceGuideError):
    status_code = status.HTTP_409_CONFLICT
    error = "has_dependents"

    def __init__(self, category_id: UUID, child_count: int, item_count: int):
        super().__init__(
            f"This category has {child_count} child category(ies) and {item_count} item(s). "
            "Use force=true to delete (will cascade to children and unlink items).",
            category_id=category_id,
            child_count=child_count,
            item_count=item_count,
        )


class ConcurrentModification(PriceGuideError):
    status_code = status.HTTP_409_CONFLICT
    error = "concurrent_modification"

    def __init__(self, category_id: UUID, current_version: int, last_modified_by: Optional[int]):
        super().__init__(
            "Category was modified by someone else. Re-fetch and try again.",
            category_id=category_id,
            current_version=current_version,
            last_modified_by=last_modified_by,
        )


class DataIntegrityError(PriceGuideError):
    """The stored hierarchy is malformed (a parent loop or runaway depth)."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "data_integrity_error"

    def __init__(self, category_id: UUID, message: str = "Category hierarchy is corrupted"):
        super().__init__(message, category_id=category_id)
