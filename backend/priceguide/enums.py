from enum import Enum

class CategoryType(str, Enum):
    """Display behaviour of a root category in the price guide."""
    DEFAULT = "default"
    DETAIL = "detail"
    DEEP_DRILL_DOWN = "deep_drill_down"

class Permission(str, Enum):
    READ = "price_guide_category:read"
    CREATE = "price_guide_category:create"
    UPDATE = "price_guide_category:update"
    DELETE = "price_guide_category:delete"
