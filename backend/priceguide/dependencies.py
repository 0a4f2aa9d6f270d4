# Re-export database dependency
from .db import get_db

# Re-export authentication dependencies
from .auth import get_current_principal, require_permission

__all__ = ["get_db", "get_current_principal", "require_permission"]
