from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import FrozenSet, Iterable, Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from .core.settings import get_settings
from .enums import Permission

# Configuration
settings = get_settings()
SECRET_KEY = settings.secret_key
ALGORITHM = settings.algorithm
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes


@dataclass(frozen=True)
class Principal:
    """The authenticated caller: who they are, which company, what they may do."""
    user_id: int
    company_id: int
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    def has_permission(self, action: str) -> bool:
        resource = action.split(":", 1)[0]
        return (
            action in self.permissions
            or f"{resource}:*" in self.permissions
            or "*" in self.permissions
        )


def create_access_token(
    user_id: int,
    company_id: int,
    permissions: Iterable[str] = (),
    expires_delta: Optional[timedelta] = None,
):
    """Create JWT access token."""
    to_encode = {
        "sub": str(user_id),
        "company_id": company_id,
        "permissions": sorted(str(p.value if isinstance(p, Permission) else p) for p in permissions),
    }
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

def verify_token(token: str) -> Optional[dict]:
    """Verify JWT token and return payload."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


# JWT Authentication
security = HTTPBearer()

def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Principal:
    """Get the calling principal from the bearer token"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    try:
        user_id = int(payload["sub"])
        company_id = int(payload["company_id"])
    except (KeyError, TypeError, ValueError):
        raise credentials_exception

    return Principal(
        user_id=user_id,
        company_id=company_id,
        permissions=frozenset(payload.get("permissions") or ()),
    )


def require_permission(action: Permission):
    """Dependency factory: the principal, provided it holds ``action``."""
    def _check(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has_permission(action.value):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {action.value}",
            )
        return principal
    return _check
