# schoolhub/api/deps/auth.py
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from schoolhub.core.db import get_db
from schoolhub.core.security import decode_token
from schoolhub.models.user import UserRole
from schoolhub.services.users import user_cache
from uuid import UUID
from typing import Dict, Any
import jwt

security = HTTPBearer()

def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Decode JWT and return user + claims.
    Returns: {"user": CachedUser, "claims": dict}
    """
    token = credentials.credentials
    try:
        claims = decode_token(token)
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id_str = claims.get("sub")
    if not user_id_str:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing user ID"
        )

    try:
        user_uuid = UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format"
        )

    user = user_cache.get(db, user_uuid)
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )

    return {
        "user": user,
        "claims": claims
    }


def require_roles(*roles: str):
    """Dependency factory: the caller must hold at least one of ``roles``."""
    def checker(ctx = Depends(get_current_user)):
        if not ctx["user"].has_role(*roles):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return ctx
    return checker


require_admin = require_roles(UserRole.ADMIN.value)
require_teacher = require_roles(UserRole.ADMIN.value, UserRole.TEACHER.value)
require_staff = require_roles(UserRole.ADMIN.value, UserRole.TEACHER.value, UserRole.STAFF.value)
