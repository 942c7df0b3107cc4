# schoolhub/services/users.py
"""
Staff account management plus the short-lived user lookup cache used by the
bearer-token dependency.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from schoolhub.core.config import settings
from schoolhub.core.security import hash_password
from schoolhub.models.user import User, UserRole
from schoolhub.services.errors import NotFoundError

logger = logging.getLogger(__name__)

VALID_ROLES = {r.value for r in UserRole}


@dataclass(frozen=True)
class CachedUser:
    """Session-independent snapshot of a user for authorization checks"""
    id: uuid.UUID
    username: str
    full_name: str
    roles: tuple
    is_active: bool

    def has_role(self, *roles: str) -> bool:
        return any(r in self.roles for r in roles)

    @classmethod
    def from_user(cls, user: User) -> "CachedUser":
        return cls(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            roles=tuple(user.roles),
            is_active=user.is_active,
        )


class UserCache:
    """In-memory read-through cache of user snapshots keyed by id"""

    def __init__(self, ttl_seconds: int):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._entries: Dict[uuid.UUID, tuple] = {}
        self._lock = threading.Lock()

    def get(self, db: Session, user_id: uuid.UUID) -> Optional[CachedUser]:
        now = datetime.utcnow()
        with self._lock:
            entry = self._entries.get(user_id)
            if entry and entry[1] > now:
                return entry[0]

        user = db.get(User, user_id)
        if user is None:
            return None

        snapshot = CachedUser.from_user(user)
        with self._lock:
            self._entries[user_id] = (snapshot, now + self._ttl)
        return snapshot

    def invalidate(self, user_id: uuid.UUID) -> None:
        with self._lock:
            self._entries.pop(user_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


user_cache = UserCache(settings.USER_CACHE_TTL_SECONDS)


def _validate_roles(roles: List[str]) -> List[str]:
    invalid = [r for r in roles if r not in VALID_ROLES]
    if invalid:
        raise ValueError(f"Invalid roles: {', '.join(invalid)}")
    if not roles:
        raise ValueError("At least one role is required")
    return roles


class UserService:
    def __init__(self, db: Session, cache: UserCache = user_cache):
        self.db = db
        self.cache = cache

    def list_users(self) -> List[User]:
        return list(self.db.execute(select(User).order_by(User.username)).scalars().all())

    def get_user(self, user_id: uuid.UUID) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.execute(
            select(User).where(User.username == username)
        ).scalar_one_or_none()

    def create_user(self, *, username: str, full_name: str, password: str,
                    roles: List[str], email: Optional[str] = None) -> User:
        if self.get_by_username(username):
            raise ValueError(f"Username '{username}' is already taken")
        if len(password) < 6:
            raise ValueError("Password must be at least 6 characters long")

        user = User(
            username=username,
            full_name=full_name,
            email=email,
            password_hash=hash_password(password),
            is_active=True,
        )
        user.set_roles(_validate_roles(roles))
        self.db.add(user)
        self.db.flush()
        logger.info(f"Created user {user.username} with roles {user.roles}")
        return user

    def update_user(self, user_id: uuid.UUID, *, full_name: Optional[str] = None,
                    email: Optional[str] = None, roles: Optional[List[str]] = None,
                    is_active: Optional[bool] = None) -> User:
        user = self.get_user(user_id)
        if full_name is not None:
            user.full_name = full_name
        if email is not None:
            user.email = email
        if roles is not None:
            user.set_roles(_validate_roles(roles))
        if is_active is not None:
            user.is_active = is_active
        self.db.flush()
        self.cache.invalidate(user.id)
        return user

    def reset_password(self, user_id: uuid.UUID, new_password: str) -> None:
        if len(new_password) < 6:
            raise ValueError("Password must be at least 6 characters long")
        user = self.get_user(user_id)
        user.password_hash = hash_password(new_password)
        self.db.flush()
        logger.info(f"Password reset for user {user.username}")

    def deactivate_user(self, user_id: uuid.UUID) -> User:
        user = self.get_user(user_id)
        user.is_active = False
        self.db.flush()
        self.cache.invalidate(user.id)
        return user

    def delete_user(self, user_id: uuid.UUID) -> None:
        user = self.get_user(user_id)
        self.db.delete(user)
        self.db.flush()
        self.cache.invalidate(user_id)
        logger.info(f"Deleted user {user.username}")
