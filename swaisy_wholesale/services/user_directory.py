"""Hardcoded user accounts and the role permission table."""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Optional
from uuid import uuid4

from ..common.errors import NotFoundError
from ..common.models.user import ROLE_ADMIN, ROLE_EDITOR, ROLE_SALESMAN, ROLE_SHOP, User

DEFAULT_USERS = (
    User(id="u1", username="admin", password="admin", role=ROLE_ADMIN),
    User(id="u2", username="salesman", password="password", role=ROLE_SALESMAN),
)

PERMISSIONS: Dict[str, FrozenSet[str]] = {
    "catalog.view": frozenset({ROLE_ADMIN, ROLE_SALESMAN, ROLE_EDITOR, ROLE_SHOP}),
    "orders.submit": frozenset({ROLE_ADMIN, ROLE_SALESMAN, ROLE_SHOP}),
    "orders.view": frozenset({ROLE_ADMIN, ROLE_SALESMAN, ROLE_SHOP}),
    "orders.manage": frozenset({ROLE_ADMIN}),
    "inventory.manage": frozenset({ROLE_ADMIN, ROLE_EDITOR}),
    "gallery.manage": frozenset({ROLE_ADMIN, ROLE_EDITOR}),
    "users.manage": frozenset({ROLE_ADMIN}),
}


def has_permission(user: Optional[User], permission: str) -> bool:
    if user is None:
        return False
    return user.role in PERMISSIONS.get(permission, frozenset())


class UserDirectory:
    """In-memory account list; changes do not survive a restart."""

    def __init__(self, users: Optional[Iterable[User]] = None) -> None:
        source = users if users is not None else DEFAULT_USERS
        self._users: List[User] = [User(**vars(u)) for u in source]

    def list_users(self) -> List[User]:
        return list(self._users)

    def get_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self._users if u.id == user_id), None)

    def find_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users if u.username == username), None)

    def authenticate(self, username: str, password: str) -> Optional[User]:
        user = self.find_by_username(username)
        if user is None or user.password != password:
            return None
        return user

    def add_user(self, user: User) -> User:
        if not user.username or not user.password:
            raise ValueError("username and password are required")
        if self.find_by_username(user.username) is not None:
            raise ValueError(f"username already exists: {user.username}")
        if not user.id:
            user.id = f"u{uuid4().hex[:8]}"
        self._users.append(user)
        return user

    def update_user(self, user: User) -> User:
        for idx, existing in enumerate(self._users):
            if existing.id == user.id:
                clash = self.find_by_username(user.username)
                if clash is not None and clash.id != user.id:
                    raise ValueError(f"username already exists: {user.username}")
                if not user.password:
                    user.password = existing.password
                self._users[idx] = user
                return user
        raise NotFoundError("user", user.id)

    def delete_user(self, user_id: str) -> None:
        remaining = [u for u in self._users if u.id != user_id]
        if len(remaining) == len(self._users):
            raise NotFoundError("user", user_id)
        self._users = remaining
