from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

ROLE_ADMIN = "admin"
ROLE_SALESMAN = "salesman"
ROLE_EDITOR = "editor"
ROLE_SHOP = "shop"

USER_ROLES = (ROLE_ADMIN, ROLE_SALESMAN, ROLE_EDITOR, ROLE_SHOP)


@dataclass
class User:
    id: str
    username: str
    password: str
    role: str
    store_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None

    def to_dict(self, include_password: bool = False) -> Dict[str, Any]:
        data = asdict(self)
        payload = {
            "id": data["id"],
            "username": data["username"],
            "role": data["role"],
            "storeName": data["store_name"],
            "phoneNumber": data["phone_number"],
            "address": data["address"],
        }
        if include_password:
            payload["password"] = data["password"]
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        role = str(data.get("role", ROLE_SALESMAN))
        if role not in USER_ROLES:
            raise ValueError(f"unknown role: {role}")
        return cls(
            id=str(data.get("id", "")),
            username=str(data.get("username", "")).strip(),
            password=str(data.get("password", "")),
            role=role,
            store_name=data.get("storeName"),
            phone_number=data.get("phoneNumber"),
            address=data.get("address"),
        )
