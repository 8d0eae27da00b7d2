"""
Verified caller identity supplied by the upstream auth gateway
"""
from typing import Optional

from pydantic import BaseModel

ADMIN_ROLE = "ADMIN"


class CurrentUser(BaseModel):
    user_id: str
    role: str = "CUSTOMER"
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role.upper() == ADMIN_ROLE
