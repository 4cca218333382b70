"""
Pydantic schemas for the authenticated principal.
"""
from typing import Literal
from pydantic import BaseModel


class Principal(BaseModel):
    """Tenant context decoded from the bearer token"""
    user_id: str
    company_id: str
    role: Literal["admin", "user"] = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
