"""Authenticated caller schema."""

from uuid import UUID

from pydantic import BaseModel

from edustore.auth.permissions import UserRole, is_admin


class UserResponse(BaseModel):
    """Caller identity extracted from the access token."""

    id: UUID
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        """Check if caller is an administrator."""
        return is_admin(self.role)
