"""Role-based access control.

Hierarchical roles carried in the access token:
- ADMIN (level 2): Approves/rejects orders, reads any order
- INSTRUCTOR (level 1): Authors content (catalog CRUD lives elsewhere)
- STUDENT (level 0): Buys items and consumes content
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles with hierarchical levels.

    Higher level = more permissions.
    """

    STUDENT = "student"  # Level 0: Buyer / learner
    INSTRUCTOR = "instructor"  # Level 1: Content author
    ADMIN = "admin"  # Level 2: Store administrator


# Role hierarchy mapping (role -> permission level)
ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.STUDENT: 0,
    UserRole.INSTRUCTOR: 1,
    UserRole.ADMIN: 2,
}


def get_role_level(role: UserRole | str) -> int:
    """Get the permission level for a role.

    Returns:
        Permission level (0-2), -1 for unknown roles
    """
    if isinstance(role, str):
        try:
            role = UserRole(role)
        except ValueError:
            return -1
    return ROLE_HIERARCHY.get(role, -1)


def has_permission(user_role: UserRole | str, required_role: UserRole | str) -> bool:
    """Check if user has at least the required permission level.

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.INSTRUCTOR)
        True
        >>> has_permission("student", "admin")
        False
    """
    required = get_role_level(required_role)
    return required >= 0 and get_role_level(user_role) >= required


def is_admin(role: UserRole | str) -> bool:
    """Check if role is ADMIN."""
    if isinstance(role, str):
        return role == UserRole.ADMIN.value
    return role == UserRole.ADMIN
