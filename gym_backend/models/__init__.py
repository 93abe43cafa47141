"""Model exports used by metadata discovery."""

from gym_backend.models.admin_user import AdminUser
from gym_backend.models.member import Member

__all__ = ["AdminUser", "Member"]
