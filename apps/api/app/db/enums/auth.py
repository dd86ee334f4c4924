"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    User roles.

    - ADMIN: full access, owns the reserved "Admin" account
    - HR_MANAGER: HR back-office
    - SALES_USER: CRM contacts, organizations and activities
    - USER: default role for self-registered accounts
    """

    ADMIN = "admin"
    HR_MANAGER = "hr_manager"
    SALES_USER = "sales_user"
    USER = "user"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_
