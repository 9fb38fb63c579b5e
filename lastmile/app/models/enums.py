"""
User roles enumeration.

Defines the principal types for the delivery operations system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Dispatch console operator (credentials from settings)
        DRIVER: Field driver stored in the drivers table
    """
    ADMIN = "ADMIN"
    DRIVER = "DRIVER"


class DriverStatus(str, enum.Enum):
    """Driver account status. Only ACTIVE drivers may log in."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
