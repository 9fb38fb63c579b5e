"""
Security guards for role-based and ownership-based access control.

Provides dependencies for protecting endpoints.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from lastmile.app.models.enums import UserRole
from lastmile.app.core.dependencies import get_current_user
from lastmile.app.core.exceptions import InsufficientPermissionsError


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/routes")
        async def list_routes(current_user: dict = Depends(require_role([UserRole.DRIVER]))):
            ...

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )

        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    """
    Dependency for dispatch-console endpoints.

    Returns:
        User payload if admin, raises 403 otherwise
    """
    if current_user.get("role") != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )

    return current_user


require_driver = require_role([UserRole.DRIVER])


def ensure_route_access(route_driver_id, current_user: dict, allow_unassigned: bool = True) -> None:
    """
    Enforce that a driver may act on a route.

    Unassigned routes are visible to any driver (so they can be claimed);
    assigned routes only to their driver. Admins always pass.

    Raises:
        InsufficientPermissionsError if access is denied
    """
    if current_user.get("role") == UserRole.ADMIN.value:
        return

    if route_driver_id is None:
        if allow_unassigned:
            return
        raise InsufficientPermissionsError("Route must be claimed before it can be updated")

    if route_driver_id != current_user.get("user_id"):
        raise InsufficientPermissionsError(
            "This route is assigned to another driver",
            details={"driver_id": route_driver_id},
        )
