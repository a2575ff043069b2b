"""Sharing Checks - Permission lookups over loaded permission lists."""

from typing import Optional

from .models import GrantedPermission, PermissionType, ReceivedPermission


def has_permission(
    received: list[ReceivedPermission],
    friend_id: str | int,
    permission_type: PermissionType | str,
) -> bool:
    """True if the friend granted this user the given permission."""
    permission_type = PermissionType(permission_type)
    return any(
        str(p.from_user_id) == str(friend_id) and p.permission_type is permission_type
        for p in received
    )


def granted_permission_id(
    granted: list[GrantedPermission],
    friend_id: str | int,
    permission_type: PermissionType | str,
) -> Optional[str | int]:
    """Id of the permission this user granted the friend, for revoking."""
    permission_type = PermissionType(permission_type)
    for p in granted:
        if str(p.to_user_id) == str(friend_id) and p.permission_type is permission_type:
            return p.id
    return None
