"""Unit tests for sharing permission lookups."""

from fittrack.core.models import GrantedPermission, PermissionType, ReceivedPermission
from fittrack.core.sharing import granted_permission_id, has_permission


RECEIVED = [
    ReceivedPermission(id=1, from_user_id=42, permission_type="history"),
    ReceivedPermission(id=2, from_user_id="7", permission_type="watch_session"),
]

GRANTED = [
    GrantedPermission(id=10, to_user_id=42, permission_type="analytics"),
    GrantedPermission(id=11, to_user_id=42, permission_type="history"),
]


class TestHasPermission:
    """Tests for has_permission."""

    def test_granted(self):
        assert has_permission(RECEIVED, 42, PermissionType.HISTORY)

    def test_other_type(self):
        assert not has_permission(RECEIVED, 42, "analytics")

    def test_ids_compared_as_strings(self):
        assert has_permission(RECEIVED, 7, "watch_session")
        assert has_permission(RECEIVED, "42", "history")


class TestGrantedPermissionId:
    """Tests for granted_permission_id."""

    def test_found(self):
        assert granted_permission_id(GRANTED, 42, "history") == 11

    def test_missing(self):
        assert granted_permission_id(GRANTED, 99, "history") is None
