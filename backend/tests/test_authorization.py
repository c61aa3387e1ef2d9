"""
Topapi Backend: Authorization Rule Tests
==========================================

Pure functions, so every case is a plain assertion.
"""

import pytest

from topapi.exceptions import ForbiddenError
from topapi.services.authorization import (
    can_act_on_own_resource,
    can_mutate,
    is_admin,
    normalize_role,
    require_admin,
    require_can_mutate,
    require_role_assignment,
)
from topapi.services.token_verifier import Principal

from conftest import ADMIN_ID, OTHER_ID, STAFF_ID


class TestNormalizeRole:
    @pytest.mark.parametrize("raw, expected", [
        ("admin", "admin"),
        ("Admin", "admin"),
        (" ADMIN ", "admin"),
        ("Staff", "staff"),
        ("", None),
        (None, None),
    ])
    def test_canonical_lowercase(self, raw, expected):
        assert normalize_role(raw) == expected


class TestDecisions:
    def setup_method(self):
        self.admin = Principal(id=ADMIN_ID, role="admin")
        self.staff = Principal(id=STAFF_ID, role="staff")

    def test_own_resource(self):
        assert can_act_on_own_resource(self.staff, STAFF_ID)
        assert not can_act_on_own_resource(self.staff, OTHER_ID)
        assert not can_act_on_own_resource(None, STAFF_ID)

    def test_is_admin_is_case_insensitive(self):
        assert is_admin(Principal(id=ADMIN_ID, role="ADMIN"))
        assert is_admin(self.admin)
        assert not is_admin(self.staff)
        assert not is_admin(None)

    @pytest.mark.parametrize("role", ["admin", "Admin", "staff", "STAFF", "viewer"])
    @pytest.mark.parametrize("owner", [STAFF_ID, OTHER_ID])
    def test_can_mutate_iff_owner_or_admin(self, role, owner):
        principal = Principal(id=STAFF_ID, role=role)
        expected = owner == STAFF_ID or role.lower() == "admin"
        assert can_mutate(principal, owner) is expected

    def test_privilege_comes_from_role_only(self):
        # A staff principal has no special standing, whatever its id
        assert not is_admin(Principal(id=ADMIN_ID, role="staff"))


class TestGates:
    def setup_method(self):
        self.admin = Principal(id=ADMIN_ID, role="admin")
        self.staff = Principal(id=STAFF_ID, role="staff")

    def test_require_admin(self):
        require_admin(self.admin)
        with pytest.raises(ForbiddenError) as exc_info:
            require_admin(self.staff)
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Admin access required"

    def test_require_can_mutate_message(self):
        require_can_mutate(self.staff, STAFF_ID)
        require_can_mutate(self.admin, OTHER_ID)
        with pytest.raises(ForbiddenError) as exc_info:
            require_can_mutate(self.staff, OTHER_ID, "Forbidden: You can only update your own profile")
        assert exc_info.value.message == "Forbidden: You can only update your own profile"

    def test_only_admins_grant_admin(self):
        require_role_assignment(self.admin, "admin")
        require_role_assignment(self.staff, "staff")
        require_role_assignment(self.staff, None)
        with pytest.raises(ForbiddenError):
            require_role_assignment(self.staff, "Admin")
