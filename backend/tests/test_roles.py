"""
Role mask tests.

Verifies:
- Dominance follows mask containment
- Unknown roles never pass
- Overlapping masks are refused at startup
"""

import pytest

from stockroom import create_app, roles
from stockroom.roles import Role, has_privilege, validate_role_masks

from conftest import TEST_CONFIG


class TestDominance:

    @pytest.mark.parametrize(
        "actual,required,expected",
        [
            ("admin", "admin", True),
            ("admin", "manager", True),
            ("admin", "seller", True),
            ("admin", "basic", True),
            ("manager", "admin", False),
            ("manager", "manager", True),
            ("manager", "seller", True),
            ("seller", "manager", False),
            ("seller", "seller", True),
            ("seller", "basic", True),
            ("basic", "seller", False),
            ("basic", "basic", True),
        ],
    )
    def test_mask_containment(self, actual, required, expected):
        assert has_privilege(actual, required) is expected

    def test_accepts_enum_members(self):
        assert has_privilege(Role.MANAGER, Role.SELLER)

    @pytest.mark.parametrize("actual,required", [("root", "basic"), ("admin", "owner"), (None, "basic")])
    def test_unknown_roles_never_pass(self, actual, required):
        assert has_privilege(actual, required) is False

    def test_every_role_dominates_basic(self):
        for role in Role:
            assert has_privilege(role, Role.BASIC)


class TestStartupAssertion:

    def test_shipped_masks_are_consistent(self):
        validate_role_masks()

    def test_nested_and_disjoint_masks_pass(self):
        validate_role_masks({"a": 0x01, "b": 0x03, "c": 0x0C, "d": 0xFF})

    def test_partial_overlap_is_rejected(self):
        with pytest.raises(RuntimeError, match="partially overlap"):
            validate_role_masks({"seller": 0x03, "auditor": 0x06})

    def test_create_app_refuses_overlapping_masks(self, monkeypatch):
        monkeypatch.setattr(
            roles,
            "ROLE_MASKS",
            {Role.BASIC: 0x00, Role.SELLER: 0x03, Role.MANAGER: 0x06, Role.ADMIN: 0xFF},
        )
        with pytest.raises(RuntimeError):
            create_app(dict(TEST_CONFIG))
