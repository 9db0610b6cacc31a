"""Tests for role permission shaping."""

from assets.services.permissions import (
    PERMISSION_CATEGORIES,
    expand_permissions,
    flatten_permissions,
    normalize_permissions,
)


class TestFlattenPermissions:
    def test_nested_categories(self):
        flat = flatten_permissions(
            {"analytics": {"view": True, "export": 0}, "compliance": {"audit": 1}}
        )
        assert flat == {
            "analytics.view": True,
            "analytics.export": False,
            "compliance.audit": True,
        }

    def test_flat_keys_pass_through(self):
        assert flatten_permissions({"analytics.view": 1}) == {"analytics.view": True}

    def test_empty(self):
        assert flatten_permissions(None) == {}


class TestExpandPermissions:
    def test_fills_every_known_flag(self):
        nested = expand_permissions({"maintenance.approve": True})
        assert nested["maintenance"]["approve"] is True
        assert nested["maintenance"]["view"] is False
        assert set(nested) == set(PERMISSION_CATEGORIES)

    def test_inverse_of_flatten(self):
        nested = expand_permissions({"digitalAssets.generate": True})
        assert expand_permissions(flatten_permissions(nested)) == nested


class TestNormalizePermissions:
    def test_missing_categories_default_false(self):
        normalized = normalize_permissions({"analytics": {"view": True}})
        assert normalized["analytics"]["view"] is True
        assert normalized["userManagement"]["assignRoles"] is False

    def test_unknown_flags_are_kept(self):
        normalized = normalize_permissions({"reports": {"schedule": True}})
        assert normalized["reports"] == {"schedule": True}
