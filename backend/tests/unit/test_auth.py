from datetime import timedelta

from priceguide.auth import Principal, create_access_token, verify_token
from priceguide.enums import Permission


class TestPrincipal:

    def test_exact_permission(self):
        principal = Principal(user_id=1, company_id=1, permissions=frozenset({Permission.READ.value}))

        assert principal.has_permission(Permission.READ.value) is True
        assert principal.has_permission(Permission.DELETE.value) is False

    def test_resource_wildcard(self):
        principal = Principal(user_id=1, company_id=1, permissions=frozenset({"price_guide_category:*"}))

        assert all(principal.has_permission(p.value) for p in Permission)
        assert principal.has_permission("measure_sheet_item:read") is False

    def test_global_wildcard(self):
        principal = Principal(user_id=1, company_id=1, permissions=frozenset({"*"}))

        assert principal.has_permission(Permission.DELETE.value) is True


class TestTokens:

    def test_round_trip(self):
        token = create_access_token(user_id=5, company_id=2, permissions=[Permission.UPDATE, "price_guide_category:read"])

        payload = verify_token(token)

        assert payload["sub"] == "5"
        assert payload["company_id"] == 2
        assert payload["permissions"] == ["price_guide_category:read", "price_guide_category:update"]

    def test_expired_token(self):
        token = create_access_token(user_id=5, company_id=2, expires_delta=timedelta(seconds=-10))

        assert verify_token(token) is None

    def test_garbage_token(self):
        assert verify_token("abc.def.ghi") is None
