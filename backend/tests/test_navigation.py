"""Role-gated navigation tests."""

import pytest

from pavan.permissions import (
    LOGIN_ROUTE,
    NAV_ROUTES,
    Role,
    default_route,
    is_permitted,
    permitted_routes,
    resolve_route,
)


class TestRouteTable:

    @pytest.mark.parametrize(
        "role,route,expected",
        [
            (Role.CASHIER, "/pos", True),
            (Role.CASHIER, "/crm", False),
            (Role.SALES, "/crm", True),
            (Role.SALES, "/inventory", False),
            (Role.INVENTORY, "/inventory", True),
            (Role.INVENTORY, "/reports", False),
            (Role.ADMIN, "/settings", True),
            (Role.ADMIN, "/reports", True),
        ],
    )
    def test_is_permitted(self, role, route, expected):
        assert is_permitted(role, route) is expected

    @pytest.mark.parametrize("role", list(Role))
    def test_dashboard_open_to_every_role(self, role):
        assert is_permitted(role, "/dashboard")

    def test_admin_reaches_every_route(self):
        assert all(is_permitted(Role.ADMIN, r.path) for r in NAV_ROUTES)

    def test_unknown_route_never_permitted(self):
        assert not is_permitted(Role.ADMIN, "/nowhere")

    def test_trailing_slash_and_query_ignored(self):
        assert is_permitted(Role.CASHIER, "/pos/?tab=cart")

    @pytest.mark.parametrize(
        "role,expected",
        [
            (Role.ADMIN, "/dashboard"),
            (Role.SALES, "/crm"),
            (Role.INVENTORY, "/inventory"),
            (Role.CASHIER, "/pos"),
        ],
    )
    def test_default_route_is_permitted(self, role, expected):
        assert default_route(role) == expected
        assert is_permitted(role, expected)

    def test_permitted_routes_for_cashier(self):
        assert [r.path for r in permitted_routes(Role.CASHIER)] == ["/dashboard", "/pos"]

    def test_role_parse_rejects_unknown(self):
        with pytest.raises(ValueError):
            Role.parse("Manager")


class TestResolveRoute:

    def test_unauthenticated_goes_to_login(self):
        decision = resolve_route(None, "/dashboard")
        assert not decision.allowed
        assert decision.redirect_to == LOGIN_ROUTE

    def test_forbidden_goes_to_role_default(self):
        decision = resolve_route(Role.CASHIER, "/crm")
        assert not decision.allowed
        assert decision.redirect_to == "/pos"

    def test_allowed(self):
        decision = resolve_route(Role.SALES, "/crm")
        assert decision.allowed
        assert decision.redirect_to is None


class TestNavigationApi:

    def test_requires_auth(self, client, db_session):
        assert client.get("/api/navigation").status_code == 401

    def test_lists_permitted_routes(self, client, sales_headers):
        resp = client.get("/api/navigation", headers=sales_headers)
        assert resp.status_code == 200
        assert resp.json["role"] == "Sales"
        assert resp.json["default_route"] == "/crm"
        assert [r["path"] for r in resp.json["routes"]] == ["/dashboard", "/crm"]

    def test_resolve_without_token(self, client, db_session):
        resp = client.get("/api/navigation/resolve?route=/pos")
        assert resp.status_code == 200
        assert resp.json == {"allowed": False, "redirect_to": "/auth/login", "reason": "unauthenticated"}

    def test_resolve_forbidden_route(self, client, inventory_headers):
        resp = client.get("/api/navigation/resolve?route=/pos", headers=inventory_headers)
        assert resp.json["allowed"] is False
        assert resp.json["redirect_to"] == "/inventory"

    def test_resolve_with_revoked_token(self, client, cashier_user, issue_token):
        headers = {"Authorization": f"Bearer {issue_token(cashier_user)}"}
        client.post("/api/auth/logout", headers=headers)

        resp = client.get("/api/navigation/resolve?route=/pos", headers=headers)
        assert resp.json["redirect_to"] == "/auth/login"

    def test_resolve_requires_route(self, client, db_session):
        assert client.get("/api/navigation/resolve").status_code == 400
