"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Each role is denied endpoints outside its area (403)
- Admin can reach every area
"""

import pytest


# =============================================================================
# UNAUTHENTICATED ACCESS: 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/users"),
            ("POST", "/api/users"),
            ("GET", "/api/leads"),
            ("POST", "/api/leads"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/categories"),
            ("GET", "/api/suppliers"),
            ("GET", "/api/orders"),
            ("POST", "/api/orders"),
            ("GET", "/api/dashboard/stats"),
            ("GET", "/api/reports/sales"),
            ("GET", "/api/navigation"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"


# =============================================================================
# ROLE BOUNDARIES: 403
# =============================================================================


class TestCashierBoundaries:

    def test_cannot_list_users(self, client, cashier_headers):
        assert client.get("/api/users", headers=cashier_headers).status_code == 403

    def test_cannot_read_leads(self, client, cashier_headers):
        assert client.get("/api/leads", headers=cashier_headers).status_code == 403

    def test_cannot_create_product(self, client, cashier_headers):
        resp = client.post("/api/products", json={"sku": "X"}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_can_read_catalog(self, client, cashier_headers):
        assert client.get("/api/products", headers=cashier_headers).status_code == 200

    def test_cannot_export_reports(self, client, cashier_headers):
        assert client.get("/api/reports/sales", headers=cashier_headers).status_code == 403


class TestSalesBoundaries:

    def test_can_read_leads(self, client, sales_headers):
        assert client.get("/api/leads", headers=sales_headers).status_code == 200

    def test_cannot_manage_suppliers(self, client, sales_headers):
        resp = client.post("/api/suppliers", json={"name": "Acme"}, headers=sales_headers)
        assert resp.status_code == 403

    def test_cannot_delete_leads(self, client, sales_headers):
        assert client.delete("/api/leads/1", headers=sales_headers).status_code == 403

    def test_denial_lists_required_roles(self, client, sales_headers):
        resp = client.get("/api/users", headers=sales_headers)
        assert resp.json["error"] == "Permission denied"
        assert resp.json["required_roles"] == ["Admin"]


class TestInventoryBoundaries:

    def test_cannot_checkout(self, client, inventory_headers):
        resp = client.post("/api/orders", json={"items": []}, headers=inventory_headers)
        assert resp.status_code == 403

    def test_cannot_read_leads(self, client, inventory_headers):
        assert client.get("/api/leads", headers=inventory_headers).status_code == 403

    def test_can_manage_categories(self, client, inventory_headers):
        resp = client.post("/api/categories", json={"name": "Toys"}, headers=inventory_headers)
        assert resp.status_code == 201


class TestAdminAccess:

    @pytest.mark.parametrize(
        "path",
        [
            "/api/users",
            "/api/leads",
            "/api/products",
            "/api/suppliers",
            "/api/orders",
            "/api/dashboard/stats",
            "/api/reports/sales",
            "/api/reports/inventory",
            "/api/reports/leads",
        ],
    )
    def test_admin_reaches_every_area(self, client, admin_headers, path):
        assert client.get(path, headers=admin_headers).status_code == 200

    @pytest.mark.parametrize("headers_fixture", ["sales_headers", "inventory_headers", "cashier_headers"])
    def test_dashboard_open_to_all_roles(self, client, request, headers_fixture):
        headers = request.getfixturevalue(headers_fixture)
        assert client.get("/api/dashboard/stats", headers=headers).status_code == 200


# =============================================================================
# USER MANAGEMENT
# =============================================================================


class TestUserManagement:

    def test_admin_creates_user(self, client, admin_headers):
        resp = client.post("/api/users", json={
            "email": "new.cashier@test.local",
            "password": "Password123",
            "name": "New Cashier",
            "role": "Cashier",
        }, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["user"]["role"] == "Cashier"

    def test_filter_by_role(self, client, admin_headers, cashier_user, sales_user):
        resp = client.get("/api/users?role=Cashier", headers=admin_headers)
        assert [u["id"] for u in resp.json["users"]] == [cashier_user.id]

    def test_filter_by_unknown_role(self, client, admin_headers):
        assert client.get("/api/users?role=Boss", headers=admin_headers).status_code == 400

    def test_role_change_applies_immediately(self, client, admin_headers, sales_user, sales_headers):
        assert client.get("/api/products", headers=sales_headers).status_code == 200
        assert client.post("/api/categories", json={"name": "A"}, headers=sales_headers).status_code == 403

        resp = client.put(f"/api/users/{sales_user.id}", json={"role": "Inventory"}, headers=admin_headers)
        assert resp.status_code == 200

        assert client.post("/api/categories", json={"name": "A"}, headers=sales_headers).status_code == 201

    def test_unknown_field_rejected(self, client, admin_headers, sales_user):
        resp = client.put(f"/api/users/{sales_user.id}", json={"password_hash": "x"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_deactivate_revokes_sessions(self, client, admin_headers, sales_user, sales_headers):
        resp = client.delete(f"/api/users/{sales_user.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["user"]["is_active"] is False
        assert client.get("/api/auth/me", headers=sales_headers).status_code == 401

    def test_password_change_revokes_sessions(self, client, admin_headers, sales_user, sales_headers):
        resp = client.put(f"/api/users/{sales_user.id}", json={"password": "NewPassword9"}, headers=admin_headers)
        assert resp.status_code == 200
        assert client.get("/api/auth/me", headers=sales_headers).status_code == 401

    def test_missing_user(self, client, admin_headers):
        assert client.get("/api/users/9999", headers=admin_headers).status_code == 404
