"""CRM lead and interaction tests."""

import pytest

from pavan.models import Lead, LeadInteraction


@pytest.fixture
def lead(client, sales_headers):
    resp = client.post("/api/leads", json={
        "name": "Meera Iyer",
        "company": "Iyer Stores",
        "value": "25000",
        "dueDate": "2024-06-30",
    }, headers=sales_headers)
    assert resp.status_code == 201
    return resp.json["lead"]


class TestLeads:

    def test_create_defaults(self, lead, sales_user):
        assert lead["status"] == "New"
        assert lead["assigned_to"] == sales_user.id
        assert lead["value"] == "25000.00"
        assert lead["due_date"] == "2024-06-30T00:00:00Z"

    def test_name_required(self, client, sales_headers):
        resp = client.post("/api/leads", json={"company": "Nameless"}, headers=sales_headers)
        assert resp.status_code == 400
        assert "name" in resp.json["error"]

    def test_invalid_status_on_create(self, client, sales_headers):
        resp = client.post("/api/leads", json={"name": "X", "status": "Won"}, headers=sales_headers)
        assert resp.status_code == 400

    def test_unknown_assignee(self, client, sales_headers):
        resp = client.post("/api/leads", json={"name": "X", "assignedTo": 9999}, headers=sales_headers)
        assert resp.status_code == 400

    def test_negative_value_rejected(self, client, sales_headers):
        resp = client.post("/api/leads", json={"name": "X", "value": "-5"}, headers=sales_headers)
        assert resp.status_code == 400

    def test_status_transition_any_direction(self, client, sales_headers, lead):
        for status in ("Converted", "Contacted", "Dropped"):
            resp = client.patch(f"/api/leads/{lead['id']}/status", json={"status": status}, headers=sales_headers)
            assert resp.status_code == 200
            assert resp.json["lead"]["status"] == status

    def test_status_patch_validates(self, client, sales_headers, lead):
        resp = client.patch(f"/api/leads/{lead['id']}/status", json={"status": "Lost"}, headers=sales_headers)
        assert resp.status_code == 400
        missing = client.patch(f"/api/leads/{lead['id']}/status", json={}, headers=sales_headers)
        assert missing.status_code == 400

    def test_update(self, client, sales_headers, lead):
        resp = client.put(f"/api/leads/{lead['id']}", json={"notes": "Call after Diwali"}, headers=sales_headers)
        assert resp.status_code == 200
        assert resp.json["lead"]["notes"] == "Call after Diwali"
        assert resp.json["lead"]["name"] == "Meera Iyer"

    def test_filter_by_status(self, client, sales_headers, lead):
        client.post("/api/leads", json={"name": "Other", "status": "Contacted"}, headers=sales_headers)

        resp = client.get("/api/leads?status=Contacted", headers=sales_headers)
        assert [item["name"] for item in resp.json["leads"]] == ["Other"]

        assert client.get("/api/leads?status=Maybe", headers=sales_headers).status_code == 400

    def test_filter_by_assignee(self, client, sales_headers, admin_user, lead):
        client.post("/api/leads", json={"name": "Admin's", "assignedTo": admin_user.id}, headers=sales_headers)
        resp = client.get(f"/api/leads?assigned_to={admin_user.id}", headers=sales_headers)
        assert [item["name"] for item in resp.json["leads"]] == ["Admin's"]

    def test_missing_lead(self, client, sales_headers):
        assert client.get("/api/leads/9999", headers=sales_headers).status_code == 404

    def test_admin_deletes_with_interactions(self, client, db_session, admin_headers, sales_headers, lead):
        client.post(f"/api/leads/{lead['id']}/interactions", json={"type": "Call"}, headers=sales_headers)

        resp = client.delete(f"/api/leads/{lead['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert db_session.query(Lead).count() == 0
        assert db_session.query(LeadInteraction).count() == 0


class TestInteractions:

    def test_log_and_list(self, client, sales_headers, sales_user, lead):
        resp = client.post(f"/api/leads/{lead['id']}/interactions", json={
            "type": "Meeting",
            "subject": "Store visit",
            "notes": "Wants bulk pricing",
        }, headers=sales_headers)
        assert resp.status_code == 201
        assert resp.json["interaction"]["user_id"] == sales_user.id

        listing = client.get(f"/api/leads/{lead['id']}/interactions", headers=sales_headers)
        assert listing.json["count"] == 1
        assert listing.json["interactions"][0]["subject"] == "Store visit"

    def test_type_required_and_validated(self, client, sales_headers, lead):
        assert client.post(f"/api/leads/{lead['id']}/interactions", json={}, headers=sales_headers).status_code == 400
        resp = client.post(f"/api/leads/{lead['id']}/interactions", json={"type": "Fax"}, headers=sales_headers)
        assert resp.status_code == 400

    def test_unknown_lead(self, client, sales_headers):
        resp = client.post("/api/leads/9999/interactions", json={"type": "Call"}, headers=sales_headers)
        assert resp.status_code == 404
