"""HTTP tests for request decisions and inventory reports."""

from decimal import Decimal

API = "/api/v1"


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestRequestDecisionEndpoints:

    def test_requires_authentication(self, client, units, make_request):
        request = make_request("rice", 2, unit=units["kg"])
        response = client.post(f"{API}/requests/{request.id}/decision", json={"decision": "approved"})
        assert response.status_code == 401

    def test_beneficiary_cannot_decide(self, client, beneficiary_headers, units, make_request):
        request = make_request("rice", 2, unit=units["kg"])
        response = client.post(
            f"{API}/requests/{request.id}/decision",
            json={"decision": "approved"},
            headers=beneficiary_headers,
        )
        assert response.status_code == 403

    def test_invalid_decision(self, client, admin_headers, units, make_request):
        request = make_request("rice", 2, unit=units["kg"])
        response = client.post(
            f"{API}/requests/{request.id}/decision",
            json={"decision": "maybe"},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_admin_approves(
        self, client, admin_headers, admin_user, notifier, units, make_product, make_batch, make_request, stock_of,
    ):
        batch = make_batch(make_product("Rice", unit=units["g"]), 8000)
        request = make_request("rice", 5, unit=units["kg"])

        response = client.post(
            f"{API}/requests/{request.id}/decision",
            json={"decision": "approved", "comment": "ok"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["message"] == "Request approved and deducted from inventory successfully."
        assert body["data"]["warning"] is False
        assert stock_of(batch) == Decimal("3000")
        assert len(notifier.sent) == 1

        movements = client.get(f"{API}/movements", headers=admin_headers).json()
        assert movements["success"] is True
        assert movements["data"]["total"] == 1
        header = movements["data"]["items"][0]
        assert header["actor_id"] == admin_user.id
        assert header["details"][0]["transaction_kind"] == "egress"

    def test_missing_request_is_envelope_failure(self, client, admin_headers):
        response = client.post(
            f"{API}/requests/999/decision",
            json={"decision": "rejected"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Request not found"

    def test_revert(self, client, admin_headers, notifier, units, make_request):
        request = make_request("rice", 2, unit=units["kg"], status="rejected")

        response = client.post(f"{API}/requests/{request.id}/revert", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["message"] == "Request reverted to pending successfully"
        assert notifier.sent == []


class TestInventoryEndpoints:

    def test_inventory_report(self, client, admin_headers, units, depots, make_product, make_batch):
        rice = make_product("Rice", unit=units["kg"])
        make_batch(rice, 4, depot=depots["north"], age_minutes=60)
        newest = make_batch(rice, 2, depot=depots["central"], age_minutes=0)

        response = client.get(f"{API}/inventory", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 2
        first = data["items"][0]
        assert first["id"] == newest.id
        assert first["depot"]["name"] == "Central Pantry"
        assert first["product"]["name"] == "Rice"
        assert first["product"]["unit_symbol"] == "kg"

    def test_depots_sorted_by_name(self, client, admin_headers, depots):
        response = client.get(f"{API}/inventory/depots", headers=admin_headers)

        names = [d["name"] for d in response.json()["data"]["items"]]
        assert names == ["Central Pantry", "North Warehouse"]

    def test_reports_require_admin(self, client, beneficiary_headers):
        assert client.get(f"{API}/inventory", headers=beneficiary_headers).status_code == 403
        assert client.get(f"{API}/movements", headers=beneficiary_headers).status_code == 403
