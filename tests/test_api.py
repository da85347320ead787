"""Tests for the Flask API."""

import pytest

from main import create_app


class TestApi:
    """Test the API routes and responses."""

    @pytest.fixture
    def client(self, store, clock):
        app = create_app(store, clock)
        app.config["TESTING"] = True
        return app.test_client()

    def _agent(self, client, **overrides):
        payload = {"name": "Agent", "agent_type": "principal", "cap_type": "standard"}
        payload.update(overrides)
        response = client.post("/agents", json=payload)
        assert response.status_code == 201
        return response.get_json()

    def _transaction_payload(self, agent_id, **overrides):
        payload = {
            "agent_id": agent_id,
            "property_address": "42 Ocean Ave",
            "sale_amount": 800000,
            "commission_percentage": 2.5,
            "company_gci": 10000,
            "transaction_date": "2026-05-20",
        }
        payload.update(overrides)
        return payload

    def test_health_check(self, client):
        """GET /health returns healthy status."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_api_info(self, client):
        response = client.get("/api")

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "ok"
        assert "endpoints" in body

    def test_cors_headers(self, client):
        response = client.get("/health", headers={"Origin": "http://dashboard.local"})

        assert "Access-Control-Allow-Origin" in response.headers

    def test_not_found_route(self, client):
        response = client.get("/unknown")

        assert response.status_code == 404

    def test_create_and_fetch_agent(self, client):
        agent = self._agent(client, name="Robin")

        response = client.get(f"/agents/{agent['id']}")

        assert response.status_code == 200
        assert response.get_json()["name"] == "Robin"
        assert response.get_json()["agent_code"] == "000001"

    def test_missing_agent_404(self, client):
        response = client.get("/agents/404")

        assert response.status_code == 404
        assert response.get_json()["status"] == "not_found"

    def test_invalid_agent_type_400(self, client):
        response = client.post("/agents", json={"name": "X", "agent_type": "broker"})

        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"

    def test_empty_body_400(self, client):
        response = client.post("/agents", data="", content_type="application/json")

        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_downline(self, client):
        """The downline is nested to every depth with each agent's earnings."""
        top = self._agent(client, name="Top")
        sponsor = self._agent(client, name="Sponsor", sponsor_id=top["id"])
        child = self._agent(client, name="Child", sponsor_id=sponsor["id"])
        grandchild = self._agent(client, name="Grandchild", agent_type="support", cap_type=None,
                                 sponsor_id=child["id"])
        client.post("/transactions", json=self._transaction_payload(grandchild["id"]))

        response = client.get(f"/agents/{sponsor['id']}/downline")

        assert response.status_code == 200
        body = response.get_json()
        assert body["id"] == sponsor["id"]
        assert body["sponsor"]["id"] == top["id"]
        # grandchild's deal pays child (tier 1) and sponsor (tier 2), 1250 each
        assert body["total_earnings"] == 1250.0
        assert [a["id"] for a in body["downline"]] == [child["id"]]
        child_node = body["downline"][0]
        assert child_node["total_earnings"] == 1250.0
        assert [a["id"] for a in child_node["downline"]] == [grandchild["id"]]
        assert child_node["downline"][0]["total_earnings"] == 0.0
        assert child_node["downline"][0]["downline"] == []

    def test_downline_of_missing_agent_404(self, client):
        response = client.get("/agents/404/downline")

        assert response.status_code == 404

    def test_root_agents(self, client):
        """Only agents without a sponsor are listed as roots."""
        first = self._agent(client)
        self._agent(client, sponsor_id=first["id"])
        second = self._agent(client)

        response = client.get("/agents/root")

        assert response.status_code == 200
        assert [a["id"] for a in response.get_json()["agents"]] == [first["id"], second["id"]]

    def test_agent_transactions(self, client):
        """Transactions are listed for the agent that closed them only."""
        agent = self._agent(client)
        other = self._agent(client)
        tx = client.post("/transactions", json=self._transaction_payload(agent["id"])).get_json()
        client.post("/transactions", json=self._transaction_payload(other["id"]))

        response = client.get(f"/agents/{agent['id']}/transactions")

        assert response.status_code == 200
        assert [t["id"] for t in response.get_json()["transactions"]] == [tx["id"]]

    def test_agent_transactions_missing_agent_404(self, client):
        response = client.get("/agents/404/transactions")

        assert response.status_code == 404
        assert response.get_json()["status"] == "not_found"

    def test_clear_cap_type_restores_default(self, client):
        """PATCH cap_type null puts a team principal back on the standard cap."""
        agent = self._agent(client, cap_type="team")

        response = client.patch(f"/agents/{agent['id']}", json={"cap_type": None})

        assert response.status_code == 200
        assert response.get_json()["cap_type"] is None
        child = self._agent(client, agent_type="support", cap_type=None, sponsor_id=agent["id"])
        body = client.post("/transactions", json=self._transaction_payload(child["id"], company_gci=20000)).get_json()
        # 20000 x 12.5% = 2500, clamped to the standard 2000 rather than the team 1000
        assert body["total_amount"] == 2000.0

    def test_sponsor_cycle_rejected(self, client):
        a = self._agent(client)
        b = self._agent(client, sponsor_id=a["id"])

        response = client.patch(f"/agents/{a['id']}", json={"sponsor_id": b["id"]})

        assert response.status_code == 400

    def test_transaction_creates_revenue_shares(self, client):
        """C's deal pays B at tier 1 and A at tier 2."""
        a = self._agent(client, name="A")
        b = self._agent(client, name="B", sponsor_id=a["id"])
        c = self._agent(client, name="C", agent_type="support", cap_type=None, sponsor_id=b["id"])

        response = client.post("/transactions", json=self._transaction_payload(c["id"]))

        assert response.status_code == 201
        body = response.get_json()
        assert body["company_gci"] == 10000.0
        shares = {s["recipient_agent_id"]: s for s in body["revenue_shares"]}
        assert shares[b["id"]]["amount"] == 1250.0
        assert shares[b["id"]]["tier"] == 1
        assert shares[a["id"]]["amount"] == 1250.0
        assert shares[a["id"]]["tier"] == 2
        assert body["total_amount"] == 2500.0

    def test_company_gci_derived(self, client):
        agent = self._agent(client)
        payload = self._transaction_payload(agent["id"])
        del payload["company_gci"]

        response = client.post("/transactions", json=payload)

        # 800,000 × 2.5% × 15% = 3,000
        assert response.get_json()["company_gci"] == 3000.0

    def test_update_gci_regenerates(self, client):
        a = self._agent(client)
        b = self._agent(client, agent_type="support", cap_type=None, sponsor_id=a["id"])
        tx = client.post("/transactions", json=self._transaction_payload(b["id"])).get_json()

        response = client.patch(f"/transactions/{tx['id']}", json={"company_gci": 4000})

        assert response.status_code == 200
        shares = client.get(f"/transactions/{tx['id']}/revenue-shares").get_json()["revenue_shares"]
        assert [(s["recipient_agent_id"], s["amount"]) for s in shares] == [(a["id"], 500.0)]

    def test_update_rejects_agent_change(self, client):
        agent = self._agent(client)
        tx = client.post("/transactions", json=self._transaction_payload(agent["id"])).get_json()

        response = client.patch(f"/transactions/{tx['id']}", json={"agent_id": 7})

        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"

    def test_update_missing_transaction_404(self, client):
        response = client.patch("/transactions/404", json={"company_gci": 1})

        assert response.status_code == 404

    @pytest.mark.parametrize("company_gci", ["Infinity", "NaN"])
    def test_non_finite_gci_400(self, client, company_gci):
        """A non-finite company GCI is a validation error and nothing is stored."""
        agent = self._agent(client)

        response = client.post("/transactions", json=self._transaction_payload(agent["id"], company_gci=company_gci))

        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"
        assert client.get("/transactions").get_json()["transactions"] == []
        assert client.get("/revenue-shares").get_json()["pending_reprocessing"] == []

    def test_non_finite_gci_update_400(self, client):
        agent = self._agent(client)
        tx = client.post("/transactions", json=self._transaction_payload(agent["id"])).get_json()

        response = client.patch(f"/transactions/{tx['id']}", json={"company_gci": "Infinity"})

        assert response.status_code == 400
        assert client.get(f"/transactions/{tx['id']}").get_json()["company_gci"] == 10000.0

    def test_invalid_sale_amount_400(self, client):
        agent = self._agent(client)

        response = client.post("/transactions", json=self._transaction_payload(agent["id"], sale_amount="lots"))

        assert response.status_code == 400

    def test_delete_transaction(self, client):
        a = self._agent(client)
        b = self._agent(client, agent_type="support", cap_type=None, sponsor_id=a["id"])
        tx = client.post("/transactions", json=self._transaction_payload(b["id"])).get_json()

        response = client.delete(f"/transactions/{tx['id']}")

        assert response.status_code == 204
        assert client.get(f"/transactions/{tx['id']}").status_code == 404
        assert client.get("/revenue-shares").get_json()["revenue_shares"] == []

    def test_delete_agent_with_transactions_blocked(self, client):
        agent = self._agent(client)
        client.post("/transactions", json=self._transaction_payload(agent["id"]))

        response = client.delete(f"/agents/{agent['id']}")

        assert response.status_code == 400

    def test_reprocess(self, client):
        a = self._agent(client, cap_type="team")
        b = self._agent(client, agent_type="support", cap_type=None, sponsor_id=a["id"])
        tx = client.post("/transactions", json=self._transaction_payload(b["id"])).get_json()

        response = client.post(f"/transactions/{tx['id']}/reprocess")

        assert response.status_code == 200
        body = response.get_json()
        assert body["complete"] is True
        assert body["total_paid"] == 1000.0
        tier = body["tiers"][0]
        assert tier["raw_amount"] == 1250.0
        assert tier["annual_cap"] == 1000.0
        assert tier["amount"] == 1000.0
        assert tier["description"].startswith("Clamped")

    def test_agent_revenue_shares(self, client):
        a = self._agent(client)
        b = self._agent(client, agent_type="support", cap_type=None, sponsor_id=a["id"])
        client.post("/transactions", json=self._transaction_payload(b["id"]))

        received = client.get(f"/agents/{a['id']}/revenue-shares").get_json()
        generated = client.get(f"/agents/{b['id']}/revenue-shares").get_json()

        assert received["total_amount"] == 1250.0
        assert generated["total_amount"] == 1250.0
