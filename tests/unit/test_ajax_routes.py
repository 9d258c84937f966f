"""Unit tests for the AJAX endpoint

Tests the action table, nonce verification and the {success, data}
envelope through FastAPI's TestClient.
"""
import pytest
from fastapi.testclient import TestClient

from dashboard_server.aggregation import DashboardAggregator
from dashboard_server.core.config import ServerConfig
from dashboard_server.core.server import create_app

NONCE = "route_test_nonce"


@pytest.fixture
def app(store, fixed_clock):
    config = ServerConfig(nonce=NONCE, admin_token="route_test_admin", test_mode=True)
    return create_app(config, store=store, aggregator=DashboardAggregator(store, clock=fixed_clock))


@pytest.fixture
def http(app):
    return TestClient(app)


def ajax(http, action, nonce=NONCE, **fields):
    return http.post("/ajax", data={"action": action, "nonce": nonce, **fields})


class TestSecurity:
    """Test nonce verification"""

    def test_invalid_nonce(self, http):
        response = ajax(http, "rdm_get_dashboard_stats", nonce="wrong")

        assert response.status_code == 403
        assert response.json() == {"success": False, "data": {"message": "Security check failed"}}

    def test_missing_nonce(self, http):
        response = http.post("/ajax", data={"action": "rdm_get_dashboard_stats"})
        assert response.status_code == 403

    def test_unknown_action(self, http):
        response = ajax(http, "rdm_drop_tables")

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestDashboardStats:

    def test_stats_envelope(self, http):
        response = ajax(http, "rdm_get_dashboard_stats")
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"]["stats"]["orders_today"]["value"] == 3
        assert "database" in body["data"]["stats"]["system_status"]
        assert len(body["data"]["recent_orders"]) == 4

    def test_available_agents(self, http):
        body = ajax(http, "rdm_get_available_agents").json()
        assert body == {"success": True, "data": {"agents": [{"id": 1, "name": "Maria Lopez"}]}}


class TestMutations:

    def test_update_order_status(self, http, store):
        body = ajax(http, "rdm_update_order_status", order_id="101", status="ready").json()

        assert body["success"] is True
        assert body["data"]["status"] == "ready"
        assert next(o for o in store.orders() if o.order_id == 101).status == "ready"

    def test_invalid_order_status(self, http):
        response = ajax(http, "rdm_update_order_status", order_id="101", status="bogus")

        assert response.status_code == 200
        assert response.json() == {"success": False, "data": {"message": "Invalid order status: bogus"}}

    def test_non_numeric_order_id(self, http):
        body = ajax(http, "rdm_update_order_status", order_id="abc", status="ready").json()
        assert body == {"success": False, "data": {"message": "Invalid request parameters"}}

    def test_update_agent_status(self, http, store):
        body = ajax(http, "rdm_update_agent_status", agent_id="3", status="online").json()

        assert body["success"] is True
        assert store.get_agent(3).availability == "online"

    def test_invalid_agent_status(self, http):
        body = ajax(http, "rdm_update_agent_status", agent_id="1", status="on_break").json()
        assert body["data"]["message"] == "Invalid agent status: on_break"

    def test_assign_agent(self, http, store):
        body = ajax(http, "rdm_assign_agent_to_order", order_id="101", agent_id="1").json()

        assert body["success"] is True
        assert next(o for o in store.orders() if o.order_id == 101).agent_id == 1

    def test_assign_missing_order(self, http):
        body = ajax(http, "rdm_assign_agent_to_order", order_id="999", agent_id="1").json()
        assert body == {"success": False, "data": {"message": "Order #999 not found"}}
