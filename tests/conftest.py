"""Pytest configuration and shared fixtures"""
import pytest

from dashboard_client.config import DashboardConfig
from dashboard_client.renderers import SectionRenderer
from dashboard_client.sync_loop import DASHBOARD_ACTION, DashboardSyncLoop
from dashboard_client.view import DashboardView
from dashboard_server.store import DeliveryStore, Integrations, StoredAgent, StoredOrder


# Fixed wall clock: noon UTC, so "today" started 12 hours ago
DAY_START = 1_700_006_400
NOW = DAY_START + 12 * 3600


class FakeAjaxClient:
    """Records requests and answers from a per-action response table.

    A response may be an envelope dict, an exception instance (raised) or a
    callable taking the request fields and returning either.
    """

    def __init__(self, payload=None):
        self.calls = []
        self.responses = {}
        if payload is not None:
            self.responses[DASHBOARD_ACTION] = {"success": True, "data": payload}

    async def request(self, action, **fields):
        self.calls.append((action, fields))
        response = self.responses.get(action, {"success": True, "data": {"message": "ok"}})
        if callable(response):
            response = response(fields)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def actions(self):
        return [action for action, _ in self.calls]


@pytest.fixture
def sample_payload():
    """A complete aggregation payload as the backend returns it"""
    return {
        "stats": {
            "orders_today": {"label": "Today's Orders", "value": 12, "trend": 5},
            "revenue_today": {"label": "Today's Revenue", "value": "$340.50", "trend": -3},
            "active_deliveries": 3,
            "avg_delivery_time": "25 min",
            "system_status": {
                "woocommerce": {
                    "label": "WooCommerce",
                    "status": "Active",
                    "message": "WooCommerce is active and integrated",
                },
                "database": {
                    "label": "Database Tables",
                    "status": "Inactive",
                    "message": "1 table is missing",
                    "details": {
                        "delivery_areas": {
                            "name": "Delivery Areas",
                            "exists": False,
                            "status": "missing",
                            "table_name": "wp_rr_delivery_areas",
                        },
                    },
                },
            },
        },
        "recent_orders": [
            {"order_id": 1042, "customer_name": "Alice Smith", "amount": "$25.50",
             "status": "pending", "agent_name": None},
            {"order_id": 1041, "customer_name": "Bob Jones", "amount": "$18.00",
             "status": "out-for-delivery", "agent_name": "Sam Okafor"},
        ],
        "agent_status": [
            {"display_name": "Maria Lopez", "user_email": "maria@example.com",
             "availability": "online", "active_deliveries": 0},
            {"display_name": "Sam Okafor", "user_email": "sam@example.com",
             "availability": "busy", "active_deliveries": 2},
        ],
    }


@pytest.fixture
def fake_client(sample_payload):
    return FakeAjaxClient(sample_payload)


@pytest.fixture
def client_config():
    """Client config with no error expiry and a short polling period"""
    return DashboardConfig(nonce="test_nonce", refresh_interval=0.01, error_ttl=0)


@pytest.fixture
def renderer(client_config):
    return SectionRenderer(client_config.strings, client_config.orders_url, client_config.order_url)


@pytest.fixture
def view():
    return DashboardView.with_slots(["stats", "system_status", "recent_orders", "agents"])


@pytest.fixture
def make_sync(view, renderer, client_config):
    """Factory building a sync loop around the shared view and renderer"""
    def _make(client, config=None, on_render=None):
        return DashboardSyncLoop(client, view, renderer, config or client_config, on_render=on_render)
    return _make


@pytest.fixture
def store():
    """Delivery store with orders from today and yesterday"""
    orders = [
        StoredOrder(order_id=101, customer_name="Alice Smith", amount=20.0,
                    status="pending", created_at=NOW - 600),
        StoredOrder(order_id=102, customer_name="Bob Jones", amount=10.0,
                    status="delivered", agent_id=1, created_at=NOW - 7200,
                    delivered_at=NOW - 7200 + 1800),
        StoredOrder(order_id=103, customer_name="Carol White", amount=30.0,
                    status="out-for-delivery", agent_id=2, created_at=NOW - 1800),
        StoredOrder(order_id=90, customer_name="Dan Brown", amount=15.0,
                    status="completed", agent_id=1, created_at=DAY_START - 3600,
                    delivered_at=DAY_START - 3600 + 2400),
    ]
    agents = [
        StoredAgent(agent_id=1, display_name="Maria Lopez", user_email="maria@example.com", availability="online"),
        StoredAgent(agent_id=2, display_name="Sam Okafor", user_email="sam@example.com", availability="busy"),
        StoredAgent(agent_id=3, display_name="Jin Park", user_email="jin@example.com", availability="offline"),
    ]
    return DeliveryStore(orders, agents, integrations=Integrations(woocommerce_active=True))


@pytest.fixture
def fixed_clock():
    return lambda: NOW

