"""Unit tests for Dashboard Snapshot models

Tests the parsing layer between the aggregation envelope and the renderers:
- Closed order status / agent availability vocabularies
- Reserved system_status key extraction
- Status detail normalization
- Atomic rejection of malformed payloads
"""
import pytest
from pydantic import ValidationError

from dashboard_client.errors import ApplicationError
from dashboard_client.snapshot import (
    Agent,
    AgentAvailability,
    DashboardSnapshot,
    Order,
    OrderStatus,
    StatCard,
    SubsystemStatus,
)


class TestOrderStatus:
    """Test order status parsing"""

    def test_parse_known_values(self):
        """Every wire value maps onto its member"""
        assert OrderStatus.parse("pending") is OrderStatus.PENDING
        assert OrderStatus.parse("out-for-delivery") is OrderStatus.OUT_FOR_DELIVERY
        assert OrderStatus.parse("on-hold") is OrderStatus.ON_HOLD

    def test_parse_is_case_insensitive(self):
        """Backend casing does not matter for order statuses"""
        assert OrderStatus.parse("Delivered") is OrderStatus.DELIVERED

    def test_parse_unknown_value(self, caplog):
        """Unrecognized values become UNKNOWN and are logged"""
        with caplog.at_level("WARNING", logger="rdm.snapshot"):
            state = OrderStatus.parse("awaiting-pickup")

        assert state is OrderStatus.UNKNOWN
        assert "awaiting-pickup" in caplog.text

    def test_css_class_and_label(self):
        """CSS class is the wire value; label is title-cased words"""
        assert OrderStatus.OUT_FOR_DELIVERY.css_class == "out-for-delivery"
        assert OrderStatus.OUT_FOR_DELIVERY.label == "Out For Delivery"
        assert OrderStatus.PENDING.label == "Pending"


class TestAgentAvailability:
    """Test agent availability parsing"""

    @pytest.mark.parametrize("raw,expected", [
        ("online", AgentAvailability.ONLINE),
        ("busy", AgentAvailability.BUSY),
        ("offline", AgentAvailability.OFFLINE),
    ])
    def test_parse_known_values(self, raw, expected):
        assert AgentAvailability.parse(raw) is expected

    def test_parse_is_case_sensitive(self):
        """'Online' is not a recognized availability"""
        assert AgentAvailability.parse("Online") is AgentAvailability.UNKNOWN

    def test_unknown_displays_as_offline(self, caplog):
        """Unknown availability keeps the offline dot and is logged"""
        with caplog.at_level("WARNING", logger="rdm.snapshot"):
            state = AgentAvailability.parse("on_break")

        assert state is AgentAvailability.UNKNOWN
        assert state.css_class == "offline"
        assert "on_break" in caplog.text

    def test_busy_keeps_its_own_class(self):
        assert AgentAvailability.BUSY.css_class == "busy"

    def test_agent_label_capitalizes_raw_value(self):
        agent = Agent(display_name="Jin", availability="on_break")
        assert agent.availability_label == "On_break"
        assert agent.availability_state is AgentAvailability.UNKNOWN


class TestSubsystemStatus:
    """Test status detail normalization"""

    def test_details_mapping(self):
        status = SubsystemStatus(
            label="Database Tables",
            status="Active",
            details={"delivery_agents": {"name": "Delivery Agents", "exists": True,
                                         "table_name": "wp_rr_delivery_agents"}},
        )
        assert status.details["delivery_agents"].exists is True
        assert status.details["delivery_agents"].table_name == "wp_rr_delivery_agents"

    def test_details_list_uses_table_name_as_key(self):
        """A list of rows is keyed by table_name"""
        status = SubsystemStatus(
            label="Database Tables",
            status="Inactive",
            details=[{"table_name": "wp_rr_delivery_areas", "name": "Delivery Areas", "status": "missing"}],
        )
        detail = status.details["wp_rr_delivery_areas"]
        assert detail.name == "Delivery Areas"
        assert detail.exists is False

    def test_exists_inferred_from_status(self):
        status = SubsystemStatus(
            label="Database Tables",
            status="Active",
            details={"delivery_notes": {"status": "exists"}},
        )
        detail = status.details["delivery_notes"]
        assert detail.exists is True
        assert detail.name == "delivery_notes"

    @pytest.mark.parametrize("details", [["x"], [{"table_name": "t"}, 3], {"t": "missing"}, "x"])
    def test_non_object_detail_rows_rejected(self, details):
        with pytest.raises(ValidationError):
            SubsystemStatus(label="Database Tables", status="Active", details=details)


class TestDashboardSnapshot:
    """Test snapshot construction from payload"""

    def test_reserved_key_is_extracted(self, sample_payload):
        """system_status never stays among the metrics"""
        snapshot = DashboardSnapshot.from_payload(sample_payload)

        assert "system_status" not in snapshot.stats
        assert set(snapshot.system_status) == {"woocommerce", "database"}
        assert snapshot.system_status["database"].details["delivery_areas"].exists is False

    def test_labelled_stats_become_cards(self, sample_payload):
        snapshot = DashboardSnapshot.from_payload(sample_payload)

        card = snapshot.stats["orders_today"]
        assert isinstance(card, StatCard)
        assert card.label == "Today's Orders"
        assert card.trend == 5
        assert snapshot.stats["active_deliveries"] == 3
        assert snapshot.stats["avg_delivery_time"] == "25 min"

    def test_top_level_system_status_fallback(self):
        payload = {
            "stats": {},
            "system_status": {"woocommerce": {"label": "WooCommerce", "status": "Inactive"}},
        }
        snapshot = DashboardSnapshot.from_payload(payload)
        assert snapshot.system_status["woocommerce"].status == "Inactive"

    def test_reserved_key_takes_precedence(self):
        """stats.system_status wins over a top-level system_status"""
        payload = {
            "stats": {"system_status": {"woocommerce": {"label": "WooCommerce", "status": "Active"}}},
            "system_status": {"woocommerce": {"label": "WooCommerce", "status": "Inactive"}},
        }
        snapshot = DashboardSnapshot.from_payload(payload)
        assert snapshot.system_status["woocommerce"].status == "Active"

    def test_empty_payload(self):
        """Missing collections default to empty"""
        snapshot = DashboardSnapshot.from_payload({})

        assert snapshot.stats == {}
        assert snapshot.system_status is None
        assert snapshot.recent_orders == []
        assert snapshot.agent_status == []

    def test_non_object_payload_rejected(self):
        with pytest.raises(ApplicationError):
            DashboardSnapshot.from_payload(["not", "an", "object"])

    @pytest.mark.parametrize("stats", [["orders_today"], "oops", 5])
    def test_non_object_stats_rejected(self, stats):
        with pytest.raises(ApplicationError):
            DashboardSnapshot.from_payload({"stats": stats})

    def test_non_object_detail_rows_become_application_error(self, sample_payload):
        sample_payload["stats"]["system_status"]["database"]["details"] = ["x"]

        with pytest.raises(ApplicationError):
            DashboardSnapshot.from_payload(sample_payload)

    def test_malformed_payload_rejected_atomically(self, sample_payload):
        """One bad row rejects the whole snapshot"""
        sample_payload["recent_orders"].append({"order_id": 7})

        with pytest.raises(ApplicationError) as exc_info:
            DashboardSnapshot.from_payload(sample_payload)
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_negative_active_deliveries_rejected(self, sample_payload):
        sample_payload["agent_status"][0]["active_deliveries"] = -1

        with pytest.raises(ApplicationError):
            DashboardSnapshot.from_payload(sample_payload)

    def test_snapshot_is_frozen(self, sample_payload):
        snapshot = DashboardSnapshot.from_payload(sample_payload)

        with pytest.raises(ValidationError):
            snapshot.recent_orders = []

    def test_order_status_state(self):
        order = Order(order_id=1, customer_name="A", amount="$1.00", status="ready")
        assert order.status_state is OrderStatus.READY
