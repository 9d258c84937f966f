"""
Dashboard Aggregator

Builds the complete `rdm_get_dashboard_stats` payload from the store.
All methods return plain Python data structures that are easy to inspect
and test; the route layer only wraps them in the response envelope.
"""

import time
import logging
from typing import Any, Callable, Dict, List

from dashboard_client.snapshot import OrderStatus

from .store import REQUIRED_TABLES, DeliveryStore, StoredOrder

logger = logging.getLogger("rdm.server")

DAY = 86400

# Orders still moving through the kitchen
OPEN_STATUSES = {
    OrderStatus.PENDING.value,
    OrderStatus.PROCESSING.value,
    OrderStatus.PREPARING.value,
    OrderStatus.READY.value,
}
REVENUE_EXCLUDED = {
    OrderStatus.CANCELLED.value,
    OrderStatus.REFUNDED.value,
    OrderStatus.FAILED.value,
}


class DashboardAggregator:
    """
    Aggregates orders, agents and subsystem health into one snapshot payload.
    """

    def __init__(self, store: DeliveryStore, clock: Callable[[], float] = time.time,
                 recent_limit: int = 10, currency: str = "$"):
        self.store = store
        self.clock = clock
        self.recent_limit = recent_limit
        self.currency = currency

    def get_dashboard_data(self) -> Dict[str, Any]:
        """
        Get complete dashboard data structure.

        The system status travels inside `stats` under the reserved
        `system_status` key.
        """
        now = int(self.clock())
        orders = self.store.orders()
        stats = self._get_stats(orders, now)
        stats["system_status"] = self._get_system_status()
        data = {
            "stats": stats,
            "recent_orders": self._get_recent_orders(orders),
            "agent_status": self._get_agent_status(),
        }
        logger.debug(f"Dashboard data prepared: {len(orders)} orders, {len(data['agent_status'])} agents")
        return data

    # ---------- Stats ----------

    def _get_stats(self, orders: List[StoredOrder], now: int) -> Dict[str, Any]:
        day_start = now - (now % DAY)
        today = [o for o in orders if o.created_at >= day_start]
        yesterday = [o for o in orders if day_start - DAY <= o.created_at < day_start]

        revenue_today = self._revenue(today)
        revenue_yesterday = self._revenue(yesterday)

        return {
            "orders_today": {
                "label": "Today's Orders",
                "value": len(today),
                "trend": self._percent_change(len(today), len(yesterday)),
            },
            "revenue_today": {
                "label": "Today's Revenue",
                "value": f"{self.currency}{revenue_today:.2f}",
                "trend": self._percent_change(revenue_today, revenue_yesterday),
            },
            "pending_orders": sum(1 for o in orders if o.status in OPEN_STATUSES),
            "active_deliveries": sum(1 for o in orders if o.status == OrderStatus.OUT_FOR_DELIVERY.value),
            "available_agents": len(self.store.available_agents()),
            "avg_delivery_time": self._average_delivery_time(orders),
        }

    @staticmethod
    def _revenue(orders: List[StoredOrder]) -> float:
        return sum(o.amount for o in orders if o.status not in REVENUE_EXCLUDED)

    @staticmethod
    def _percent_change(current: float, previous: float) -> int:
        """Day-over-day change in whole percent; 0 when there is no baseline."""
        if not previous:
            return 0
        return int(round((current - previous) / previous * 100))

    def _average_delivery_time(self, orders: List[StoredOrder]) -> str:
        durations = [o.delivered_at - o.created_at for o in orders
                     if o.delivered_at and o.delivered_at >= o.created_at]
        if not durations:
            return "N/A"
        return self._format_duration(sum(durations) // len(durations))

    def _format_duration(self, seconds: int) -> str:
        """Format duration in seconds as human-readable string."""
        if seconds < 3600:
            return f"{max(1, seconds // 60)} min"
        return f"{seconds // 3600}h {(seconds % 3600) // 60}m"

    # ---------- System status ----------

    def _get_system_status(self) -> Dict[str, Any]:
        integrations = self.store.integrations
        status = {}

        wc_active = integrations.woocommerce_active
        status["woocommerce"] = {
            "label": "WooCommerce",
            "status": "Active" if wc_active else "Inactive",
            "message": "WooCommerce is active and integrated" if wc_active else "WooCommerce is not active",
        }

        if integrations.google_maps_configured and integrations.google_maps_valid:
            maps_status = "Active"
        elif integrations.google_maps_configured:
            maps_status = "Configured"
        else:
            maps_status = "Inactive"
        status["google_maps"] = {
            "label": "Google Maps API",
            "status": maps_status,
            "message": integrations.google_maps_message or self._maps_message(maps_status),
        }

        status["database"] = self._get_database_status()
        return status

    @staticmethod
    def _maps_message(maps_status: str) -> str:
        return {
            "Active": "API key configured and valid",
            "Configured": "API key configured but not validated",
        }.get(maps_status, "API key not configured")

    def _get_database_status(self) -> Dict[str, Any]:
        details = {}
        for key, label in REQUIRED_TABLES.items():
            exists = bool(self.store.tables.get(key, False))
            details[key] = {
                "name": label,
                "exists": exists,
                "status": "exists" if exists else "missing",
                "table_name": f"{self.store.table_prefix}{key}",
            }

        missing = sum(1 for d in details.values() if not d["exists"])
        if missing == 0:
            message = f"All {len(details)} required tables are created"
        elif missing == 1:
            message = "1 table is missing"
        else:
            message = f"{missing} tables are missing"

        return {
            "label": "Database Tables",
            "status": "Active" if missing == 0 else "Inactive",
            "message": message,
            "details": details,
        }

    # ---------- Orders / agents ----------

    def _get_recent_orders(self, orders: List[StoredOrder]) -> List[Dict[str, Any]]:
        agents = {a.agent_id: a for a in self.store.agents()}
        recent = sorted(orders, key=lambda o: (o.created_at, o.order_id), reverse=True)[: self.recent_limit]
        rows = []
        for order in recent:
            agent = agents.get(order.agent_id) if order.agent_id is not None else None
            rows.append({
                "order_id": order.order_id,
                "customer_name": order.customer_name,
                "amount": f"{self.currency}{order.amount:.2f}",
                "status": order.status,
                "agent_name": agent.display_name if agent else None,
            })
        return rows

    def _get_agent_status(self) -> List[Dict[str, Any]]:
        rows = []
        for agent in sorted(self.store.agents(), key=lambda a: a.display_name.lower()):
            active = self.store.active_deliveries(agent.agent_id)
            rows.append({
                "agent_id": agent.agent_id,
                "display_name": agent.display_name,
                "user_email": agent.user_email,
                "availability": agent.availability,
                "active_deliveries": active,
            })
        return rows

    def get_available_agents(self) -> List[Dict[str, Any]]:
        return [{"id": a.agent_id, "name": a.display_name} for a in self.store.available_agents()]
