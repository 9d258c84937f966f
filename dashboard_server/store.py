#!/usr/bin/env python3
"""
In-memory delivery store

Holds the orders, delivery agents and integration/table health the reference
backend serves. Seeded from YAML; every mutation is validated against the
same status vocabularies the client renders.
"""

import logging
import threading
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from dashboard_client.snapshot import AgentAvailability, OrderStatus

logger = logging.getLogger("rdm.server")

# Plugin tables the database subsystem reports on
REQUIRED_TABLES = {
    "delivery_agents": "Delivery Agents",
    "order_assignments": "Order Assignments",
    "location_tracking": "Location Tracking",
    "delivery_notes": "Delivery Notes",
    "delivery_areas": "Delivery Areas",
}


# Values a caller may set; UNKNOWN is display-only
SETTABLE_ORDER_STATUSES = {s.value: s for s in OrderStatus if s is not OrderStatus.UNKNOWN}
SETTABLE_AVAILABILITIES = {a.value: a for a in AgentAvailability if a is not AgentAvailability.UNKNOWN}


class StoreError(Exception):
    """Domain failure reported back to the caller as an envelope message."""


@dataclass
class StoredOrder:
    order_id: int
    customer_name: str
    amount: float
    status: str = OrderStatus.PENDING.value
    agent_id: Optional[int] = None
    created_at: int = field(default_factory=lambda: int(time.time()))
    delivered_at: Optional[int] = None


@dataclass
class StoredAgent:
    agent_id: int
    display_name: str
    user_email: str = ""
    availability: str = AgentAvailability.OFFLINE.value


@dataclass
class Integrations:
    woocommerce_active: bool = True
    google_maps_configured: bool = False
    google_maps_valid: bool = False
    google_maps_message: Optional[str] = None


class DeliveryStore:
    """Thread-safe in-memory orders and agents."""

    def __init__(
        self,
        orders: Optional[List[StoredOrder]] = None,
        agents: Optional[List[StoredAgent]] = None,
        tables: Optional[Dict[str, bool]] = None,
        integrations: Optional[Integrations] = None,
        table_prefix: str = "wp_rr_",
    ):
        self._lock = threading.Lock()
        self._orders: Dict[int, StoredOrder] = {o.order_id: o for o in orders or []}
        self._agents: Dict[int, StoredAgent] = {a.agent_id: a for a in agents or []}
        self.tables = {name: True for name in REQUIRED_TABLES} if tables is None else dict(tables)
        self.integrations = integrations or Integrations()
        self.table_prefix = table_prefix

    # ---------- Seeding ----------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeliveryStore":
        now = int(time.time())
        orders = []
        for item in data.get("orders") or []:
            item = dict(item)
            # Seed files may give ages instead of absolute timestamps
            if "age_minutes" in item:
                item["created_at"] = now - int(item.pop("age_minutes")) * 60
            if "delivered_after_minutes" in item:
                item["delivered_at"] = item.get("created_at", now) + int(item.pop("delivered_after_minutes")) * 60
            orders.append(StoredOrder(**item))
        agents = [StoredAgent(**item) for item in data.get("agents") or []]
        tables = data.get("tables")
        integrations = Integrations(**(data.get("integrations") or {}))
        return cls(orders, agents, tables, integrations, data.get("table_prefix", "wp_rr_"))

    @classmethod
    def from_yaml(cls, path: Path) -> "DeliveryStore":
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        store = cls.from_dict(data)
        logger.info(f"Seeded store from {path}: {len(store._orders)} orders, {len(store._agents)} agents")
        return store

    # ---------- Reads ----------

    def orders(self) -> List[StoredOrder]:
        with self._lock:
            return [StoredOrder(**asdict(o)) for o in self._orders.values()]

    def agents(self) -> List[StoredAgent]:
        with self._lock:
            return [StoredAgent(**asdict(a)) for a in self._agents.values()]

    def get_agent(self, agent_id: int) -> Optional[StoredAgent]:
        with self._lock:
            agent = self._agents.get(agent_id)
            return StoredAgent(**asdict(agent)) if agent else None

    def available_agents(self) -> List[StoredAgent]:
        return [a for a in self.agents() if a.availability == AgentAvailability.ONLINE.value]

    def active_deliveries(self, agent_id: int) -> int:
        return sum(
            1 for o in self.orders()
            if o.agent_id == agent_id and o.status == OrderStatus.OUT_FOR_DELIVERY.value
        )

    # ---------- Mutations ----------

    def update_order_status(self, order_id: int, status: str, now: Optional[int] = None) -> StoredOrder:
        state = SETTABLE_ORDER_STATUSES.get(str(status).lower())
        if state is None:
            raise StoreError(f"Invalid order status: {status}")
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise StoreError(f"Order #{order_id} not found")
            order.status = state.value
            if state in (OrderStatus.DELIVERED, OrderStatus.COMPLETED) and order.delivered_at is None:
                order.delivered_at = now or int(time.time())
            logger.info(f"Order #{order_id} status -> {state.value}")
            return StoredOrder(**asdict(order))

    def update_agent_status(self, agent_id: int, availability: str) -> StoredAgent:
        state = SETTABLE_AVAILABILITIES.get(availability)
        if state is None:
            raise StoreError(f"Invalid agent status: {availability}")
        with self._lock:
            agent = self._agents.get(agent_id)
            if agent is None:
                raise StoreError(f"Agent #{agent_id} not found")
            agent.availability = state.value
            logger.info(f"Agent #{agent_id} availability -> {state.value}")
            return StoredAgent(**asdict(agent))

    def assign_agent(self, order_id: int, agent_id: int) -> StoredOrder:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise StoreError(f"Order #{order_id} not found")
            agent = self._agents.get(agent_id)
            if agent is None:
                raise StoreError(f"Agent #{agent_id} not found")
            if agent.availability == AgentAvailability.OFFLINE.value:
                raise StoreError(f"Agent {agent.display_name} is offline")
            order.agent_id = agent_id
            logger.info(f"Order #{order_id} assigned to agent #{agent_id}")
            return StoredOrder(**asdict(order))
