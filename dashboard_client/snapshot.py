"""
Dashboard snapshot models.

One DashboardSnapshot is built per poll from the aggregation envelope's `data`
and fully replaces the previous one. Parsing is atomic: a payload that does not
validate is rejected as a whole and the previously rendered view is kept.
"""

import logging
import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import ApplicationError

logger = logging.getLogger("rdm.snapshot")

# Entry of `stats` that carries subsystem health instead of a business metric
RESERVED_STATS_KEY = "system_status"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out-for-delivery"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Any) -> "OrderStatus":
        """Map a backend status string onto a member; never raises."""
        try:
            return cls(str(raw).lower())
        except ValueError:
            logger.warning("unrecognized order status from backend: %r", raw)
            return cls.UNKNOWN

    @property
    def css_class(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").title()


class AgentAvailability(str, Enum):
    ONLINE = "online"
    BUSY = "busy"
    OFFLINE = "offline"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Any) -> "AgentAvailability":
        """Case-sensitive match; anything else is UNKNOWN and logged."""
        if raw in (cls.ONLINE.value, cls.BUSY.value, cls.OFFLINE.value):
            return cls(raw)
        logger.warning("unrecognized agent availability from backend: %r", raw)
        return cls.UNKNOWN

    @property
    def css_class(self) -> str:
        return AGENT_STATUS_CLASSES[self]


# UNKNOWN keeps the historic "offline" dot, but is now an explicit entry
AGENT_STATUS_CLASSES = {
    AgentAvailability.ONLINE: "online",
    AgentAvailability.BUSY: "busy",
    AgentAvailability.OFFLINE: "offline",
    AgentAvailability.UNKNOWN: "offline",
}


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class StatCard(_Frozen):
    label: Optional[str] = None
    value: Any = None
    trend: Optional[Union[int, float]] = None


class StatusDetail(_Frozen):
    table_name: str
    name: str
    exists: bool
    status: Optional[str] = None


class SubsystemStatus(_Frozen):
    label: str
    status: str
    message: str = ""
    details: Optional[Dict[str, StatusDetail]] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_details(cls, data: Any) -> Any:
        """Accept details as a mapping keyed by table or as a list of rows."""
        if not isinstance(data, dict) or not data.get("details"):
            return data
        raw = data["details"]
        if isinstance(raw, dict):
            rows = list(raw.items())
        elif isinstance(raw, list):
            rows = [(item.get("table_name", str(i)) if isinstance(item, dict) else str(i), item)
                    for i, item in enumerate(raw)]
        else:
            raise ValueError(f"details must be a mapping or a list, got {type(raw).__name__}")
        details = {}
        for table_name, item in rows:
            if not isinstance(item, dict):
                raise ValueError(f"status detail rows must be objects, got {type(item).__name__}")
            item = dict(item)
            item.setdefault("table_name", table_name)
            item.setdefault("name", table_name)
            if "exists" not in item:
                item["exists"] = item.get("status") == "exists"
            details[table_name] = item
        return {**data, "details": details}


class Order(_Frozen):
    order_id: Union[int, str]
    customer_name: str
    amount: Union[int, float, str]
    status: str
    agent_name: Optional[str] = None

    @property
    def status_state(self) -> OrderStatus:
        return OrderStatus.parse(self.status)


class Agent(_Frozen):
    display_name: str
    user_email: str = ""
    availability: str = AgentAvailability.OFFLINE.value
    active_deliveries: int = Field(0, ge=0)
    agent_id: Optional[Union[int, str]] = None

    @property
    def availability_state(self) -> AgentAvailability:
        return AgentAvailability.parse(self.availability)

    @property
    def availability_label(self) -> str:
        raw = self.availability or ""
        return raw[:1].upper() + raw[1:]


StatValue = Optional[Union[StatCard, int, float, str]]


class DashboardSnapshot(_Frozen):
    stats: Dict[str, StatValue] = Field(default_factory=dict)
    system_status: Optional[Dict[str, SubsystemStatus]] = None
    recent_orders: List[Order] = Field(default_factory=list)
    agent_status: List[Agent] = Field(default_factory=list)
    fetched_at: float = Field(default_factory=time.time)

    @classmethod
    def from_payload(cls, data: Any) -> "DashboardSnapshot":
        """
        Build a snapshot from the envelope's `data` object.

        The reserved `system_status` entry is lifted out of `stats`; a top-level
        `system_status` is used only when `stats` does not carry one.

        Raises:
            ApplicationError: payload is not an object or fails validation
        """
        if not isinstance(data, dict):
            raise ApplicationError("dashboard payload is not an object")

        raw_stats = data.get("stats") or {}
        if not isinstance(raw_stats, dict):
            logger.error("rejecting dashboard payload: stats is %s, not an object", type(raw_stats).__name__)
            raise ApplicationError("malformed dashboard payload")
        stats = dict(raw_stats)
        system_status = stats.pop(RESERVED_STATS_KEY, None)
        if system_status is None:
            system_status = data.get("system_status")

        try:
            return cls(
                stats=stats,
                system_status=system_status,
                recent_orders=data.get("recent_orders") or [],
                agent_status=data.get("agent_status") or [],
            )
        except ValidationError as e:
            logger.error("rejecting malformed dashboard payload: %s", e)
            raise ApplicationError("malformed dashboard payload") from e
