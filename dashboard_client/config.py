import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

logger = logging.getLogger("rdm.client")

SLOT_NAMES = ["stats", "system_status", "recent_orders", "agents"]

# Display strings; the host overrides any of them through the `i18n` config block
DEFAULT_STRINGS = {
    "error": "An error occurred. Please try again.",
    "no_data": "No data available",
    "confirm": "Are you sure you want to perform this action?",
    "dashboard_title": "RestroReach Dashboard",
    "refresh": "Refresh",
    "system_status": "System Status",
    "view_details": "View Details",
    "recent_orders": "Recent Orders",
    "view_all": "View All",
    "order_id": "Order ID",
    "customer": "Customer",
    "amount": "Amount",
    "status": "Status",
    "agent": "Agent",
    "actions": "Actions",
    "view": "View",
    "delivery_agents": "Delivery Agents",
    "active_deliveries": "active deliveries",
    "dismiss": "Dismiss",
}


@dataclass
class DashboardConfig:
    """Dashboard client configuration with defaults"""
    ajax_url: str = "http://127.0.0.1:8000/ajax"
    nonce: str = ""
    refresh_interval: float = 30
    error_ttl: float = 5
    request_timeout: int = 10
    discard_stale_responses: bool = False
    orders_url: str = "/orders"
    order_url: str = "/orders/%id%"
    slots: List[str] = field(default_factory=lambda: list(SLOT_NAMES))
    output: str = "dashboard.html"
    log_level: str = "INFO"
    i18n: Dict[str, str] = None

    def __post_init__(self):
        # Merge host-supplied strings over the defaults so lookups never miss
        self.i18n = {**DEFAULT_STRINGS, **(self.i18n or {})}

    @property
    def strings(self) -> Dict[str, str]:
        return self.i18n

    @classmethod
    def from_file(cls, config_path: Path) -> "DashboardConfig":
        """Load configuration from YAML file"""
        if not config_path.exists():
            logger.debug(f"Config file not found: {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}, using defaults")
            return cls()

        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys in {config_path}: {unknown}")
        logger.debug(f"Loaded config from {config_path}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def override_with_args(self, args: argparse.Namespace) -> "DashboardConfig":
        """Override config with command line arguments if provided"""
        # Only override if explicitly provided - preserves config file values
        for name in ("ajax_url", "nonce", "refresh_interval", "output", "log_level"):
            value: Optional[object] = getattr(args, name, None)
            if value is not None:
                setattr(self, name, value)
        if getattr(args, "discard_stale", False):
            self.discard_stale_responses = True
        return self
