"""
Section renderers.

Each section is a pure mapping from one snapshot slice to markup. Row and card
data is prepared here in Python; the Jinja2 templates only lay it out.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .snapshot import Agent, DashboardSnapshot, Order, OrderStatus, StatCard, SubsystemStatus
from .template_helpers import setup_template_filters, title_from_key
from .view import DashboardView

logger = logging.getLogger("rdm.client")

TEMPLATES_DIR = Path(__file__).parent / "templates"


def build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    setup_template_filters(env)
    return env


class SectionRenderer:
    """Renders the four dashboard sections and the composed page."""

    def __init__(self, strings: Mapping[str, str], orders_url: str = "/orders",
                 order_url: str = "/orders/%id%", env: Optional[Environment] = None):
        self.strings = dict(strings)
        self.orders_url = orders_url
        self.order_url = order_url
        self.env = env or build_environment()

    def _template(self, name: str, **context: Any) -> str:
        return self.env.get_template(name).render(strings=self.strings, **context).strip()

    def render_no_data(self) -> str:
        return self._template("sections/no_data.html")

    # ---------- Card / row preparation ----------

    @staticmethod
    def stat_cards(stats: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Regular metric cards; the reserved key never reaches this point."""
        cards = []
        for key, value in stats.items():
            if isinstance(value, StatCard):
                title = value.label or title_from_key(key)
                cards.append({"key": key, "title": title, "value": value.value,
                              "trend": value.trend if value.label else None})
            else:
                cards.append({"key": key, "title": title_from_key(key), "value": value, "trend": None})
        return cards

    def order_rows(self, orders: List[Order]) -> List[Dict[str, Any]]:
        rows = []
        for order in orders:
            state = order.status_state
            rows.append({
                "order": order,
                "status_class": state.css_class,
                "status_text": order.status if state is OrderStatus.UNKNOWN else state.label,
                "detail_url": self.order_url.replace("%id%", str(order.order_id)),
            })
        return rows

    @staticmethod
    def agent_rows(agents: List[Agent]) -> List[Dict[str, Any]]:
        rows = []
        for agent in agents:
            state = agent.availability_state
            rows.append({
                "agent": agent,
                "status_class": state.css_class,
                "status_text": agent.availability_label,
            })
        return rows

    # ---------- Sections ----------

    def render_stats(self, stats: Mapping[str, Any]) -> str:
        cards = self.stat_cards(stats)
        if not cards:
            return self.render_no_data()
        return self._template("sections/stats.html", cards=cards)

    def render_system_status(self, system_status: Optional[Mapping[str, SubsystemStatus]]) -> str:
        if not system_status:
            return self.render_no_data()
        return self._template("sections/system_status.html", subsystems=list(system_status.items()))

    def render_recent_orders(self, orders: List[Order]) -> str:
        if not orders:
            return self.render_no_data()
        return self._template("sections/recent_orders.html", rows=self.order_rows(orders),
                              orders_url=self.orders_url)

    def render_agents(self, agents: List[Agent]) -> str:
        if not agents:
            return self.render_no_data()
        return self._template("sections/agents.html", rows=self.agent_rows(agents))

    def render_section(self, name: str, snapshot: DashboardSnapshot) -> str:
        if name == "stats":
            return self.render_stats(snapshot.stats)
        if name == "system_status":
            return self.render_system_status(snapshot.system_status)
        if name == "recent_orders":
            return self.render_recent_orders(snapshot.recent_orders)
        if name == "agents":
            return self.render_agents(snapshot.agent_status)
        raise KeyError(f"unknown dashboard section: {name}")

    def render(self, snapshot: DashboardSnapshot, view: DashboardView) -> None:
        """Replace every present section of `view` with markup for `snapshot`."""
        for name in ("stats", "system_status", "recent_orders", "agents"):
            if not view.has_container(name):
                continue
            view.set_html(name, self.render_section(name, snapshot))
        logger.debug("rendered snapshot fetched at %s into %d sections",
                     snapshot.fetched_at, len(view.containers))

    def render_page(self, view: DashboardView, rendered_at: Optional[float] = None) -> str:
        """Compose the whole dashboard page from the view's current state."""
        return self.env.get_template("dashboard.html").render(
            strings=self.strings,
            containers=view.containers,
            notices=view.active_notices,
            loading=view.loading,
            rendered_at=rendered_at,
        )
