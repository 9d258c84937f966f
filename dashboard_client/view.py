"""
Dashboard view state.

The view is the only shared mutable resource of the client. It is built once
with the container slots the host page actually has and is then rewritten by
whichever render call runs; it can always be regenerated from a snapshot.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

LOADING_MARKUP = '<div class="rdm-loading"><div class="rdm-loading-spinner"></div></div>'

# Delegated click targets: css class -> (action kind, id attribute, value attribute)
CONTROL_BINDINGS = {
    "rdm-order-status-change": ("order_status", "order-id", "status"),
    "rdm-agent-status-change": ("agent_status", "agent-id", "status"),
    "rdm-assign-agent": ("assign_agent", "order-id", "agent-id"),
}


@dataclass(eq=False)
class Notice:
    """Dismissible error notice shown at the top of the dashboard root."""
    message: str
    level: str = "error"
    dismissed: bool = False


@dataclass(eq=False)
class ActionControl:
    """A status-change button; `disabled` blocks duplicate submission."""
    kind: str
    entity_id: Any
    value: Any
    disabled: bool = False

    @classmethod
    def from_element(cls, css_class: str, data: Mapping[str, Any]) -> "ActionControl":
        """Build a control from a delegated-click target's class and data attributes."""
        try:
            kind, id_attr, value_attr = CONTROL_BINDINGS[css_class]
        except KeyError:
            raise ValueError(f"no action bound to control class {css_class!r}")
        missing = [a for a in (id_attr, value_attr) if data.get(a) in (None, "")]
        if missing:
            raise ValueError(f"control {css_class!r} is missing data attributes: {missing}")
        return cls(kind=kind, entity_id=data[id_attr], value=data[value_attr])


@dataclass
class DashboardView:
    """Resolved container slots plus the dashboard-root overlays."""
    containers: Dict[str, str] = field(default_factory=dict)
    loading: List[str] = field(default_factory=list)
    notices: List[Notice] = field(default_factory=list)

    @classmethod
    def with_slots(cls, slots: Iterable[str]) -> "DashboardView":
        return cls(containers={name: "" for name in slots})

    # ---------- Containers ----------

    def has_container(self, name: str) -> bool:
        return name in self.containers

    def set_html(self, name: str, html: str) -> bool:
        """Replace a container's markup; returns False when the slot is absent."""
        if name not in self.containers:
            return False
        self.containers[name] = html
        return True

    def html(self, name: str) -> Optional[str]:
        return self.containers.get(name)

    # ---------- Loading overlay ----------

    @property
    def is_loading(self) -> bool:
        return bool(self.loading)

    def show_loading(self) -> None:
        self.loading.append(LOADING_MARKUP)

    def hide_loading(self) -> None:
        # Removing an absent indicator is a no-op
        self.loading.clear()

    # ---------- Notices ----------

    @property
    def active_notices(self) -> List[Notice]:
        return [n for n in self.notices if not n.dismissed]

    def show_error(self, message: str) -> Notice:
        notice = Notice(message=message)
        self.notices.insert(0, notice)
        return notice

    def dismiss(self, notice: Notice) -> None:
        notice.dismissed = True
        if notice in self.notices:
            self.notices.remove(notice)

    def clear_notices(self) -> None:
        for notice in list(self.notices):
            self.dismiss(notice)
