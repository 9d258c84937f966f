"""
RestroReach dashboard client

Polls the delivery backend's aggregation endpoint, renders the dashboard
sections and dispatches confirmed status-change actions.
"""

from .config import DashboardConfig
from .dispatcher import ActionDispatcher, ActionKind, PendingConfirmation
from .renderers import SectionRenderer
from .snapshot import AgentAvailability, DashboardSnapshot, OrderStatus
from .sync_loop import DashboardSyncLoop, SyncState
from .view import ActionControl, DashboardView

__all__ = [
    "ActionControl",
    "ActionDispatcher",
    "ActionKind",
    "AgentAvailability",
    "DashboardConfig",
    "DashboardSnapshot",
    "DashboardSyncLoop",
    "DashboardView",
    "OrderStatus",
    "PendingConfirmation",
    "SectionRenderer",
    "SyncState",
]
