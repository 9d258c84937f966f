#!/usr/bin/env python3
"""
Dashboard Routes - Server-rendered host page and per-section refresh
"""

import logging
import time
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse

from dashboard_client.config import SLOT_NAMES
from dashboard_client.errors import ApplicationError
from dashboard_client.renderers import SectionRenderer
from dashboard_client.snapshot import DashboardSnapshot
from dashboard_client.view import DashboardView

from ...aggregation import DashboardAggregator
from ...core.audit import audit_logger
from ...store import DeliveryStore
from ..dependencies import AuthDependencies

logger = logging.getLogger("rdm.server")


def create_dashboard_routes(auth_deps: AuthDependencies, store: DeliveryStore,
                            aggregator: DashboardAggregator, strings: Dict[str, str],
                            orders_url: str = "/orders", order_url: str = "/orders/%id%") -> APIRouter:
    """Create dashboard and web UI routes."""
    router = APIRouter()
    renderer = SectionRenderer(strings, orders_url, order_url)

    def current_snapshot() -> DashboardSnapshot:
        return DashboardSnapshot.from_payload(aggregator.get_dashboard_data())

    @router.get("/dashboard", response_class=HTMLResponse, dependencies=[Depends(auth_deps.require_admin_auth)])
    def dashboard_main(request: Request):
        """Main dashboard page - stats, system status, recent orders and agents."""
        logger.debug("Rendering main dashboard")
        audit_logger.admin_action(action="dashboard_access", details={"page": "main"}, request=request)

        view = DashboardView.with_slots(SLOT_NAMES)
        try:
            renderer.render(current_snapshot(), view)
        except ApplicationError as e:
            logger.error(f"Dashboard error: {e}")
            view.show_error(strings["error"])
        return renderer.render_page(view, rendered_at=time.time())

    @router.get("/dashboard/refresh/{section}", response_class=HTMLResponse,
                dependencies=[Depends(auth_deps.require_admin_auth)])
    def dashboard_refresh_section(section: str, request: Request):
        """Markup for a single section."""
        if section not in SLOT_NAMES:
            raise HTTPException(status_code=404, detail=f"Unknown section: {section}")
        logger.debug(f"Refreshing section {section}")
        audit_logger.admin_action(action="refresh_section", details={"section": section}, request=request)
        try:
            return renderer.render_section(section, current_snapshot())
        except ApplicationError as e:
            logger.error(f"Section refresh error: {e}")
            return renderer.render_no_data()

    @router.get("/health")
    def health():
        """Liveness check."""
        return {
            "status": "ok",
            "timestamp": int(time.time()),
            "orders": len(store.orders()),
            "agents": len(store.agents()),
        }

    return router
