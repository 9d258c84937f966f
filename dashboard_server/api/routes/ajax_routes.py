#!/usr/bin/env python3
"""
AJAX Routes - the form-encoded action endpoint polled by the dashboard client

Every response is a `{success, data}` envelope:
- invalid or missing nonce   -> HTTP 403
- unknown action             -> HTTP 400
- domain failure             -> HTTP 200, success false, data.message
"""

import logging
from typing import Any, Callable, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ...aggregation import DashboardAggregator
from ...core.audit import audit_logger
from ...store import DeliveryStore, StoreError
from ..dependencies import AuthDependencies
from ..schemas import AgentStatusForm, AssignAgentForm, OrderStatusForm, error_envelope, success_envelope

logger = logging.getLogger("rdm.server")

Handler = Callable[[Dict[str, Any]], Any]


def create_ajax_routes(auth_deps: AuthDependencies, store: DeliveryStore,
                       aggregator: DashboardAggregator) -> APIRouter:
    """Create the single AJAX endpoint and its action table."""
    router = APIRouter()

    def get_dashboard_stats(form: Dict[str, Any]) -> Dict[str, Any]:
        return aggregator.get_dashboard_data()

    def get_available_agents(form: Dict[str, Any]) -> Dict[str, Any]:
        return {"agents": aggregator.get_available_agents()}

    def update_order_status(form: Dict[str, Any]) -> Dict[str, Any]:
        req = OrderStatusForm(order_id=form.get("order_id"), status=form.get("status"))
        order = store.update_order_status(req.order_id, req.status)
        return {
            "message": f"Order #{order.order_id} status updated",
            "order_id": order.order_id,
            "status": order.status,
        }

    def update_agent_status(form: Dict[str, Any]) -> Dict[str, Any]:
        req = AgentStatusForm(agent_id=form.get("agent_id"), status=form.get("status"))
        agent = store.update_agent_status(req.agent_id, req.status)
        return {
            "message": f"{agent.display_name} is now {agent.availability}",
            "agent_id": agent.agent_id,
            "status": agent.availability,
        }

    def assign_agent_to_order(form: Dict[str, Any]) -> Dict[str, Any]:
        req = AssignAgentForm(order_id=form.get("order_id"), agent_id=form.get("agent_id"))
        order = store.assign_agent(req.order_id, req.agent_id)
        return {
            "message": f"Order #{order.order_id} assigned",
            "order_id": order.order_id,
            "agent_id": order.agent_id,
        }

    handlers: Dict[str, Handler] = {
        "rdm_get_dashboard_stats": get_dashboard_stats,
        "rdm_get_available_agents": get_available_agents,
        "rdm_update_order_status": update_order_status,
        "rdm_update_agent_status": update_agent_status,
        "rdm_assign_agent_to_order": assign_agent_to_order,
    }
    read_only = {"rdm_get_dashboard_stats", "rdm_get_available_agents"}

    @router.post("/ajax")
    async def ajax(request: Request):
        """Dispatch one form-encoded action."""
        form = dict(await request.form())
        action = form.pop("action", None)

        handler = handlers.get(action)
        if handler is None:
            logger.warning(f"Unknown AJAX action: {action}")
            return JSONResponse(error_envelope(f"Unknown action: {action}"), status_code=400)

        if not auth_deps.verify_nonce(form.pop("nonce", None), request):
            return JSONResponse(error_envelope("Security check failed"), status_code=403)

        try:
            data = handler(form)
        except ValidationError as e:
            logger.warning(f"{action}: invalid parameters: {e.error_count()} error(s)")
            return error_envelope("Invalid request parameters")
        except StoreError as e:
            logger.warning(f"{action} rejected: {e}")
            audit_logger.ajax_action(action, success=False, details={"error": str(e), **form}, request=request)
            return error_envelope(str(e))

        if action not in read_only:
            audit_logger.ajax_action(action, success=True, details=form, request=request)
        return success_envelope(data)

    return router
