"""
Action dispatcher for state-changing dashboard actions.

Two-step protocol: request_action() returns a PendingConfirmation, and only
confirm() sends anything. The originating control is disabled while the
request is pending and re-enabled unconditionally when it completes. On
success the dispatcher never patches local state; it asks the sync loop for a
fresh aggregated snapshot instead.
"""

import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Union

from .errors import ApplicationError, TransportError
from .http_client import unwrap_envelope
from .view import ActionControl

logger = logging.getLogger("rdm.dispatch")


class ActionKind(str, Enum):
    ORDER_STATUS = "order_status"
    AGENT_STATUS = "agent_status"
    ASSIGN_AGENT = "assign_agent"


# kind -> (ajax action, entity id field, value field)
ACTION_ROUTES: Dict[ActionKind, Tuple[str, str, str]] = {
    ActionKind.ORDER_STATUS: ("rdm_update_order_status", "order_id", "status"),
    ActionKind.AGENT_STATUS: ("rdm_update_agent_status", "agent_id", "status"),
    ActionKind.ASSIGN_AGENT: ("rdm_assign_agent_to_order", "order_id", "agent_id"),
}

ConfirmCallback = Callable[[str], Union[bool, Awaitable[bool]]]


class PendingConfirmation:
    """An action waiting for the user's answer; resolves at most once."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    def __init__(self, dispatcher: "ActionDispatcher", kind: ActionKind, entity_id: Any,
                 value: Any, control: ActionControl):
        self.dispatcher = dispatcher
        self.kind = kind
        self.entity_id = entity_id
        self.value = value
        self.control = control
        self.state = self.PENDING

    @property
    def prompt(self) -> str:
        return self.dispatcher.strings["confirm"]

    def _resolve(self, state: str) -> None:
        if self.state != self.PENDING:
            raise RuntimeError(f"confirmation already {self.state}")
        self.state = state

    async def confirm(self) -> bool:
        """Send the request; returns True when the server accepted it."""
        self._resolve(self.CONFIRMED)
        return await self.dispatcher._execute(self)

    def cancel(self) -> None:
        """Decline: nothing is sent, no notice is shown, the control is untouched."""
        self._resolve(self.CANCELLED)
        logger.debug("%s on %s declined", self.kind.value, self.entity_id)


class ActionDispatcher:
    """Confirm, request, then refresh through the sync loop."""

    def __init__(self, client: Any, sync_loop: Any, strings: Dict[str, str]):
        self.client = client
        self.sync_loop = sync_loop
        self.strings = strings

    def request_action(self, kind: Union[ActionKind, str], entity_id: Any, value: Any,
                       control: Optional[ActionControl] = None) -> PendingConfirmation:
        kind = ActionKind(kind)
        if control is None:
            control = ActionControl(kind=kind.value, entity_id=entity_id, value=value)
        return PendingConfirmation(self, kind, entity_id, value, control)

    async def dispatch(self, kind: Union[ActionKind, str], entity_id: Any, value: Any,
                       confirm: ConfirmCallback, control: Optional[ActionControl] = None) -> bool:
        """
        Ask `confirm` with the localized prompt, then send or drop the action.

        Returns:
            True when the action was confirmed and accepted by the server.
        """
        pending = self.request_action(kind, entity_id, value, control)
        answer = confirm(pending.prompt)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            pending.cancel()
            return False
        return await pending.confirm()

    async def handle_click(self, control: ActionControl, confirm: ConfirmCallback) -> bool:
        """Delegated click handler for status-change controls."""
        if control.disabled:
            logger.debug("ignoring click on disabled %s control for %s", control.kind, control.entity_id)
            return False
        return await self.dispatch(control.kind, control.entity_id, control.value, confirm, control)

    async def _execute(self, pending: PendingConfirmation) -> bool:
        action, id_field, value_field = ACTION_ROUTES[pending.kind]
        control = pending.control
        control.disabled = True
        try:
            envelope = await self.client.request(action, **{id_field: pending.entity_id,
                                                            value_field: pending.value})
            unwrap_envelope(envelope)
        except TransportError as e:
            logger.error("%s for %s failed: %s", action, pending.entity_id, e)
            self.sync_loop.report_error(self.strings["error"])
            return False
        except ApplicationError as e:
            logger.warning("%s for %s rejected: %s", action, pending.entity_id, e)
            self.sync_loop.report_error(e.message or self.strings["error"])
            return False
        finally:
            control.disabled = False

        logger.info("%s applied to %s -> %s", action, pending.entity_id, pending.value)
        await self.sync_loop.fetch_snapshot()
        return True
