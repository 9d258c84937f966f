#!/usr/bin/env python3
"""
Audit trail for the reference backend.

Admin page views, Basic-auth and nonce checks, and every state-changing AJAX
action are written to the `rdm.audit` logger, one JSON object per line.
"""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from fastapi import Request

AUDIT_LOGGER_NAME = "rdm.audit"

# Form fields never copied into an audit entry
REDACTED_FIELDS = frozenset({"nonce", "_wpnonce"})


def request_context(request: Optional[Request]) -> Dict[str, str]:
    """Who sent the request and where it went; empty without a request."""
    if request is None:
        return {}
    return {
        "client_ip": request.client.host if request.client else "unknown",
        "user_agent": request.headers.get("user-agent", "unknown"),
        "method": request.method,
        "path": request.url.path,
    }


class AuditLogger:

    def __init__(self, name: str = AUDIT_LOGGER_NAME, clock: Callable[[], float] = time.time):
        self.logger = logging.getLogger(name)
        self.clock = clock

    def record(self, event_type: str, details: Dict[str, Any], request: Optional[Request] = None) -> Dict[str, Any]:
        entry = {
            "timestamp": int(self.clock()),
            "event_type": event_type,
            "details": {k: v for k, v in details.items() if k not in REDACTED_FIELDS},
            **request_context(request),
        }
        self.logger.info(json.dumps(entry, default=str, sort_keys=True))
        return entry

    def auth_attempt(self, success: bool, auth_type: str, details: Dict[str, Any], request: Optional[Request] = None):
        """auth_type is "admin_basic" or "ajax_nonce"."""
        return self.record("auth_attempt", {"success": success, "auth_type": auth_type, **details}, request)

    def admin_action(self, action: str, details: Dict[str, Any], request: Optional[Request] = None):
        return self.record("admin_action", {"action": action, **details}, request)

    def ajax_action(self, action: str, success: bool, details: Dict[str, Any], request: Optional[Request] = None):
        outcome = "applied" if success else "rejected"
        return self.record("ajax_action", {"action": action, "outcome": outcome, "success": success, **details}, request)


audit_logger = AuditLogger()
