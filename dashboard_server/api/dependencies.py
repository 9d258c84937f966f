#!/usr/bin/env python3
"""
Dashboard API Dependencies - Authentication and Nonce Verification
"""

import base64
import binascii
import logging
from secrets import compare_digest
from typing import Optional

from fastapi import HTTPException, Request, status

from ..core.audit import audit_logger

logger = logging.getLogger("rdm.server")


class AuthDependencies:
    """Container for authentication dependencies with admin token and AJAX nonce."""

    def __init__(self, admin_token: Optional[str], nonce: Optional[str], test_mode: bool = False):
        self.admin_token = admin_token
        self.nonce = nonce
        self.test_mode = test_mode

    def require_admin_auth(self, request: Request) -> None:
        """
        Basic Auth for the HTML dashboard.
        Any username is accepted; the password must be the admin token
        (dev_admin_token_12345 in test mode unless configured).
        """
        auth_header = request.headers.get("authorization", "")

        if auth_header.startswith("Basic "):
            try:
                credentials = base64.b64decode(auth_header[6:]).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as e:
                logger.debug(f"Basic Auth parsing failed: {e}")
                credentials = ""
            if ":" in credentials:
                username, password = credentials.split(":", 1)
                if self.admin_token and compare_digest(password, self.admin_token):
                    logger.debug("Admin authenticated via Basic Auth")
                    audit_logger.auth_attempt(
                        success=True,
                        auth_type="admin_basic",
                        details={"username": username, "test_mode": self.test_mode},
                        request=request
                    )
                    return

        audit_logger.auth_attempt(
            success=False,
            auth_type="admin_basic",
            details={"reason": "invalid_credentials", "test_mode": self.test_mode},
            request=request
        )

        realm_msg = "RestroReach Admin (test mode: use any username + dev_admin_token_12345)" if self.test_mode else "RestroReach Admin"
        logger.warning("Admin authentication failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": f"Basic realm=\"{realm_msg}\""}
        )

    def verify_nonce(self, nonce: Optional[str], request: Optional[Request] = None) -> bool:
        """Check the anti-forgery token sent with every AJAX request."""
        ok = bool(self.nonce) and bool(nonce) and compare_digest(str(nonce), self.nonce)
        if not ok:
            logger.warning("AJAX nonce check failed")
            audit_logger.auth_attempt(
                success=False,
                auth_type="ajax_nonce",
                details={"reason": "missing_nonce" if not nonce else "invalid_nonce"},
                request=request
            )
        return ok
