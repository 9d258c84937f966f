"""
AJAX transport for the dashboard client.

Every request is a single form-encoded POST carrying an `action` discriminator
and the anti-forgery `nonce`; every response is a `{success, data}` envelope.
"""

import asyncio
import json
import logging
import ssl
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .errors import ApplicationError, TransportError

logger = logging.getLogger("rdm.client")


class AjaxClient:
    """HTTP client for the dashboard aggregation endpoint."""

    def __init__(self, ajax_url: str, nonce: str, timeout: int = 10):
        """
        Initialize AJAX client.

        Args:
            ajax_url: Full URL of the AJAX endpoint (e.g., https://shop/ajax)
            nonce: Anti-forgery token sent with every request
            timeout: Request timeout in seconds
        """
        self.ajax_url = ajax_url
        self.nonce = nonce
        self.timeout = timeout
        self._ssl_context = self._create_ssl_context()

    def _create_ssl_context(self) -> ssl.SSLContext:
        """Create SSL context for HTTPS that auto-trusts server certificates."""
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        return ssl_context

    def post_form(self, action: str, fields: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Make a blocking form POST and decode the JSON envelope.

        Args:
            action: Action discriminator (e.g., rdm_get_dashboard_stats)
            fields: Extra form fields

        Returns:
            Response envelope as dictionary

        Raises:
            TransportError: On HTTP errors, connection errors or a non-object body
        """
        data = {"action": action, "nonce": self.nonce}
        data.update({k: v for k, v in (fields or {}).items() if v is not None})
        body = urlencode(data).encode("utf-8")
        req = Request(
            self.ajax_url,
            data=body,
            headers={"Content-Type": "application/x-www-form-urlencoded", "Accept": "application/json"},
            method="POST",
        )

        # Use SSL context for HTTPS URLs
        ssl_context = self._ssl_context if self.ajax_url.startswith("https://") else None

        try:
            with urlopen(req, timeout=self.timeout, context=ssl_context) as resp:
                raw = resp.read().decode("utf-8")
        except HTTPError as e:
            raise TransportError(f"HTTP {e.code} from {self.ajax_url}", status=e.code) from e
        except URLError as e:
            raise TransportError(f"failed to reach {self.ajax_url}: {e.reason}") from e
        except (TimeoutError, OSError) as e:
            raise TransportError(f"request to {self.ajax_url} failed: {e}") from e

        try:
            envelope = json.loads(raw) if raw else None
        except ValueError as e:
            raise TransportError(f"invalid JSON from {self.ajax_url}") from e
        if not isinstance(envelope, dict):
            raise TransportError(f"unexpected response body from {self.ajax_url}")
        return envelope

    async def request(self, action: str, **fields: Any) -> Dict[str, Any]:
        """Run post_form in the default executor so the event loop keeps going."""
        loop = asyncio.get_running_loop()
        logger.debug("ajax request: action=%s fields=%s", action, fields)
        return await loop.run_in_executor(None, self.post_form, action, fields)


def unwrap_envelope(envelope: Dict[str, Any]) -> Any:
    """
    Return the envelope's `data` when `success` is true.

    Raises:
        ApplicationError: success flag is false; carries the server message if any
    """
    if envelope.get("success"):
        return envelope.get("data")
    data = envelope.get("data")
    message = data.get("message") if isinstance(data, dict) else None
    raise ApplicationError(message or None)
