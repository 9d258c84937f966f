#!/usr/bin/env python3
"""
Dashboard Server Configuration Management

Policy:
- PROD (test_mode: false)
    nonce / admin token must come from the config file or the environment
    (RDM_AJAX_NONCE / RDM_ADMIN_TOKEN, a local .env is honoured); startup
    fails when either is missing
- DEV  (test_mode: true)
    missing secrets fall back to the well-known development values
"""

import logging
import os
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger("rdm.server")

DEV_NONCE = "dev_nonce_12345"
DEV_ADMIN_TOKEN = "dev_admin_token_12345"


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    # Secrets; may be left empty and supplied through the environment
    nonce: Optional[str] = None
    admin_token: Optional[str] = None
    # YAML file the in-memory store is seeded from
    seed_file: Optional[str] = None
    recent_orders_limit: int = 10
    currency: str = "$"
    # Dashboard page links and strings
    orders_url: str = "/orders"
    order_url: str = "/orders/%id%"
    i18n: Optional[Dict[str, str]] = None
    # Behavior controls
    test_mode: bool = False          # Only controls secret fallbacks


def load_config_from(path: str) -> ServerConfig:
    """Load server configuration from YAML file."""
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    return ServerConfig(**data)


def resolve_secrets(cfg: ServerConfig) -> ServerConfig:
    """
    Fill in nonce and admin token from the environment, then from the
    development defaults when test_mode allows it.

    Raises:
        RuntimeError: a secret is missing outside test mode
    """
    load_dotenv()
    nonce = cfg.nonce or os.getenv("RDM_AJAX_NONCE")
    admin_token = cfg.admin_token or os.getenv("RDM_ADMIN_TOKEN")

    if cfg.test_mode:
        if not nonce:
            logger.warning("test_mode: using development nonce")
            nonce = DEV_NONCE
        if not admin_token:
            logger.warning("test_mode: using development admin token")
            admin_token = DEV_ADMIN_TOKEN

    if not nonce:
        raise RuntimeError("AJAX nonce not configured (set nonce or RDM_AJAX_NONCE)")
    if not admin_token:
        raise RuntimeError("admin token not configured (set admin_token or RDM_ADMIN_TOKEN)")

    return cfg.model_copy(update={"nonce": nonce, "admin_token": admin_token})
