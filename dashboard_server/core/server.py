#!/usr/bin/env python3
"""
FastAPI application factory for the dashboard backend.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from dashboard_client.config import DEFAULT_STRINGS

from ..aggregation import DashboardAggregator
from ..api.dependencies import AuthDependencies
from ..api.routes.ajax_routes import create_ajax_routes
from ..api.routes.dashboard_routes import create_dashboard_routes
from ..store import DeliveryStore
from .config import ServerConfig, resolve_secrets

logger = logging.getLogger("rdm.server")


def create_app(config: ServerConfig, store: Optional[DeliveryStore] = None,
               aggregator: Optional[DashboardAggregator] = None) -> FastAPI:
    """Create the FastAPI app with resolved secrets, a seeded store and all routers."""
    config = resolve_secrets(config)

    if store is None:
        if config.seed_file:
            store = DeliveryStore.from_yaml(Path(config.seed_file))
        else:
            logger.warning("No seed_file configured; starting with an empty store")
            store = DeliveryStore()
    if aggregator is None:
        aggregator = DashboardAggregator(store, recent_limit=config.recent_orders_limit,
                                         currency=config.currency)

    auth_deps = AuthDependencies(config.admin_token, config.nonce, config.test_mode)
    strings = {**DEFAULT_STRINGS, **(config.i18n or {})}

    app = FastAPI(title="RestroReach Dashboard", version="1.0.0")
    app.state.config = config
    app.state.store = store
    app.state.aggregator = aggregator

    app.include_router(create_ajax_routes(auth_deps, store, aggregator))
    app.include_router(create_dashboard_routes(auth_deps, store, aggregator, strings,
                                               config.orders_url, config.order_url))

    logger.info(f"Dashboard server ready (test_mode={config.test_mode})")
    return app
