#!/usr/bin/env python3
"""
RestroReach dashboard server

Entry point: loads the YAML config, builds the FastAPI app and runs uvicorn.
"""

import argparse
import logging

import uvicorn

from .core.config import load_config_from
from .core.server import create_app


def main():
    """Main entry point for the dashboard server."""
    parser = argparse.ArgumentParser(description="RestroReach dashboard server")
    parser.add_argument("-c", "--config", help="Path to YAML config", default="server.config.yaml")
    args = parser.parse_args()

    # Load configuration
    config = load_config_from(args.config)
    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))

    # Create FastAPI app
    app = create_app(config)

    # Run the server
    uvicorn.run(app, host=config.host, port=config.port, reload=False, access_log=False)


if __name__ == "__main__":
    main()
