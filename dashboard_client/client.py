#!/usr/bin/env python3
"""
RestroReach dashboard client

Flow:
- Config comes from --config (YAML), overridden by explicit CLI flags
- watch:   immediate fetch, then one fetch every refresh_interval seconds;
           the composed page is rewritten to --output after every change
- refresh: a single fetch and render (exit status 1 on failure)
- order-status / agent-status / assign-agent:
           ask for confirmation (unless --yes), send the action, then refresh

The client never edits snapshot data locally; every change is followed by a
full re-fetch from the aggregation endpoint.
"""

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from .config import DashboardConfig
from .dispatcher import ActionDispatcher, ActionKind
from .http_client import AjaxClient
from .renderers import SectionRenderer
from .sync_loop import DashboardSyncLoop
from .view import DashboardView

logger = logging.getLogger("rdm.client")


class DashboardApp:
    """Wires transport, view, renderer, sync loop and dispatcher together."""

    def __init__(self, config: DashboardConfig, client=None, output: Optional[Path] = None):
        self.config = config
        self.output = output if output is not None else Path(config.output)
        self.client = client or AjaxClient(config.ajax_url, config.nonce, config.request_timeout)
        self.view = DashboardView.with_slots(config.slots)
        self.renderer = SectionRenderer(config.strings, config.orders_url, config.order_url)
        self.sync = DashboardSyncLoop(self.client, self.view, self.renderer, config, on_render=self.write_page)
        self.dispatcher = ActionDispatcher(self.client, self.sync, config.strings)

    def write_page(self, view: DashboardView) -> None:
        html = self.renderer.render_page(view, rendered_at=time.time())
        tmp = self.output.with_name(self.output.name + ".tmp")
        tmp.write_text(html, encoding="utf-8")
        tmp.replace(self.output)
        logger.debug("wrote dashboard page to %s", self.output)


def prompt_confirmation(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _print_notices(app: DashboardApp) -> None:
    for notice in app.view.active_notices:
        print(f"ERROR: {notice.message}", file=sys.stderr)


async def watch(app: DashboardApp) -> None:
    try:
        await app.sync.run_forever()
    finally:
        await app.sync.stop()


async def refresh_once(app: DashboardApp) -> int:
    ok = await app.sync.refresh()
    _print_notices(app)
    await app.sync.stop()
    return 0 if ok else 1


async def run_action(app: DashboardApp, kind: ActionKind, entity_id: str, value: str, assume_yes: bool) -> int:
    confirm = (lambda _prompt: True) if assume_yes else prompt_confirmation
    pending = app.dispatcher.request_action(kind, entity_id, value)
    if not confirm(pending.prompt):
        pending.cancel()
        print("Cancelled.")
        return 0
    ok = await pending.confirm()
    _print_notices(app)
    await app.sync.stop()
    return 0 if ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="RestroReach dashboard client")
    parser.add_argument("--config", "-c", type=Path, default=Path("config.yml"),
                        help="YAML configuration file (default: config.yml)")
    parser.add_argument("--ajax-url", dest="ajax_url", help="aggregation endpoint URL")
    parser.add_argument("--nonce", help="anti-forgery token sent with every request")
    parser.add_argument("--interval", dest="refresh_interval", type=float,
                        help="seconds between scheduled refreshes")
    parser.add_argument("--output", "-o", help="file the rendered dashboard page is written to")
    parser.add_argument("--discard-stale", dest="discard_stale", action="store_true",
                        help="ignore responses older than the last rendered one")
    parser.add_argument("--log-level", dest="log_level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="logging level")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("watch", help="poll and re-render until interrupted")
    sub.add_parser("refresh", help="fetch and render once")

    for name, id_name, value_name in (
        ("order-status", "order_id", "status"),
        ("agent-status", "agent_id", "status"),
        ("assign-agent", "order_id", "agent_id"),
    ):
        action = sub.add_parser(name, help=f"change {id_name.split('_')[0]} {value_name.replace('_', ' ')}")
        action.add_argument("entity_id", metavar=id_name.upper())
        action.add_argument("value", metavar=value_name.upper())
        action.add_argument("--yes", "-y", action="store_true", help="skip the confirmation prompt")
    return parser


COMMAND_KINDS = {
    "order-status": ActionKind.ORDER_STATUS,
    "agent-status": ActionKind.AGENT_STATUS,
    "assign-agent": ActionKind.ASSIGN_AGENT,
}


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # Load config: YAML first, then CLI overrides
    config = DashboardConfig.from_file(args.config).override_with_args(args)

    # Configure logging
    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))
    logger.info(f"dashboard client starting: endpoint={config.ajax_url}, interval={config.refresh_interval}s")

    app = DashboardApp(config)
    try:
        if args.command == "watch":
            asyncio.run(watch(app))
            return 0
        if args.command == "refresh":
            return asyncio.run(refresh_once(app))
        return asyncio.run(run_action(app, COMMAND_KINDS[args.command], args.entity_id, args.value, args.yes))
    except KeyboardInterrupt:
        print("\nInterrupted. Bye!")
        return 130


if __name__ == "__main__":
    sys.exit(main())
