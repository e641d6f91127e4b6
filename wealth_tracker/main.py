"""Entry point for the community wealth tracker."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any

from wealth_tracker.api.gateway import RequestGateway
from wealth_tracker.config import setup_logging
from wealth_tracker.orchestrator import AnalysisOrchestrator
from wealth_tracker.ranking import format_value
from wealth_tracker.server import CommandServer
from wealth_tracker.state_store import LastInputStore

logger = logging.getLogger(__name__)


async def _serve() -> int:
    store = LastInputStore()
    gateway = RequestGateway()
    orchestrator = AnalysisOrchestrator.from_gateway(gateway, store=store)
    server = CommandServer(orchestrator, store)

    saved = store.load()
    if saved:
        logger.info("last_input_loaded", extra=saved)

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.set)

    try:
        await server.start()
        await shutdown.wait()
    finally:
        logger.info("command_server_stopping")
        await server.stop()
        await gateway.close()
    return 0


async def _scan(link: str | None) -> int:
    store = LastInputStore()
    if link is None:
        saved = store.load()
        if not saved:
            print("No community link given and none saved from a previous run.", file=sys.stderr)
            return 2
        link = saved["communityLink"]

    gateway = RequestGateway()
    orchestrator = AnalysisOrchestrator.from_gateway(gateway, store=store)
    try:
        response = await orchestrator.start_analysis_from_link(link)
    finally:
        await gateway.close()

    if not response["success"]:
        print(f"Error: {response['error']}", file=sys.stderr)
        return 1
    print(render_results(response["members"], response["totalProcessed"]))
    return 0


def render_results(members: list[dict[str, Any]], total_processed: int) -> str:
    if not members:
        return f"No members found with valuable limited items ({total_processed} scanned)."

    lines = [f"Found {len(members)} wealthy members out of {total_processed} scanned."]
    for rank, member in enumerate(members, start=1):
        lines.append(
            f"#{rank:<4} {member['username']:<24} RAP: {format_value(member['totalValue'])}"
        )
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wealth-tracker",
        description="Rank community members by the value of their collectibles.",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("serve", help="Run the HTTP command server")
    scan = sub.add_parser("scan", help="Analyse one community and print the ranking")
    scan.add_argument(
        "link", nargs="?", default=None,
        help="Community link; defaults to the last one used",
    )
    args = parser.parse_args(argv)

    setup_logging()
    if args.command == "serve":
        return asyncio.run(_serve())
    return asyncio.run(_scan(args.link))


if __name__ == "__main__":
    sys.exit(main())
