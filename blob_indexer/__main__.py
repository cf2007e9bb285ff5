"""Blob transaction indexer CLI.

Usage:
    python -m blob_indexer --start-block 19426587 --end-block 19426600 \
        --rpc-url https://eth.llamarpc.com --decode-scheme structured

Exit status: 0 when the whole range was processed, 1 on a fetch or store
failure (the failing block is reported), 130 when interrupted.
"""

from __future__ import annotations

import signal
import sys
from argparse import ArgumentParser
from asyncio import Event, get_running_loop, run

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from blob_indexer.data.blobs.aggregate import format_distribution
from blob_indexer.data.blobs.backfill import BlobBackfill
from blob_indexer.data.blobs.db import KeyValueStore
from blob_indexer.data.blobs.models import BlobPolicy, DecodeScheme
from blob_indexer.helpers.config import (
    get_blob_tx_type,
    get_chain_name,
    get_database_url,
    get_decode_scheme,
    get_eth_rpc_url,
)
from blob_indexer.helpers.constants import DEFAULT_MAX_ATTEMPTS
from blob_indexer.helpers.http import create_http_client
from blob_indexer.helpers.logging import LOG_LEVELS, set_log_level
from blob_indexer.helpers.rpc import RPCClient, RPCNodeClient


if TYPE_CHECKING:
    from argparse import Namespace

    from blob_indexer.data.blobs.backfill import BackfillReport


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def _non_negative_int(value: str) -> int:
    number = int(value, 0)
    if number < 0:
        msg = f"must be non-negative, got {number}"
        raise ValueError(msg)
    return number


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="blob_indexer",
        description="Classify and store blob transactions for a block range",
    )
    parser.add_argument(
        "-s", "--start-block", type=_non_negative_int, required=True,
        help="First block number (inclusive)",
    )
    parser.add_argument(
        "-e", "--end-block", type=_non_negative_int, required=True,
        help="Last block number (inclusive)",
    )
    parser.add_argument(
        "-r", "--rpc-url", default=None,
        help="Ethereum JSON-RPC URL (default: ETH_RPC_URL)",
    )
    parser.add_argument(
        "--decode-scheme",
        choices=[scheme.value for scheme in DecodeScheme],
        default=None,
        help="Blob field decoding scheme (default: BLOB_DECODE_SCHEME)",
    )
    parser.add_argument(
        "--blob-tx-type", type=_non_negative_int, default=None,
        help="Transaction type marking blob transactions (default: BLOB_TX_TYPE or 3)",
    )
    parser.add_argument(
        "--chain", default=None,
        help="Chain tag for stored keys (default: CHAIN_NAME or mainnet)",
    )
    parser.add_argument(
        "--database-url", default=None,
        help="SQLAlchemy async URL of the key-value store (default: DATABASE_URL)",
    )
    parser.add_argument(
        "--max-attempts", type=int, default=DEFAULT_MAX_ATTEMPTS,
        help="Fetch attempts per block on transport errors (default: 1)",
    )
    parser.add_argument(
        "--log-level", choices=list(LOG_LEVELS), default=None,
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--no-progress", action="store_true",
        help="Hide the progress bar",
    )
    return parser


def print_report(report: BackfillReport, console: Console) -> None:
    for line in format_distribution(report.distribution):
        console.print(line, highlight=False)

    stats = report.stats
    console.print(
        f"Blocks: {stats.blocks:,} | Blob txs: {stats.blob_transactions:,} | "
        f"Missing txs: {stats.missing_transactions:,} | "
        f"Decode failures: {stats.decode_failures:,} | "
        f"Missing fields: {stats.missing_fields:,}",
        highlight=False,
    )

    if report.error is not None:
        where = (
            "before the first block"
            if report.failed_block is None
            else f"at block {report.failed_block}"
        )
        console.print(
            f"[bold red]Failed {where} ({report.error})[/bold red]: "
            f"{escape(report.error_message or '')}",
            highlight=False,
        )
        console.print(f"Last processed block: {report.last_block}")
    elif report.cancelled:
        console.print(
            f"[yellow]Interrupted; last processed block: {report.last_block}[/yellow]"
        )


async def main(args: Namespace) -> int:
    """Run one backfill and return the process exit status."""
    policy = BlobPolicy(
        chain=get_chain_name(args.chain),
        blob_tx_type=get_blob_tx_type(args.blob_tx_type),
        decode_scheme=get_decode_scheme(args.decode_scheme),
    )
    rpc = RPCClient(get_eth_rpc_url(args.rpc_url))
    store = KeyValueStore(get_database_url(args.database_url))

    stop_event = Event()
    loop = get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    async with create_http_client(timeout=rpc.timeout) as client:
        backfill = BlobBackfill(
            RPCNodeClient(rpc, client),
            store,
            policy,
            max_attempts=args.max_attempts,
            stop_event=stop_event,
            show_progress=not args.no_progress,
        )
        report = await backfill.run(args.start_block, args.end_block)

    print_report(report, Console())

    if report.error is not None:
        return EXIT_FAILURE
    if report.cancelled:
        return EXIT_INTERRUPTED
    return EXIT_OK


def cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.start_block > args.end_block:
        parser.error("--start-block must not be greater than --end-block")
    if args.max_attempts < 1:
        parser.error("--max-attempts must be at least 1")
    if args.log_level:
        set_log_level(args.log_level)

    try:
        return run(main(args))
    except ValueError as e:
        # Configuration problems (missing RPC URL, scheme, database URL)
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(cli())
