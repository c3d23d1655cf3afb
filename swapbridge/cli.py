"""
SwapBridge - Command Line
Operator entry point for one-shot engine operations

Usage:
    swapbridge quote coin-to-token 1000000000000000000
    swapbridge balance [ADDRESS]
    swapbridge allowance
    swapbridge approve --timeout 600
    swapbridge swap token-to-coin 5000000000000000000 --timeout 600
    swapbridge bridge to-secondary 5000000000000000000

Amounts are integers in base units (wei). Configuration comes from the
environment / .env (see .env.example).
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import structlog
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from swapbridge.config import load_config
from swapbridge.engine import SwapBridgeEngine
from swapbridge.models import SwapDirection


logger = structlog.get_logger()
console = Console()


def configure_logging(level: str = "INFO") -> None:
    """Structured console logging over the stdlib logging tree"""
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level.upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_engine() -> SwapBridgeEngine:
    config = load_config()
    configure_logging(config.log_level)
    return SwapBridgeEngine(config)


def _amount(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"amount must be an integer in base units: {raw!r}")
    if value < 0:
        raise argparse.ArgumentTypeError(f"amount must be non-negative: {raw!r}")
    return value


def _positive_int(raw: str) -> int:
    value = _amount(raw)
    if value == 0:
        raise argparse.ArgumentTypeError("timeout must be positive")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swapbridge",
        description="Swap on the AMM and bridge funds between chains"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    directions = [d.value for d in SwapDirection]

    quote = sub.add_parser("quote", help="Quote an AMM swap (read-only)")
    quote.add_argument("direction", choices=directions)
    quote.add_argument("amount", type=_amount)

    balance = sub.add_parser("balance", help="Token balance of an address")
    balance.add_argument("address", nargs="?", default=None)

    sub.add_parser("allowance", help="Check whether the AMM may spend our tokens")

    approve = sub.add_parser("approve", help="Approve the AMM for unlimited token spending")
    approve.add_argument("--timeout", type=_positive_int, default=600)

    swap = sub.add_parser("swap", help="Execute a swap and wait for confirmation")
    swap.add_argument("direction", choices=directions)
    swap.add_argument("amount", type=_amount)
    swap.add_argument("--timeout", type=_positive_int, default=600)

    bridge = sub.add_parser("bridge", help="Submit a bridge transfer (fire-and-forget)")
    bridge.add_argument("target", choices=["to-secondary", "to-base"])
    bridge.add_argument("amount", type=_amount)

    return parser


async def run_command(engine: SwapBridgeEngine, args: argparse.Namespace) -> None:
    """Dispatch one parsed command against the engine and render the result"""
    if args.command == "quote":
        direction = SwapDirection(args.direction)
        if direction is SwapDirection.COIN_TO_TOKEN:
            quoted = await engine.coin_to_token_price(args.amount)
        else:
            quoted = await engine.token_to_coin_price(args.amount)

        table = Table(title="AMM Quote")
        table.add_column("Direction")
        table.add_column("Amount in", justify="right")
        table.add_column("Amount out", justify="right")
        table.add_row(direction.value, str(args.amount), str(quoted))
        console.print(table)

    elif args.command == "balance":
        address = args.address or engine.address
        balance = await engine.token_balance(address)
        console.print(f"Token balance of [cyan]{address}[/cyan]: [bold]{balance}[/bold]")

    elif args.command == "allowance":
        approved = await engine.is_token_approved()
        if approved:
            console.print("[green]AMM is approved for unlimited token spending[/green]")
        else:
            console.print("[yellow]AMM is NOT approved - run `swapbridge approve`[/yellow]")

    elif args.command == "approve":
        await engine.approve_token(args.timeout)
        console.print("[green]✅ Approval confirmed[/green]")

    elif args.command == "swap":
        direction = SwapDirection(args.direction)
        if direction is SwapDirection.COIN_TO_TOKEN:
            received = await engine.coin_to_token_swap(args.amount, args.timeout)
        else:
            received = await engine.token_to_coin_swap(args.amount, args.timeout)

        console.print(Panel.fit(
            f"[bold green]Swap confirmed[/bold green]\n"
            f"Direction: {direction.value}\n"
            f"Sold: {args.amount}\n"
            f"Received: {received}",
            title="🔁 Swap"
        ))

    elif args.command == "bridge":
        if args.target == "to-secondary":
            tx_hash = await engine.bridge_token_to_secondary(args.amount)
        else:
            tx_hash = await engine.bridge_coin_to_base(args.amount)

        console.print(Panel.fit(
            f"[bold]Submitted[/bold] {tx_hash}\n"
            f"[dim]Settlement is not tracked - check balances on the other chain.[/dim]",
            title="🌉 Bridge"
        ))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        engine = build_engine()
        asyncio.run(run_command(engine, args))
    except Exception as e:
        logger.error("Command failed", command=args.command, error=str(e))
        console.print(f"[red]Error: {e}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
